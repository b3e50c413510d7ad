"""
Discord webhook notifications.

One webhook POST per article, each carrying a single embed. The caller
spaces consecutive posts with ``pause()`` to stay under Discord's rate
limits.
"""

from __future__ import annotations

import asyncio
from datetime import tzinfo
import logging
from typing import Any

import httpx

from ..config import NotifyConfig, resolve_display_timezone
from ..core.dates import format_iso8601, parse_iso8601
from ..core.types import ArticleRecord
from ..errors import NotificationError


logger = logging.getLogger(__name__)


def build_embed(
    article: ArticleRecord,
    category_name: str,
    cfg: NotifyConfig | None = None,
    display_tz: tzinfo | None = None,
) -> dict[str, Any]:
    """Build the Discord embed for an article.

    ``display_tz`` defaults to the zone named by ``cfg.display_timezone``.
    """
    cfg = cfg or NotifyConfig()
    published = parse_iso8601(article.pub_date)
    display_tz = display_tz or resolve_display_timezone(cfg.display_timezone)

    embed: dict[str, Any] = {
        "title": article.title,
        "url": article.link,
        "color": cfg.embed_color,
        "fields": [
            {"name": "Category", "value": category_name, "inline": True},
            {
                "name": "Published",
                "value": published.astimezone(display_tz).strftime("%Y-%m-%d %H:%M %Z") if published else "unknown",
                "inline": True,
            },
        ],
    }
    if published:
        embed["timestamp"] = format_iso8601(published)

    if article.content_snippet:
        snippet = article.content_snippet[: cfg.snippet_max_length]
        if len(article.content_snippet) > cfg.snippet_max_length:
            snippet += "..."
        embed["description"] = snippet

    return embed


class DiscordNotifier:
    """Posts article embeds to Discord webhooks.

    Args:
        cfg: Notification settings
        client: Optional shared AsyncClient; one is created per call otherwise

    Raises:
        ConfigError: If the display timezone is unknown
    """

    def __init__(self, cfg: NotifyConfig | None = None, client: httpx.AsyncClient | None = None):
        self.cfg = cfg or NotifyConfig()
        self._client = client
        self._display_tz = resolve_display_timezone(self.cfg.display_timezone)

    async def notify(self, destination: str, article: ArticleRecord, category_name: str) -> None:
        """Post one article to the webhook at ``destination``.

        Raises:
            NotificationError: On invalid input, transport error or non-2xx response
        """
        if not destination or not isinstance(destination, str):
            raise NotificationError("No valid webhook URL given")
        if not article.title or not article.link:
            raise NotificationError(f"Article {article.id!r} has no title or link")

        payload = {"embeds": [build_embed(article, category_name, self.cfg, self._display_tz)]}
        try:
            if self._client is not None:
                response = await self._client.post(destination, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.cfg.timeout_seconds) as client:
                    response = await client.post(destination, json=payload)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Discord post failed: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise NotificationError(
                f"Discord post failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        logger.debug("Posted to Discord", extra={"article_id": article.id, "title": article.title})

    async def pause(self) -> None:
        if self.cfg.delay_seconds > 0:
            await asyncio.sleep(self.cfg.delay_seconds)
