"""
RSS/Atom feed fetching and normalization.

Feeds are downloaded with httpx and parsed with feedparser. Every entry
is normalized into an ArticleRecord:
- id falls back to the link when the feed has no guid/id
- pubDate falls back to the ingestion time when missing or malformed
- contentSnippet is plain text (HTML stripped with BeautifulSoup)
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
import logging
from typing import Any

from bs4 import BeautifulSoup
from dateutil.parser import parse as parse_date
import feedparser
import httpx

from ..config import FetchConfig
from ..core.dates import format_iso8601, utc_now
from ..core.types import ArticleRecord
from ..errors import FeedFetchError


logger = logging.getLogger(__name__)

UNTITLED = "(no title)"

# Common timezone abbreviations
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "JST": timezone(timedelta(hours=9)),
    "BST": timezone(timedelta(hours=1)),
}


class FeedClient:
    """Fetches a feed URL and returns normalized records.

    Args:
        cfg: Fetch settings (timeout, user agent, proxy handling)
        client: Optional shared AsyncClient; one is created per call otherwise
    """

    def __init__(self, cfg: FetchConfig | None = None, client: httpx.AsyncClient | None = None):
        self.cfg = cfg or FetchConfig()
        self._client = client

    async def fetch_feed(self, url: str) -> list[ArticleRecord]:
        """Download and parse ``url``.

        Raises:
            FeedFetchError: On invalid URL, network error, non-2xx status or
                an unparseable document
        """
        if not url or not isinstance(url, str):
            raise FeedFetchError(str(url), "no feed URL given")

        content = await self._download(url)
        parsed = feedparser.parse(content)
        if parsed.bozo and not parsed.entries:
            reason = getattr(parsed, "bozo_exception", None) or "not a feed"
            raise FeedFetchError(url, f"parse error: {reason}")

        now = utc_now()
        records = []
        for entry in parsed.entries:
            record = normalize_entry(entry, now)
            if record is None:
                logger.debug("Skipping feed entry without id or link", extra={"url": url})
                continue
            records.append(record)
        return records

    async def _download(self, url: str) -> bytes:
        headers = {"User-Agent": self.cfg.user_agent}
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, follow_redirects=True)
            else:
                async with httpx.AsyncClient(
                    timeout=self.cfg.timeout_seconds,
                    follow_redirects=True,
                    trust_env=self.cfg.trust_env,
                ) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise FeedFetchError(url, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code >= 400:
            raise FeedFetchError(url, f"HTTP {response.status_code}")
        return response.content


def normalize_entry(entry: Any, now: datetime) -> ArticleRecord | None:
    """Convert a feedparser entry into an ArticleRecord, or None without identity."""
    link = _text(entry.get("link"))
    record_id = _text(entry.get("id")) or _text(entry.get("guid")) or link
    if not record_id:
        return None

    return ArticleRecord(
        id=record_id,
        title=_text(entry.get("title")) or UNTITLED,
        link=link,
        pub_date=format_iso8601(_published_at(entry) or now),
        content_snippet=_snippet(entry),
    )


def _published_at(entry: Any) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        struct = entry.get(key)
        if struct:
            try:
                return datetime.fromtimestamp(calendar.timegm(struct), tz=timezone.utc)
            except (OverflowError, TypeError, ValueError):
                continue

    for key in ("published", "updated", "pubDate"):
        raw = _text(entry.get(key))
        if not raw:
            continue
        try:
            parsed = parse_date(raw, tzinfos=TZINFOS)
        except (ValueError, OverflowError):
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def _snippet(entry: Any) -> str:
    raw = _text(entry.get("summary"))
    if not raw:
        content = entry.get("content")
        if isinstance(content, list) and content:
            first = content[0]
            raw = _text(first.get("value") if isinstance(first, dict) else None)
    if not raw:
        return ""
    text = BeautifulSoup(raw, "html.parser").get_text(separator=" ")
    return " ".join(text.split())


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
