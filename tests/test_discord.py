"""Tests for Discord embed building and webhook posting."""

import asyncio
import json

import httpx
import pytest

from feed_hub.config import NotifyConfig
from feed_hub.core.types import ArticleRecord
from feed_hub.errors import ConfigError, NotificationError
from feed_hub.notify.discord import DiscordNotifier, build_embed


def _article(**overrides) -> ArticleRecord:
    data = {
        "id": "a",
        "title": "Release notes",
        "link": "https://example.com/a",
        "pub_date": "2024-01-01T15:30:00.000Z",
        "content_snippet": "Short snippet",
    }
    data.update(overrides)
    return ArticleRecord(**data)


def _notify(handler, destination="https://discord.test/webhook", article=None):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await DiscordNotifier(NotifyConfig(delay_seconds=0), client=client).notify(
                destination, article or _article(), "Tech"
            )

    asyncio.run(_run())


def test_build_embed_fields():
    embed = build_embed(_article(), "Tech")

    assert embed["title"] == "Release notes"
    assert embed["url"] == "https://example.com/a"
    assert embed["color"] == 0x0099FF
    assert embed["description"] == "Short snippet"
    assert embed["timestamp"] == "2024-01-01T15:30:00.000Z"
    assert embed["fields"][0] == {"name": "Category", "value": "Tech", "inline": True}
    assert embed["fields"][1]["value"] == "2024-01-01 15:30 UTC"


def test_build_embed_uses_display_timezone():
    embed = build_embed(_article(), "Tech", NotifyConfig(display_timezone="Asia/Tokyo"))

    assert embed["fields"][1]["value"] == "2024-01-02 00:30 JST"


def test_build_embed_truncates_long_snippet():
    embed = build_embed(_article(content_snippet="x" * 250), "Tech", NotifyConfig(snippet_max_length=200))

    assert embed["description"] == "x" * 200 + "..."


def test_build_embed_omits_empty_snippet():
    assert "description" not in build_embed(_article(content_snippet=""), "Tech")


def test_notifier_rejects_unknown_display_timezone():
    with pytest.raises(ConfigError):
        DiscordNotifier(NotifyConfig(display_timezone="Not/AZone"))


def test_notify_posts_single_embed():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(204)

    _notify(handler)

    assert captured["url"] == "https://discord.test/webhook"
    assert len(captured["body"]["embeds"]) == 1
    assert captured["body"]["embeds"][0]["title"] == "Release notes"


def test_notify_non_success_raises():
    with pytest.raises(NotificationError) as info:
        _notify(lambda request: httpx.Response(429, json={"retry_after": 1}))

    assert info.value.status_code == 429


def test_notify_transport_error_raises():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(NotificationError):
        _notify(handler)


@pytest.mark.parametrize(
    "destination,article",
    [("", _article()), ("https://discord.test/webhook", _article(title="")), ("https://discord.test/webhook", _article(link=""))],
)
def test_notify_validates_input(destination, article):
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(NotificationError):
        _notify(handler, destination=destination, article=article)
