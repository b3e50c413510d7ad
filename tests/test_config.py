"""Tests for YAML config and category loading."""

import json
from datetime import timezone
from pathlib import Path

import pytest

from feed_hub.config import (
    AppConfig,
    load_categories,
    load_config,
    resolve_display_timezone,
    resolve_notify_target,
)
from feed_hub.errors import ConfigError


def _write_categories(tmp_path: Path, payload) -> Path:
    path = tmp_path / "categories.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_config_defaults_without_path():
    cfg = load_config(None)

    assert cfg == AppConfig()
    assert cfg.run.retention_days == 90
    assert cfg.run.filter_days == 30
    assert cfg.storage.data_dir == "docs/data"


def test_load_config_returns_independent_instances():
    first = load_config(None)
    first.storage.data_dir = "elsewhere"

    assert load_config(None).storage.data_dir == "docs/data"


def test_load_config_merges_sections(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "run:\n  retention_days: 30\nnotify:\n  delay_seconds: 0\n  unknown_key: 1\nextra_section: {}\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.run.retention_days == 30
    assert cfg.run.filter_days == 30
    assert cfg.notify.delay_seconds == 0
    assert cfg.notify.snippet_max_length == 200


@pytest.mark.parametrize(
    "content",
    ["- just\n- a list\n", "run: 5\n", "run: [unclosed\n", "notify:\n  display_timezone: Not/AZone\n"],
)
def test_load_config_rejects_malformed_yaml(tmp_path: Path, content: str):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(str(path))


def test_load_categories_reads_ordered_list(tmp_path: Path):
    path = _write_categories(
        tmp_path,
        {
            "categories": [
                {"id": "tech", "name": "Tech", "feedUrl": "https://a/rss", "notifyTarget": "HOOK_TECH", "siteName": "A"},
                {"id": "news", "name": "News", "feedUrl": "https://b/rss", "webhookEnvKey": "HOOK_NEWS"},
            ]
        },
    )

    categories = load_categories(path)

    assert [c.id for c in categories] == ["tech", "news"]
    assert categories[0].site_name == "A"
    assert categories[1].notify_target == "HOOK_NEWS"
    assert categories[1].site_name == ""


@pytest.mark.parametrize(
    "payload",
    [
        {"categories": "nope"},
        {"other": []},
        {"categories": ["tech"]},
        {"categories": [{"id": "tech", "name": "Tech"}]},
        {"categories": [{"id": "", "name": "Tech", "feedUrl": "https://a"}]},
        {"categories": [{"id": "../etc", "name": "Tech", "feedUrl": "https://a"}]},
        {"categories": [{"id": "index", "name": "Index", "feedUrl": "https://a"}]},
        {"categories": [{"id": "a", "name": "A", "feedUrl": "https://a", "siteName": 3}]},
        {
            "categories": [
                {"id": "a", "name": "A", "feedUrl": "https://a"},
                {"id": "a", "name": "A again", "feedUrl": "https://b"},
            ]
        },
    ],
)
def test_load_categories_rejects_malformed_entries(tmp_path: Path, payload):
    with pytest.raises(ConfigError):
        load_categories(_write_categories(tmp_path, payload))


def test_load_categories_missing_or_invalid_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_categories(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_categories(broken)

    binary = tmp_path / "binary.json"
    binary.write_bytes(b"\xff\xfe[")
    with pytest.raises(ConfigError):
        load_categories(binary)


def test_resolve_display_timezone():
    assert resolve_display_timezone(None) == timezone.utc
    assert str(resolve_display_timezone("Asia/Tokyo")) == "Asia/Tokyo"

    with pytest.raises(ConfigError):
        resolve_display_timezone("Not/AZone")


def test_resolve_notify_target(monkeypatch):
    monkeypatch.setenv("HOOK_TECH", "https://discord.test/tech")
    monkeypatch.delenv("HOOK_MISSING", raising=False)

    assert resolve_notify_target("HOOK_TECH") == "https://discord.test/tech"
    assert resolve_notify_target("https://discord.test/direct") == "https://discord.test/direct"
    assert resolve_notify_target("HOOK_MISSING") is None
    assert resolve_notify_target("") is None
