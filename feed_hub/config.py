"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- StorageConfig: Locations of category data, history and index files
- RunConfig: Retention and first-run windows
- FetchConfig: Feed HTTP fetching settings
- NotifyConfig: Discord webhook settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container

The category list lives in a separate JSON file (see ``load_categories``)
because it is shared with the static browsing page.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import timezone, tzinfo
import json
import os
from pathlib import Path
import re
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigError


_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass
class StorageConfig:
    """Configuration for persisted JSON files.

    Attributes:
        data_dir: Directory holding one JSON file per category plus the index
        history_file: Path of the notification history document
        index_filename: File name of the index inside data_dir
        categories_file: Path of the category configuration JSON
    """

    data_dir: str = "docs/data"
    history_file: str = "post-history.json"
    index_filename: str = "index.json"
    categories_file: str = "categories.json"


@dataclass
class RunConfig:
    """Configuration for record lifetimes.

    Attributes:
        retention_days: Records older than this are purged from category files
        filter_days: On a first run, only records newer than this are ingested
    """

    retention_days: int = 90
    filter_days: int = 30


@dataclass
class FetchConfig:
    """Configuration for feed fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 30.0
    trust_env: bool = True
    user_agent: str = "article-feed-hub/0.1 (RSS reader)"


@dataclass
class NotifyConfig:
    """Configuration for Discord notifications.

    Attributes:
        delay_seconds: Pause between consecutive webhook posts (rate limiting)
        timeout_seconds: HTTP request timeout
        snippet_max_length: Max characters of the snippet shown in the embed
        embed_color: Embed side bar color
        display_timezone: IANA timezone for the "Published" field, UTC if unset
    """

    delay_seconds: float = 1.0
    timeout_seconds: float = 15.0
    snippet_max_length: int = 200
    embed_color: int = 0x0099FF
    display_timezone: str | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        log_dir: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"
    log_dir: str = "logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    run: RunConfig = field(default_factory=RunConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_SECTIONS = {
    "storage": StorageConfig,
    "run": RunConfig,
    "fetch": FetchConfig,
    "notify": NotifyConfig,
    "logging": LoggingConfig,
}


@dataclass
class CategoryConfig:
    """One configured category.

    Attributes:
        id: Stable category id, also the stem of its data file
        name: Display name
        feed_url: RSS/Atom feed URL
        notify_target: Environment variable holding the webhook URL, or the URL itself
        site_name: Fallback site name for records that carry none
    """

    id: str
    name: str
    feed_url: str
    notify_target: str = ""
    site_name: str = ""


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    cfg = _merge_config(AppConfig(), raw)
    resolve_display_timezone(cfg.notify.display_timezone)
    return cfg


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if not isinstance(value, dict):
            raise ConfigError(f"Config section '{key}' must be a mapping")
        known = {k: v for k, v in value.items() if k in data[key]}
        data[key].update(known)
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(**{name: cls(**data[name]) for name, cls in _SECTIONS.items()})


def load_categories(path: str | Path, index_filename: str = "index.json") -> list[CategoryConfig]:
    """Load the ordered category list from a JSON file.

    Accepts either ``{"categories": [...]}`` or a bare list. Each entry needs
    non-empty ``id``, ``name`` and ``feedUrl``; ``notifyTarget`` (alias
    ``webhookEnvKey``) and ``siteName`` are optional.

    Raises:
        ConfigError: If the file is absent, not JSON, or any entry is invalid
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Category file not found: {path}") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read category file {path}: {exc}") from exc

    items = raw.get("categories") if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise ConfigError(f"Category file {path} must define a 'categories' list")

    reserved = Path(index_filename).stem
    categories: list[CategoryConfig] = []
    seen: set[str] = set()
    for position, item in enumerate(items):
        category = _parse_category(item, position)
        if category.id == reserved:
            raise ConfigError(f"Category id '{category.id}' collides with the index file")
        if category.id in seen:
            raise ConfigError(f"Duplicate category id '{category.id}'")
        seen.add(category.id)
        categories.append(category)
    return categories


def _parse_category(item: Any, position: int) -> CategoryConfig:
    if not isinstance(item, dict):
        raise ConfigError(f"Category #{position} must be an object")

    values = {}
    for key in ("id", "name", "feedUrl"):
        value = item.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"Category #{position} is missing '{key}'")
        values[key] = value.strip()

    if not _SAFE_ID_RE.match(values["id"]):
        raise ConfigError(f"Category id '{values['id']}' is not a valid file name")

    notify_target = item.get("notifyTarget", item.get("webhookEnvKey", ""))
    site_name = item.get("siteName", "")
    if not isinstance(notify_target, str) or not isinstance(site_name, str):
        raise ConfigError(f"Category '{values['id']}' has non-string notifyTarget/siteName")

    return CategoryConfig(
        id=values["id"],
        name=values["name"],
        feed_url=values["feedUrl"],
        notify_target=notify_target.strip(),
        site_name=site_name,
    )


def resolve_notify_target(target: str) -> str | None:
    """Resolve a category notify target into a webhook URL.

    A literal http(s) URL is used as-is; anything else is treated as the name
    of an environment variable holding the URL.
    """
    if not target:
        return None
    if target.startswith(("http://", "https://")):
        return target
    return os.getenv(target) or None


def resolve_display_timezone(name: str | None) -> tzinfo:
    """Return the IANA zone ``name``, or UTC when unset.

    Raises:
        ConfigError: If the zone is unknown
    """
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown notify.display_timezone '{name}'") from exc
