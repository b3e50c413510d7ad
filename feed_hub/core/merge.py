"""
Pure transforms over sequences of ArticleRecord.

The category store composes them in a fixed order:
merge_by_identity -> sort_by_pub_date -> retain_recent.
None of these functions touch the filesystem, so each can be tested alone.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable

from .dates import cutoff, parse_iso8601
from .types import ArticleRecord


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def merge_by_identity(
    existing: Iterable[ArticleRecord],
    incoming: Iterable[ArticleRecord],
    site_name_fallback: str = "",
) -> list[ArticleRecord]:
    """Upsert incoming records into existing ones, keyed by id.

    Incoming records always win on an id collision, regardless of pubDate.
    ``site_name_fallback`` fills siteName only for incoming records without
    one of their own.

    Returns:
        Records in mapping insertion order: existing order first, a replaced
        id keeps its slot, new ids are appended in incoming order.
    """
    by_id: dict[str, ArticleRecord] = {}
    for record in existing:
        by_id[record.id] = record

    for record in incoming:
        if not record.site_name and site_name_fallback:
            record = replace(record, site_name=site_name_fallback)
        by_id[record.id] = record

    return list(by_id.values())


def sort_by_pub_date(records: Iterable[ArticleRecord]) -> list[ArticleRecord]:
    """Sort newest first; equal dates keep their input order (stable sort).

    Records with an unparseable pubDate sort last.
    """
    return sorted(records, key=_pub_datetime, reverse=True)


def retain_recent(
    records: Iterable[ArticleRecord],
    retention_days: int,
    now: datetime,
) -> list[ArticleRecord]:
    """Drop records older than ``now - retention_days`` or without a valid date."""
    return filter_since(records, retention_days, now)


def filter_since(
    records: Iterable[ArticleRecord],
    days: int,
    now: datetime,
) -> list[ArticleRecord]:
    """Keep records published at or after ``now - days``."""
    threshold = cutoff(now, days)
    kept = []
    for record in records:
        published = parse_iso8601(record.pub_date)
        if published is not None and published >= threshold:
            kept.append(record)
    return kept


def _pub_datetime(record: ArticleRecord) -> datetime:
    return parse_iso8601(record.pub_date) or _OLDEST
