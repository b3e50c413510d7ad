"""
Notification history ledger.

The ledger is the single source of truth preventing duplicate
notifications. It stores the ids of records already posted:

    {"postedIds": ["id-1", "id-2"], "lastUpdated": "..."}

Ids are pruned on save against the ids currently held by any category,
so history never outlives category retention.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path

from ..core.dates import format_iso8601, utc_now
from ..core.types import ArticleRecord
from ..errors import HistoryPersistenceError
from ..utils.logging import log_event
from .jsonio import InvalidDocument, read_json_object, write_json_atomic


logger = logging.getLogger(__name__)

HISTORY_FILE = "post-history.json"


def filter_unnotified(articles: Iterable[ArticleRecord], posted_ids: set[str]) -> list[ArticleRecord]:
    """Keep records whose id has not been notified yet."""
    return [article for article in articles if article.id and article.id not in posted_ids]


def mark_notified(posted_ids: set[str], articles: Iterable[ArticleRecord]) -> None:
    """Add the ids of ``articles`` to ``posted_ids`` in place."""
    for article in articles:
        if article.id:
            posted_ids.add(article.id)


class HistoryLedger:
    """Loads and saves the notified-id set.

    filter_unnotified and mark_notified are pure helpers over the in-memory
    set and are exposed here as static methods as well.
    """

    filter_unnotified = staticmethod(filter_unnotified)
    mark_notified = staticmethod(mark_notified)

    def __init__(self, path: Path = Path(HISTORY_FILE)):
        self.path = Path(path)

    def load(self) -> set[str]:
        """Return the set of already-notified ids; empty when absent or invalid."""
        try:
            data = read_json_object(self.path)
        except InvalidDocument as exc:
            logger.warning(
                "History file is invalid, starting with empty history",
                extra={"event": "history_load_invalid", "path": str(self.path), "error": str(exc)},
            )
            return set()

        if data is None:
            log_event(logger, "No history file found, starting fresh", event="history_missing", path=str(self.path))
            return set()

        posted = data.get("postedIds")
        if not isinstance(posted, list):
            logger.warning(
                "History file has no postedIds list, starting with empty history",
                extra={"event": "history_load_invalid", "path": str(self.path)},
            )
            return set()

        return {item for item in posted if isinstance(item, str) and item}

    def save(self, posted_ids: set[str], valid_ids: set[str]) -> list[str]:
        """Persist ``posted_ids & valid_ids``.

        Returns:
            The ids written, sorted

        Raises:
            TypeError: If either argument is not a set
            HistoryPersistenceError: If the file cannot be written
        """
        if not isinstance(posted_ids, (set, frozenset)) or not isinstance(valid_ids, (set, frozenset)):
            raise TypeError("posted_ids and valid_ids must be sets")

        kept = sorted(posted_ids & valid_ids)
        document = {
            "postedIds": kept,
            "lastUpdated": format_iso8601(utc_now()),
        }
        try:
            write_json_atomic(self.path, document)
        except OSError as exc:
            raise HistoryPersistenceError(f"Failed to save history to {self.path}: {exc}") from exc

        log_event(
            logger,
            "History saved",
            event="history_saved",
            path=str(self.path),
            kept=len(kept),
            pruned=len(posted_ids) - len(kept),
        )
        return kept
