"""
Per-category article storage.

Each category owns one JSON document ``<data_dir>/<category_id>.json``:

    {
      "categoryId": "tech",
      "categoryName": "Tech",
      "articles": [ {id, title, link, pubDate, contentSnippet, siteName}, ... ],
      "lastUpdated": "2024-01-01T00:00:00.000Z"
    }

Corrupt documents are treated as empty (with a warning) so one bad file
never blocks a run; write failures raise CategoryPersistenceError.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
import logging
from pathlib import Path

from ..core.dates import format_iso8601, utc_now
from ..core.merge import merge_by_identity, retain_recent, sort_by_pub_date
from ..core.types import ArticleRecord
from ..errors import CategoryPersistenceError
from ..utils.logging import log_event
from .jsonio import InvalidDocument, read_json_object, write_json_atomic


logger = logging.getLogger(__name__)

RETENTION_DAYS = 90


def data_file_name(category_id: str) -> str:
    return f"{category_id}.json"


class CategoryStore:
    """Loads, merges and saves category article files.

    Attributes:
        data_dir: Directory holding the category files
        retention_days: Records older than this are dropped on merge
    """

    def __init__(self, data_dir: Path, retention_days: int = RETENTION_DAYS):
        self.data_dir = Path(data_dir)
        self.retention_days = retention_days

    def path_for(self, category_id: str) -> Path:
        return self.data_dir / data_file_name(category_id)

    def load(self, category_id: str) -> list[ArticleRecord]:
        """Return the stored records of a category.

        Missing files yield an empty list. Structurally invalid files also
        yield an empty list, with a warning; this never raises.
        """
        path = self.path_for(category_id)
        try:
            data = read_json_object(path)
        except InvalidDocument as exc:
            logger.warning(
                "Ignoring unreadable category file",
                extra={"event": "category_load_invalid", "category": category_id, "path": str(path), "error": str(exc)},
            )
            return []

        if data is None:
            return []

        raw_articles = data.get("articles")
        if not isinstance(raw_articles, list):
            logger.warning(
                "Category file has no articles list, treating as empty",
                extra={"event": "category_load_invalid", "category": category_id, "path": str(path)},
            )
            return []

        records = []
        for item in raw_articles:
            record = ArticleRecord.from_dict(item)
            if record is None:
                logger.debug("Skipping stored entry without id", extra={"category": category_id})
                continue
            records.append(record)
        return records

    def save(
        self,
        category_id: str,
        category_name: str,
        articles: Sequence[ArticleRecord],
    ) -> None:
        """Write the full state of a category with a fresh lastUpdated.

        Raises:
            ValueError: If the id or name is empty, or articles is not a sequence
            CategoryPersistenceError: If the file cannot be written
        """
        if not category_id or not isinstance(category_id, str):
            raise ValueError("category_id must be a non-empty string")
        if not category_name or not isinstance(category_name, str):
            raise ValueError("category_name must be a non-empty string")
        if isinstance(articles, (str, bytes)) or not isinstance(articles, Sequence):
            raise ValueError("articles must be a sequence of ArticleRecord")

        path = self.path_for(category_id)
        document = {
            "categoryId": category_id,
            "categoryName": category_name,
            "articles": [article.to_dict() for article in articles],
            "lastUpdated": format_iso8601(utc_now()),
        }
        try:
            write_json_atomic(path, document)
        except OSError as exc:
            raise CategoryPersistenceError(f"Failed to save category {category_id} to {path}: {exc}") from exc

        log_event(
            logger,
            "Category saved",
            event="category_saved",
            category=category_id,
            path=str(path),
            count=len(articles),
        )

    def merge(
        self,
        category_id: str,
        category_name: str,
        incoming: Sequence[ArticleRecord],
        site_name_fallback: str = "",
        now: datetime | None = None,
    ) -> list[ArticleRecord]:
        """Merge incoming records into the stored category and persist.

        Steps: load -> merge by id (incoming wins) -> sort by pubDate desc
        -> drop records outside the retention window -> save.

        Returns:
            The records that were persisted
        """
        now = now or utc_now()
        existing = self.load(category_id)
        merged = merge_by_identity(existing, incoming, site_name_fallback)
        ordered = sort_by_pub_date(merged)
        retained = retain_recent(ordered, self.retention_days, now)

        dropped = len(ordered) - len(retained)
        if dropped:
            log_event(
                logger,
                "Dropped records outside retention window",
                event="category_retention",
                category=category_id,
                dropped=dropped,
                retention_days=self.retention_days,
            )

        self.save(category_id, category_name, retained)
        return retained
