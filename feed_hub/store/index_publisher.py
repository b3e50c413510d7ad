"""
Consolidated index for the static browsing page.

The index lists every configured category with its current article count
and data file, and is rebuilt from the category files on every run:

    {
      "categories": [{"id": "tech", "name": "Tech", "articleCount": 12, "dataFile": "tech.json"}],
      "generatedAt": "..."
    }
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path
from typing import Any

from ..core.dates import format_iso8601, utc_now
from ..errors import IndexPersistenceError
from ..utils.logging import log_event
from .category_store import CategoryStore, data_file_name
from .jsonio import write_json_atomic


logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"


class IndexPublisher:
    """Writes the category index and removes data files no category owns.

    Args:
        store: Category store whose data directory holds the index
        index_filename: File name of the index inside that directory
    """

    def __init__(self, store: CategoryStore, index_filename: str = INDEX_FILENAME):
        self.store = store
        self.index_filename = index_filename

    @property
    def index_path(self) -> Path:
        return self.store.data_dir / self.index_filename

    def publish(self, categories: Iterable[Any]) -> dict[str, Any]:
        """Rebuild and write the index from the current category files.

        Descriptors without an id or name are skipped with a warning.

        Returns:
            The index document that was written

        Raises:
            IndexPersistenceError: If the index cannot be written
        """
        entries = []
        for descriptor in categories:
            category_id = _field(descriptor, "id")
            category_name = _field(descriptor, "name")
            if not category_id or not category_name:
                logger.warning(
                    "Skipping category without id or name in index",
                    extra={"event": "index_skip_category", "descriptor": repr(descriptor)},
                )
                continue
            entries.append(
                {
                    "id": category_id,
                    "name": category_name,
                    "articleCount": len(self.store.load(category_id)),
                    "dataFile": data_file_name(category_id),
                }
            )

        index = {
            "categories": entries,
            "generatedAt": format_iso8601(utc_now()),
        }
        try:
            write_json_atomic(self.index_path, index)
        except OSError as exc:
            raise IndexPersistenceError(f"Failed to write index {self.index_path}: {exc}") from exc

        log_event(
            logger,
            "Index published",
            event="index_published",
            path=str(self.index_path),
            categories=len(entries),
        )
        return index

    def cleanup_orphans(self, categories: Iterable[Any]) -> list[Path]:
        """Delete JSON files in the data directory that no category owns.

        The index file is always kept. A missing data directory means there
        is nothing to clean. Deletion failures are logged, never raised.

        Returns:
            Paths that were deleted
        """
        allowed = {self.index_filename}
        for descriptor in categories:
            category_id = _field(descriptor, "id")
            if category_id:
                allowed.add(data_file_name(category_id))

        try:
            candidates = sorted(self.store.data_dir.iterdir())
        except FileNotFoundError:
            return []

        deleted: list[Path] = []
        for path in candidates:
            if path.suffix != ".json" or not path.is_file() or path.name in allowed:
                continue
            try:
                path.unlink()
            except OSError as exc:
                logger.warning(
                    "Failed to delete orphan data file",
                    extra={"event": "orphan_delete_failed", "path": str(path), "error": str(exc)},
                )
                continue
            log_event(logger, "Deleted orphan data file", event="orphan_deleted", path=str(path))
            deleted.append(path)
        return deleted


def _field(descriptor: Any, key: str) -> str | None:
    if isinstance(descriptor, dict):
        value = descriptor.get(key)
    else:
        value = getattr(descriptor, key, None)
    return value if isinstance(value, str) and value else None
