"""
Persistence of category files, notification history and the index.

All documents are plain JSON objects written atomically.
"""

from .category_store import CategoryStore, data_file_name
from .history import HistoryLedger, filter_unnotified, mark_notified
from .index_publisher import IndexPublisher

__all__ = [
    "CategoryStore",
    "data_file_name",
    "HistoryLedger",
    "filter_unnotified",
    "mark_notified",
    "IndexPublisher",
]
