"""
Exception taxonomy for the feed hub.

Errors fall into two groups:
- Per-category errors (FeedFetchError, NotificationError,
  CategoryPersistenceError) are caught at the category boundary by the
  runner and logged; the run continues with the next category.
- Fatal errors (ConfigError, HistoryPersistenceError, IndexPersistenceError)
  propagate out of the run and make the CLI exit non-zero.
"""

from __future__ import annotations


class FeedHubError(Exception):
    """Base class for all feed hub errors."""


class ConfigError(FeedHubError):
    """Application or category configuration is missing or malformed."""


class FeedFetchError(FeedHubError):
    """A feed could not be downloaded or parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch feed {url}: {reason}")
        self.url = url
        self.reason = reason


class NotificationError(FeedHubError):
    """A notification was rejected or could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(FeedHubError):
    """A JSON document could not be written."""


class CategoryPersistenceError(PersistenceError):
    """Writing a category data file failed."""


class HistoryPersistenceError(PersistenceError):
    """Writing the notification history failed."""


class IndexPersistenceError(PersistenceError):
    """Writing the category index failed."""


FATAL_ERRORS = (ConfigError, HistoryPersistenceError, IndexPersistenceError)
