"""
Article Feed Hub - per-category RSS collector with Discord notifications.

This package fetches the RSS feeds listed in categories.json, keeps the
last 90 days of articles per category as JSON for a static browsing page,
and posts every newly-seen article to the category's Discord webhook once.

Main entry point is the CLI via `feed-hub run` command.

Example:
    $ feed-hub run -c config.yaml --categories categories.json
"""

__all__ = ["__version__", "ArticleRecord", "CategoryStore", "HistoryLedger", "IndexPublisher"]
__version__ = "0.1.0"

from .core.types import ArticleRecord
from .store import CategoryStore, HistoryLedger, IndexPublisher
