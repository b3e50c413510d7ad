"""
Feed fetching.

This package downloads RSS/Atom feeds and normalizes their entries.
"""

from .feed_client import FeedClient, normalize_entry

__all__ = ["FeedClient", "normalize_entry"]
