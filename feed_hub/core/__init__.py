"""
Core domain models and record transforms.

This package contains data types and pure logic that is independent of
storage, HTTP and the run orchestration.
"""

from .types import ArticleRecord
from .merge import filter_since, merge_by_identity, retain_recent, sort_by_pub_date

__all__ = [
    "ArticleRecord",
    "merge_by_identity",
    "sort_by_pub_date",
    "retain_recent",
    "filter_since",
]
