"""
Core data types for the feed hub.

ArticleRecord is the normalized unit flowing through the pipeline. Its
persisted JSON shape uses camelCase keys because the static browsing page
reads the category files directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ArticleRecord:
    """A normalized feed item.

    Attributes:
        id: Stable identity (feed guid, or the link when absent); the merge key
        title: The article headline
        link: URL of the original article
        pub_date: ISO 8601 UTC timestamp, normalized at ingestion
        content_snippet: Plain-text summary, possibly empty
        site_name: Publication name, possibly empty until merged
    """

    id: str
    title: str
    link: str
    pub_date: str
    content_snippet: str = ""
    site_name: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "pubDate": self.pub_date,
            "contentSnippet": self.content_snippet,
            "siteName": self.site_name,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ArticleRecord | None:
        """Decode a persisted record; returns None when it has no usable id."""
        if not isinstance(data, dict):
            return None
        record_id = data.get("id")
        if not isinstance(record_id, str) or not record_id:
            return None
        return cls(
            id=record_id,
            title=_str(data.get("title")),
            link=_str(data.get("link")),
            pub_date=_str(data.get("pubDate")),
            content_snippet=_str(data.get("contentSnippet")),
            site_name=_str(data.get("siteName")),
        )


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""
