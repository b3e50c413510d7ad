"""Tests for the notification history ledger."""

import json
from pathlib import Path

import pytest

from feed_hub.core.types import ArticleRecord
from feed_hub.errors import HistoryPersistenceError
from feed_hub.store.history import HistoryLedger, filter_unnotified, mark_notified


def _record(record_id: str) -> ArticleRecord:
    return ArticleRecord(id=record_id, title=record_id, link=f"https://example.com/{record_id}", pub_date="2024-01-01")


def test_load_missing_returns_empty(tmp_path: Path) -> None:
    assert HistoryLedger(tmp_path / "post-history.json").load() == set()


@pytest.mark.parametrize("content", ["not json", "[]", '{"postedIds": "a"}', "{}"])
def test_load_invalid_returns_empty(tmp_path: Path, content: str) -> None:
    path = tmp_path / "post-history.json"
    path.write_text(content, encoding="utf-8")

    assert HistoryLedger(path).load() == set()


def test_load_non_utf8_returns_empty(tmp_path: Path) -> None:
    path = tmp_path / "post-history.json"
    path.write_bytes(b"\xff\xfe{")

    assert HistoryLedger(path).load() == set()


def test_load_ignores_non_string_ids(tmp_path: Path) -> None:
    path = tmp_path / "post-history.json"
    path.write_text(json.dumps({"postedIds": ["a", 3, None, "", "b"]}), encoding="utf-8")

    assert HistoryLedger(path).load() == {"a", "b"}


def test_save_keeps_only_valid_ids(tmp_path: Path) -> None:
    path = tmp_path / "post-history.json"
    ledger = HistoryLedger(path)

    kept = ledger.save({"a", "b"}, {"a"})

    assert kept == ["a"]
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["postedIds"] == ["a"]
    assert "lastUpdated" in data
    assert ledger.load() == {"a"}


def test_save_requires_sets(tmp_path: Path) -> None:
    ledger = HistoryLedger(tmp_path / "post-history.json")

    with pytest.raises(TypeError):
        ledger.save(["a"], {"a"})


def test_save_failure_raises_history_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    ledger = HistoryLedger(blocker / "post-history.json")

    with pytest.raises(HistoryPersistenceError):
        ledger.save({"a"}, {"a"})


def test_filter_unnotified_excludes_known_ids() -> None:
    articles = [_record("a"), _record("b"), _record("c")]

    assert [r.id for r in filter_unnotified(articles, {"b"})] == ["a", "c"]
    assert HistoryLedger.filter_unnotified(articles, {"a", "c"}) == [articles[1]]


def test_mark_notified_accumulates_in_place() -> None:
    posted = {"a"}

    mark_notified(posted, [_record("b"), _record("c")])

    assert posted == {"a", "b", "c"}
