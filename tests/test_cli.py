"""Tests for the Typer command-line interface."""

import json
from pathlib import Path

from typer.testing import CliRunner

from feed_hub import cli
from feed_hub.errors import HistoryPersistenceError
from feed_hub.runner import RunStats


runner = CliRunner()


def test_run_exits_non_zero_when_categories_missing(tmp_path: Path):
    result = runner.invoke(
        cli.app,
        ["run", "--categories", str(tmp_path / "missing.json"), "--data-dir", str(tmp_path / "data")],
    )

    assert result.exit_code == 1
    assert "Fatal" in result.output


def test_run_exits_non_zero_on_history_failure(tmp_path: Path, monkeypatch):
    def failing_pipeline(cfg, logger=None):
        raise HistoryPersistenceError("disk full")

    monkeypatch.setattr(cli, "run_pipeline", failing_pipeline)

    result = runner.invoke(cli.app, ["run", "--history-file", str(tmp_path / "h.json")])

    assert result.exit_code == 1
    assert "disk full" in result.output


def test_run_applies_overrides_and_prints_summary(tmp_path: Path, monkeypatch):
    seen = {}

    def fake_pipeline(cfg, logger=None):
        seen["cfg"] = cfg
        return RunStats(categories=2, categories_failed=1, notified=3)

    monkeypatch.setattr(cli, "run_pipeline", fake_pipeline)

    result = runner.invoke(
        cli.app,
        [
            "run",
            "--categories",
            str(tmp_path / "categories.json"),
            "--data-dir",
            str(tmp_path / "data"),
            "--history-file",
            str(tmp_path / "history.json"),
            "--log-level",
            "DEBUG",
        ],
    )

    assert result.exit_code == 0
    assert "Run summary" in result.output
    cfg = seen["cfg"]
    assert cfg.storage.categories_file == str(tmp_path / "categories.json")
    assert cfg.storage.data_dir == str(tmp_path / "data")
    assert cfg.storage.history_file == str(tmp_path / "history.json")
    assert cfg.logging.level == "DEBUG"


def test_reindex_writes_index(tmp_path: Path):
    categories = tmp_path / "categories.json"
    categories.write_text(
        json.dumps({"categories": [{"id": "tech", "name": "Tech", "feedUrl": "https://example.com/rss"}]}),
        encoding="utf-8",
    )
    data_dir = tmp_path / "data"

    result = runner.invoke(cli.app, ["reindex", "--categories", str(categories), "--data-dir", str(data_dir)])

    assert result.exit_code == 0
    index = json.loads((data_dir / "index.json").read_text(encoding="utf-8"))
    assert index["categories"][0]["dataFile"] == "tech.json"
