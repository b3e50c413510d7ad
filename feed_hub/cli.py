"""
Command-line interface for the feed hub.

Uses Typer to provide a CLI with options for the main storage and logging
settings. Supports loading .env files so webhook URLs can be referenced by
environment variable name from categories.json.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .errors import FATAL_ERRORS
from .runner import RunStats, republish_index, run_pipeline
from .utils.logging import setup_logging

try:
    from dotenv import load_dotenv
except ImportError:
    load_dotenv = None

app = typer.Typer(add_completion=False)
console = Console()


def _load(
    config: Path | None,
    categories: Path | None,
    data_dir: Path | None,
) -> AppConfig:
    # Load environment variables from .env if available
    if load_dotenv is not None:
        load_dotenv()

    cfg = load_config(str(config) if config else None)
    if categories is not None:
        cfg.storage.categories_file = str(categories)
    if data_dir is not None:
        cfg.storage.data_dir = str(data_dir)
    return cfg


@app.command()
def run(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    categories: Path | None = typer.Option(None, "--categories", help="Category JSON file."),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory for category JSON files."),
    history_file: Path | None = typer.Option(None, "--history-file", help="Notification history file."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_format: str | None = typer.Option(
        None, "--log-format", help="Log file format: jsonl or plain."
    ),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
):
    """Fetch all category feeds, post new articles and republish the index.

    Exits with status 1 when the configuration cannot be loaded or when
    the history or index cannot be written. Failures inside a single
    category are logged and do not change the exit status.
    """
    try:
        cfg = _load(config, categories, data_dir)
    except FATAL_ERRORS as exc:
        console.print(f"[red]Fatal:[/red] {exc}")
        raise typer.Exit(code=1)

    if history_file is not None:
        cfg.storage.history_file = str(history_file)
    if log_level:
        cfg.logging.level = log_level
    if log_format:
        cfg.logging.format = log_format
    if log_file is not None:
        cfg.logging.file = log_file

    logger = setup_logging(cfg.logging)
    try:
        stats = run_pipeline(cfg, logger=logger)
    except FATAL_ERRORS as exc:
        logger.error(f"Run aborted: {exc}", extra={"event": "run_aborted", "error": str(exc)})
        console.print(f"[red]Fatal:[/red] {exc}")
        raise typer.Exit(code=1)

    _render_stats(stats)


@app.command()
def reindex(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    categories: Path | None = typer.Option(None, "--categories", help="Category JSON file."),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory for category JSON files."),
):
    """Rebuild index.json from the stored category files without fetching."""
    try:
        cfg = _load(config, categories, data_dir)
        setup_logging(cfg.logging)
        index = republish_index(cfg)
    except FATAL_ERRORS as exc:
        console.print(f"[red]Fatal:[/red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"Index written with {len(index['categories'])} categories")


def _render_stats(stats: RunStats) -> None:
    table = Table(title="Run summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Categories", str(stats.categories))
    table.add_row("Failed categories", str(stats.categories_failed))
    table.add_row("Fetched", str(stats.fetched))
    table.add_row("New", str(stats.new))
    table.add_row("Notified", str(stats.notified))
    table.add_row("Notification failures", str(stats.notify_failures))
    table.add_row("Stored", str(stats.persisted))
    table.add_row("History size", str(stats.history_size))
    console.print(table)


if __name__ == "__main__":
    app()
