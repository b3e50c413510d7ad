"""
Run orchestration for the feed hub.

One run walks the configured categories sequentially:

    FETCH -> (first-run date filter) -> dedup against history -> NOTIFY
          -> PERSIST merged category

and then, unconditionally:

    PRUNE HISTORY -> PUBLISH INDEX -> CLEANUP ORPHANS

A failure inside one category is logged and the run moves on; failures in
the end-of-run steps propagate and are fatal.

All run state lives in a RunContext passed to each step.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
import logging
from pathlib import Path

from .config import AppConfig, CategoryConfig, load_categories, resolve_notify_target
from .core.dates import utc_now
from .core.merge import filter_since, retain_recent
from .core.types import ArticleRecord
from .errors import FeedFetchError, NotificationError, PersistenceError
from .fetch.feed_client import FeedClient
from .notify.discord import DiscordNotifier
from .store.category_store import CategoryStore
from .store.history import HistoryLedger, filter_unnotified, mark_notified
from .store.index_publisher import IndexPublisher
from .utils.logging import LOGGER_NAME, log_event


@dataclass
class RunStats:
    """Counters collected during one run.

    Attributes:
        categories: Number of configured categories
        categories_failed: Categories aborted by an error
        fetched: Records returned by all feeds (after the first-run filter)
        new: Records not yet in history
        notified: Records successfully posted
        notify_failures: Categories whose posting stopped on an error
        persisted: Records held by all categories after their merge
        history_size: Ids kept in history after pruning
    """

    categories: int = 0
    categories_failed: int = 0
    fetched: int = 0
    new: int = 0
    notified: int = 0
    notify_failures: int = 0
    persisted: int = 0
    history_size: int = 0


@dataclass
class RunContext:
    cfg: AppConfig
    categories: list[CategoryConfig]
    store: CategoryStore
    ledger: HistoryLedger
    publisher: IndexPublisher
    feed_client: FeedClient
    notifier: DiscordNotifier
    logger: logging.Logger
    now: datetime
    posted_ids: set[str] = field(default_factory=set)
    is_first_run: bool = False
    stats: RunStats = field(default_factory=RunStats)


def build_context(
    cfg: AppConfig,
    categories: list[CategoryConfig],
    logger: logging.Logger | None = None,
    feed_client: FeedClient | None = None,
    notifier: DiscordNotifier | None = None,
    now: datetime | None = None,
) -> RunContext:
    """Wire the run components and load history.

    First-run detection is based on the loaded history being empty.
    """
    store = CategoryStore(Path(cfg.storage.data_dir), retention_days=cfg.run.retention_days)
    ledger = HistoryLedger(Path(cfg.storage.history_file))
    posted_ids = ledger.load()

    return RunContext(
        cfg=cfg,
        categories=list(categories),
        store=store,
        ledger=ledger,
        publisher=IndexPublisher(store, cfg.storage.index_filename),
        feed_client=feed_client or FeedClient(cfg.fetch),
        notifier=notifier or DiscordNotifier(cfg.notify),
        logger=logger or logging.getLogger(LOGGER_NAME),
        now=now or utc_now(),
        posted_ids=posted_ids,
        is_first_run=not posted_ids,
        stats=RunStats(categories=len(categories)),
    )


async def run_once(ctx: RunContext) -> RunStats:
    """Process every category, then prune history and republish the index."""
    log_event(
        ctx.logger,
        "Run start",
        event="run_start",
        categories=len(ctx.categories),
        first_run=ctx.is_first_run,
        known_ids=len(ctx.posted_ids),
    )
    if ctx.is_first_run:
        log_event(
            ctx.logger,
            f"First run: only records from the last {ctx.cfg.run.filter_days} days are ingested",
            event="first_run",
            filter_days=ctx.cfg.run.filter_days,
        )

    for category in ctx.categories:
        try:
            await process_category(ctx, category)
        except Exception as exc:  # noqa: BLE001
            ctx.stats.categories_failed += 1
            ctx.logger.error(
                f"[{category.name}] category failed: {exc}",
                exc_info=not isinstance(exc, (FeedFetchError, PersistenceError)),
                extra={"event": "category_failed", "category": category.id, "error": str(exc)},
            )

    finish_run(ctx)
    log_event(ctx.logger, "Run complete", event="run_complete", **vars(ctx.stats))
    return ctx.stats


async def process_category(ctx: RunContext, category: CategoryConfig) -> None:
    log_event(ctx.logger, f"[{category.name}] fetching {category.feed_url}", event="category_start", category=category.id)
    records = await ctx.feed_client.fetch_feed(category.feed_url)
    fetched_count = len(records)

    if ctx.is_first_run:
        records = filter_since(records, ctx.cfg.run.filter_days, ctx.now)
        log_event(
            ctx.logger,
            f"[{category.name}] first run: {len(records)} of {fetched_count} records are recent enough",
            event="first_run_filter",
            category=category.id,
            kept=len(records),
            fetched=fetched_count,
        )
    ctx.stats.fetched += len(records)

    # History only keeps ids that some category still stores.
    new_records = retain_recent(
        filter_unnotified(records, ctx.posted_ids),
        ctx.cfg.run.retention_days,
        ctx.now,
    )
    ctx.stats.new += len(new_records)

    if new_records:
        log_event(
            ctx.logger,
            f"[{category.name}] {len(new_records)} new records",
            event="category_new",
            category=category.id,
            new=len(new_records),
        )
        await notify_new(ctx, category, new_records)
    else:
        log_event(ctx.logger, f"[{category.name}] no new records", event="category_new", category=category.id, new=0)

    persisted = ctx.store.merge(
        category.id,
        category.name,
        records,
        site_name_fallback=category.site_name,
        now=ctx.now,
    )
    ctx.stats.persisted += len(persisted)


async def notify_new(ctx: RunContext, category: CategoryConfig, records: list[ArticleRecord]) -> int:
    """Post new records one by one, marking each only after it succeeds.

    The first NotificationError stops posting for the category; the
    remaining records stay unmarked and are retried on a later run.

    Returns:
        Number of records posted
    """
    destination = resolve_notify_target(category.notify_target)
    if destination is None:
        ctx.logger.warning(
            f"[{category.name}] no webhook configured, skipping notifications",
            extra={"event": "notify_skipped", "category": category.id, "target": category.notify_target},
        )
        return 0

    posted = 0
    for position, record in enumerate(records):
        try:
            await ctx.notifier.notify(destination, record, category.name)
        except NotificationError as exc:
            ctx.stats.notify_failures += 1
            ctx.logger.error(
                f"[{category.name}] notification failed, {len(records) - posted} records left for next run: {exc}",
                extra={"event": "notify_failed", "category": category.id, "article_id": record.id},
            )
            break
        mark_notified(ctx.posted_ids, [record])
        posted += 1
        if position < len(records) - 1:
            await ctx.notifier.pause()

    ctx.stats.notified += posted
    log_event(ctx.logger, f"[{category.name}] posted {posted} records", event="notify_done", category=category.id, posted=posted)
    return posted


def finish_run(ctx: RunContext) -> None:
    """Prune and save history, publish the index, remove orphan files.

    HistoryPersistenceError and IndexPersistenceError propagate.
    """
    valid_ids: set[str] = set()
    for category in ctx.categories:
        valid_ids.update(record.id for record in ctx.store.load(category.id))

    kept = ctx.ledger.save(ctx.posted_ids, valid_ids)
    ctx.stats.history_size = len(kept)

    ctx.publisher.publish(ctx.categories)
    ctx.publisher.cleanup_orphans(ctx.categories)


def run_pipeline(
    cfg: AppConfig,
    logger: logging.Logger | None = None,
    feed_client: FeedClient | None = None,
    notifier: DiscordNotifier | None = None,
) -> RunStats:
    """Load categories and execute one full run.

    Raises:
        ConfigError: If the category file is missing or malformed, or the
            display timezone is unknown
        HistoryPersistenceError: If history cannot be saved
        IndexPersistenceError: If the index cannot be written
    """
    categories = load_categories(cfg.storage.categories_file, cfg.storage.index_filename)
    ctx = build_context(cfg, categories, logger=logger, feed_client=feed_client, notifier=notifier)
    return asyncio.run(run_once(ctx))


def republish_index(cfg: AppConfig) -> dict:
    """Rebuild index.json and remove orphan files without fetching."""
    categories = load_categories(cfg.storage.categories_file, cfg.storage.index_filename)
    store = CategoryStore(Path(cfg.storage.data_dir), retention_days=cfg.run.retention_days)
    publisher = IndexPublisher(store, cfg.storage.index_filename)
    index = publisher.publish(categories)
    publisher.cleanup_orphans(categories)
    return index
