"""
Pipeline orchestrator: drives each source through Fetch -> Parse -> Reconcile.
"""

import asyncio
import logging
from typing import List, Sequence

from .interfaces import Fetcher, Parser
from .models import ReconcileOutcome, RunSummary, Source, utcnow


logger = logging.getLogger(__name__)


async def _process_source(source: Source, fetcher: Fetcher, parser: Parser, reconciler, summary: RunSummary) -> None:
    """Run one source end to end; records of a source are reconciled in order."""
    item = await fetcher.fetch_source(source)
    if item is None:
        summary.sources_failed += 1
        return

    records = await parser.parse(item)
    for record in records:
        outcome: ReconcileOutcome = await reconciler.reconcile(record)
        summary.record(outcome)


async def run_sources(
    sources: Sequence[Source],
    fetcher: Fetcher,
    parser: Parser,
    reconciler,
) -> RunSummary:
    """Process all sources concurrently and aggregate a summary.

    A source whose fetch fails only lowers the processed count. Any other
    exception (including a duplicate identity key in the store) cancels the
    remaining sources and propagates.
    """
    summary = RunSummary(sources_total=len(sources))

    tasks: List[asyncio.Task] = [
        asyncio.create_task(
            _process_source(source, fetcher, parser, reconciler, summary),
            name=f"source-{source.type}",
        )
        for source in sources
    ]
    try:
        await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    summary.finished_at = utcnow()
    logger.info(
        "Run complete: %d processed (%d new, %d updated, %d unchanged), "
        "%d failed record(s), %d/%d source(s) skipped",
        summary.items_processed,
        summary.inserted,
        summary.updated,
        summary.unchanged,
        summary.failed,
        summary.sources_failed,
        summary.sources_total,
    )
    return summary
