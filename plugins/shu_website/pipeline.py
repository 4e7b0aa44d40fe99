"""
One-shot SHU website ingestion run wired from an :class:`IngestConfig`.
"""

import logging
from typing import Optional

from core.config import IngestConfig
from core.interfaces import ContentStore
from core.models import RunSummary
from core.pipeline_orchestrator import run_sources

from .fetcher import PageFetcher
from .parser import ShuWebsiteParser
from .reconciler import Reconciler
from .store import SqliteContentStore


logger = logging.getLogger(__name__)


async def run_once(
    config: IngestConfig,
    *,
    store: Optional[ContentStore] = None,
    fetcher: Optional[PageFetcher] = None,
    parser: Optional[ShuWebsiteParser] = None,
) -> RunSummary:
    """Fetch, extract and reconcile every configured source exactly once."""
    store = store or SqliteContentStore(config.database_url)
    fetcher = fetcher or PageFetcher(
        timeout=config.fetch_timeout,
        max_retries=config.max_retries,
        user_agent=config.user_agent,
    )
    parser = parser or ShuWebsiteParser()

    logger.info("Starting ingestion run over %d source(s)", len(config.sources))
    async with store, fetcher:
        return await run_sources(config.sources, fetcher, parser, Reconciler(store))
