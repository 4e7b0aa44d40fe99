"""
Core interfaces for the ingestion pipeline.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import ChangeEvent, ContentRecord, RawItem, Source, StoredContent, utcnow


logger = logging.getLogger(__name__)


class Fetcher(ABC):
    """Abstract base class for page fetchers.

    Fetchers never raise on transport failure; they return empty markup instead.
    """

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this fetcher."""
        pass

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """Return the raw markup for *url*, or ``""`` on any failure."""
        pass

    async def fetch_source(self, source: Source) -> Optional[RawItem]:
        """Fetch a configured source; ``None`` means skip it for this run."""
        html = await self.fetch(source.url)
        if not html:
            logger.warning("No content for %s, skipping source", source.url)
            return None
        return RawItem(
            source_url=source.url,
            content_type=source.type,
            payload=html,
            fetched_at=utcnow(),
        )


class Parser(ABC):
    """Abstract base class for parsers turning raw markup into records."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this parser."""
        pass

    @abstractmethod
    async def parse(self, item: RawItem) -> List[ContentRecord]:
        """Extract zero or more content records from a raw item."""
        pass


class ContentStore(ABC):
    """Narrow read/write contract against the durable content store.

    Implementations raise :class:`core.errors.StoreError` on I/O failure and
    :class:`core.errors.DuplicateContentError` when a key lookup is ambiguous.
    """

    async def __aenter__(self) -> "ContentStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def find_by_key(self, source_url: str, title: str) -> Optional[StoredContent]:
        """Look up the stored record for an identity key."""
        pass

    @abstractmethod
    async def insert(self, record: ContentRecord) -> int:
        """Insert a new record and return its id."""
        pass

    @abstractmethod
    async def update(
        self,
        content_id: int,
        *,
        content: str,
        metadata: Dict[str, Any],
        last_scraped_at: datetime,
    ) -> None:
        """Overwrite the mutable fields of a stored record."""
        pass

    @abstractmethod
    async def log_change(self, event: ChangeEvent) -> None:
        """Append a change event to the change log."""
        pass

    @abstractmethod
    async def recent(self, limit: int) -> List[StoredContent]:
        """Return the most recently scraped records, newest first."""
        pass
