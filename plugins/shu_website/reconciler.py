"""
Reconciler - compares freshly extracted records against stored state and
applies exactly one of insert / update / no-op per record.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Tuple

from core.errors import StoreError
from core.interfaces import ContentStore
from core.models import ChangeEvent, ChangeType, ContentRecord, ReconcileOutcome, utcnow


logger = logging.getLogger(__name__)


class Reconciler:
    """Writes content changes to the store and records a change event for each.

    Read-decide-write for one identity key is serialized with a per-key lock,
    so concurrent sources mapping to the same key cannot race.
    """

    name = "Reconciler"

    def __init__(self, store: ContentStore):
        self.store = store
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)

    async def reconcile(self, record: ContentRecord) -> ReconcileOutcome:
        async with self._locks[record.key]:
            return await self._reconcile(record)

    async def _reconcile(self, record: ContentRecord) -> ReconcileOutcome:
        try:
            existing = await self.store.find_by_key(record.source_url, record.title)
        except StoreError as e:
            logger.error("Error looking up content %r: %s", record.title, e)
            return ReconcileOutcome.FAILED

        if existing is None:
            return await self._insert(record)

        if existing.content == record.content:
            logger.debug("Unchanged content: %s", record.title)
            return ReconcileOutcome.UNCHANGED

        return await self._update(existing.id, existing.content, record)

    async def _insert(self, record: ContentRecord) -> ReconcileOutcome:
        stamped = record.model_copy(update={"last_scraped_at": utcnow()})
        try:
            content_id = await self.store.insert(stamped)
        except StoreError as e:
            logger.error("Error inserting content %r: %s", record.title, e)
            return ReconcileOutcome.FAILED

        await self._log_change(
            ChangeEvent(
                content_id=content_id,
                change_type=ChangeType.NEW,
                new_content=record.content,
            )
        )
        logger.info("Inserted new content: %s", record.title)
        return ReconcileOutcome.INSERTED

    async def _update(self, content_id: int, previous: str, record: ContentRecord) -> ReconcileOutcome:
        try:
            await self.store.update(
                content_id,
                content=record.content,
                metadata=record.metadata,
                last_scraped_at=utcnow(),
            )
        except StoreError as e:
            logger.error("Error updating content %r: %s", record.title, e)
            return ReconcileOutcome.FAILED

        await self._log_change(
            ChangeEvent(
                content_id=content_id,
                change_type=ChangeType.UPDATED,
                previous_content=previous,
                new_content=record.content,
            )
        )
        logger.info("Updated content: %s", record.title)
        return ReconcileOutcome.UPDATED

    async def _log_change(self, event: ChangeEvent) -> None:
        # The content write already happened and is kept even if this fails.
        try:
            await self.store.log_change(event)
        except StoreError as e:
            logger.error(
                "Content %s was written but its %s change event was not logged: %s",
                event.content_id,
                event.change_type.value,
                e,
            )
