"""
Tests for insert / update / no-op reconciliation and its failure handling.
"""

import asyncio

import pytest

from core.errors import DuplicateContentError
from core.models import ChangeType, ContentRecord, ReconcileOutcome
from plugins.shu_website.reconciler import Reconciler


URL = "https://shu.edu.pk/news/"


def _record(content, title="SHU news", metadata=None):
    return ContentRecord(
        source_url=URL,
        content_type="news",
        title=title,
        content=content,
        metadata=metadata or {},
    )


async def test_insert_path(memory_store):
    outcome = await Reconciler(memory_store).reconcile(_record("A"))

    assert outcome is ReconcileOutcome.INSERTED
    [stored] = memory_store.rows.values()
    assert stored.content == "A"
    assert stored.last_scraped_at is not None
    [event] = memory_store.events
    assert event.change_type is ChangeType.NEW
    assert event.content_id == stored.id
    assert event.new_content == "A"
    assert event.previous_content is None


async def test_update_path(memory_store):
    content_id = memory_store.seed(_record("A"))

    outcome = await Reconciler(memory_store).reconcile(_record("B", metadata={"scraped_at": "now"}))

    assert outcome is ReconcileOutcome.UPDATED
    stored = memory_store.rows[content_id]
    assert stored.content == "B"
    assert stored.metadata == {"scraped_at": "now"}
    assert stored.last_scraped_at is not None
    [event] = memory_store.events
    assert event.change_type is ChangeType.UPDATED
    assert (event.previous_content, event.new_content) == ("A", "B")


async def test_noop_path_writes_nothing(memory_store):
    content_id = memory_store.seed(_record("A", metadata={"v": 1}))
    before = memory_store.rows[content_id].model_copy()

    outcome = await Reconciler(memory_store).reconcile(_record("A", metadata={"v": 2}))

    assert outcome is ReconcileOutcome.UNCHANGED
    assert memory_store.rows[content_id] == before
    assert memory_store.events == []


async def test_whitespace_difference_counts_as_change(memory_store):
    memory_store.seed(_record("A"))
    assert await Reconciler(memory_store).reconcile(_record("A ")) is ReconcileOutcome.UPDATED


async def test_insert_failure_is_isolated(memory_store):
    memory_store.fail_insert = True
    reconciler = Reconciler(memory_store)

    assert await reconciler.reconcile(_record("A")) is ReconcileOutcome.FAILED
    assert memory_store.rows == {}
    assert memory_store.events == []

    memory_store.fail_insert = False
    assert await reconciler.reconcile(_record("B", title="other")) is ReconcileOutcome.INSERTED


async def test_update_failure_leaves_record_and_log_untouched(memory_store):
    content_id = memory_store.seed(_record("A"))
    memory_store.fail_update = True

    assert await Reconciler(memory_store).reconcile(_record("B")) is ReconcileOutcome.FAILED
    assert memory_store.rows[content_id].content == "A"
    assert memory_store.events == []


async def test_lookup_failure_skips_record(memory_store):
    memory_store.fail_lookup = True
    assert await Reconciler(memory_store).reconcile(_record("A")) is ReconcileOutcome.FAILED
    assert memory_store.rows == {}


async def test_change_log_failure_keeps_content_write(memory_store, caplog):
    memory_store.fail_log = True

    outcome = await Reconciler(memory_store).reconcile(_record("A"))

    assert outcome is ReconcileOutcome.INSERTED
    assert [r.content for r in memory_store.rows.values()] == ["A"]
    assert memory_store.events == []
    assert "was written but its new change event was not logged" in caplog.text


async def test_duplicate_identity_key_is_surfaced(memory_store):
    memory_store.seed(_record("A"))
    memory_store.seed(_record("A2"))

    with pytest.raises(DuplicateContentError) as exc_info:
        await Reconciler(memory_store).reconcile(_record("B"))

    assert exc_info.value.count == 2
    assert memory_store.events == []


async def test_concurrent_reconciles_of_one_key_are_serialized(memory_store):
    reconciler = Reconciler(memory_store)

    outcomes = await asyncio.gather(*(reconciler.reconcile(_record("A")) for _ in range(5)))

    assert sorted(o.value for o in outcomes) == ["inserted"] + ["unchanged"] * 4
    assert len(memory_store.rows) == 1
    assert len(memory_store.events) == 1
