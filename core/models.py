"""
Core data models for the content ingestion pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class ContentType(str, Enum):
    """Known content tags. Sources may declare other types as well."""
    HOMEPAGE = "homepage"
    ANNOUNCEMENT = "announcement"
    CONTACT = "contact"
    PROGRAMS = "programs"
    NEWS = "news"
    GENERAL = "general"
    GENERIC = "generic"


class ChangeType(str, Enum):
    NEW = "new"
    UPDATED = "updated"


class Source(BaseModel):
    """One configured page the pipeline fetches each run."""
    url: str
    type: str


class RawItem(BaseModel):
    """Raw markup fetched from a source."""
    source_url: str
    content_type: str
    payload: str
    fetched_at: datetime = Field(default_factory=utcnow)


class ContentRecord(BaseModel):
    """A normalized unit of ingested website content.

    ``(source_url, title)`` is the identity key used for reconciliation.
    """
    source_url: str
    content_type: str
    title: str
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    last_scraped_at: Optional[datetime] = None

    @property
    def key(self) -> tuple:
        return (self.source_url, self.title)


class StoredContent(ContentRecord):
    """A ContentRecord as read back from the store."""
    id: int


class ChangeEvent(BaseModel):
    """Append-only audit entry for a content creation or mutation."""
    content_id: int
    change_type: ChangeType
    previous_content: Optional[str] = None
    new_content: str
    created_at: datetime = Field(default_factory=utcnow)


class ReconcileOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class RunSummary(BaseModel):
    """Aggregated result of one pipeline run."""
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    sources_total: int = 0
    sources_failed: int = 0
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def items_processed(self) -> int:
        return self.inserted + self.updated + self.unchanged

    def record(self, outcome: ReconcileOutcome) -> None:
        if outcome is ReconcileOutcome.INSERTED:
            self.inserted += 1
        elif outcome is ReconcileOutcome.UPDATED:
            self.updated += 1
        elif outcome is ReconcileOutcome.UNCHANGED:
            self.unchanged += 1
        else:
            self.failed += 1

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": f"Successfully scraped and stored {self.items_processed} items",
            "itemsProcessed": self.items_processed,
        }
