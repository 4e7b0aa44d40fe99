"""
SHU website parser - turns raw page markup into normalized content records.

Extraction is dispatched on the source's declared type through the
``EXTRACTORS`` registry; unknown types fall back to :func:`extract_generic`.
Announcement snippets on the homepage come from a list of
:class:`AnnouncementMatcher` objects so phrasings can be added without
touching the rest of the pipeline.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from core.interfaces import Parser
from core.models import ContentRecord, ContentType, RawItem


logger = logging.getLogger(__name__)

__all__ = [
    "AnnouncementMatcher",
    "CONTACT_INFO",
    "CONTENT_CAP",
    "DEFAULT_MATCHERS",
    "EXTRACTORS",
    "ShuWebsiteParser",
    "extract_announcements",
    "normalize",
    "register_extractor",
    "truncate",
]


CONTENT_CAP = 5000
TITLE_CAP = 100

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def normalize(html: str) -> str:
    """Strip script/style blocks and markup, collapse whitespace."""
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()


def truncate(text: str, limit: int = CONTENT_CAP) -> str:
    return text[:limit]


# --------------------------------------------------------------------------- #
# Announcements

AnnouncementBuilder = Callable[[str, str, int], ContentRecord]


def announcement_record(snippet: str, source_url: str, position: int) -> ContentRecord:
    return ContentRecord(
        source_url=source_url,
        content_type=ContentType.ANNOUNCEMENT.value,
        title=snippet[:TITLE_CAP],
        content=snippet,
        metadata={"position": position},
    )


@dataclass(frozen=True)
class AnnouncementMatcher:
    """A phrase pattern plus the builder that turns a hit into a record."""
    pattern: re.Pattern
    build: AnnouncementBuilder = announcement_record

    @classmethod
    def compile(cls, expr: str, build: AnnouncementBuilder = announcement_record) -> "AnnouncementMatcher":
        return cls(re.compile(expr, re.IGNORECASE), build)


DEFAULT_MATCHERS: List[AnnouncementMatcher] = [
    AnnouncementMatcher.compile(r"Admissions for Spring 2026 are open"),
    AnnouncementMatcher.compile(r"SHU.*?students.*?secures.*?place"),
    AnnouncementMatcher.compile(r"Training session on"),
]


def extract_announcements(
    html: str,
    source_url: str,
    matchers: Sequence[AnnouncementMatcher] = DEFAULT_MATCHERS,
) -> List[ContentRecord]:
    """Run every matcher over raw markup; records are ordered by document offset.

    Hits never overlap: scanning left to right, a hit starting inside an
    already accepted span is dropped, and at equal offsets the earlier
    matcher wins.
    """
    hits = []
    for rank, matcher in enumerate(matchers):
        for m in matcher.pattern.finditer(html):
            if m.group(0):
                hits.append((m.start(), rank, m.end(), m.group(0), matcher))
    hits.sort(key=lambda h: (h[0], h[1]))

    accepted = []
    last_end = 0
    for start, _, end, snippet, matcher in hits:
        if start < last_end:
            continue
        accepted.append((snippet, matcher))
        last_end = end

    return [
        matcher.build(snippet, source_url, position)
        for position, (snippet, matcher) in enumerate(accepted)
    ]


# --------------------------------------------------------------------------- #
# Per-type extractors

Extractor = Callable[[RawItem, Sequence[AnnouncementMatcher]], List[ContentRecord]]

# Known-good facts; the contact page markup is not trusted.
CONTACT_INFO: Dict[str, str] = {
    "address": "NC-24, Deh Dih, Korangi Creek, Karachi",
    "uan": "021-111 248 338",
    "phone": "021-35122931-35",
    "email": "qec@shu.edu.pk",
}


def _page_metadata(item: RawItem) -> Dict[str, str]:
    return {"scraped_at": item.fetched_at.isoformat()}


def extract_homepage(item: RawItem, matchers: Sequence[AnnouncementMatcher]) -> List[ContentRecord]:
    records = extract_announcements(item.payload, item.source_url, matchers)
    records.append(
        ContentRecord(
            source_url=item.source_url,
            content_type=ContentType.GENERAL.value,
            title="SHU Homepage",
            content=truncate(normalize(item.payload)),
            metadata=_page_metadata(item),
        )
    )
    return records


def extract_contact(item: RawItem, matchers: Sequence[AnnouncementMatcher]) -> List[ContentRecord]:
    return [
        ContentRecord(
            source_url=item.source_url,
            content_type=ContentType.CONTACT.value,
            title="Contact Information",
            content=json.dumps(CONTACT_INFO, separators=(",", ":")),
            metadata=dict(CONTACT_INFO),
        )
    ]


def extract_generic(item: RawItem, matchers: Sequence[AnnouncementMatcher]) -> List[ContentRecord]:
    return [
        ContentRecord(
            source_url=item.source_url,
            content_type=item.content_type,
            title=f"SHU {item.content_type}",
            content=truncate(normalize(item.payload)),
            metadata=_page_metadata(item),
        )
    ]


EXTRACTORS: Dict[str, Extractor] = {
    ContentType.HOMEPAGE.value: extract_homepage,
    ContentType.CONTACT.value: extract_contact,
}


def register_extractor(content_type: str, extractor: Extractor) -> None:
    """Register (or replace) the extractor used for a source type."""
    EXTRACTORS[content_type] = extractor


class ShuWebsiteParser(Parser):
    """Parser stage: RawItem -> List[ContentRecord]."""

    name = "ShuWebsiteParser"

    def __init__(
        self,
        matchers: Optional[Sequence[AnnouncementMatcher]] = None,
        extractors: Optional[Dict[str, Extractor]] = None,
    ) -> None:
        self._matchers = list(DEFAULT_MATCHERS if matchers is None else matchers)
        self._extractors = EXTRACTORS if extractors is None else extractors

    def extractor_for(self, content_type: str) -> Extractor:
        return self._extractors.get(content_type, extract_generic)

    async def parse(self, item: RawItem) -> List[ContentRecord]:
        if not item.payload:
            return []
        extractor = self.extractor_for(item.content_type)
        records = extractor(item, self._matchers)
        logger.info("Extracted %d record(s) from %s (%s)", len(records), item.source_url, item.content_type)
        return records
