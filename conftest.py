"""
Shared fixtures: stub fetchers, an in-memory store and a temporary SQLite store.
"""

import asyncio
import os
import sys
from typing import Dict, List, Optional

import pytest

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import IngestConfig
from core.errors import DuplicateContentError, StoreError
from core.interfaces import ContentStore, Fetcher
from core.models import ChangeEvent, ContentRecord, Source, StoredContent
from plugins.shu_website.store import SqliteContentStore


HOME_URL = "https://shu.edu.pk/"
CONTACT_URL = "https://shu.edu.pk/qec/contact-us/"
PROGRAMS_URL = "https://shu.edu.pk/programs/"
NEWS_URL = "https://shu.edu.pk/news/"

HOMEPAGE_HTML = """
<html><head><style>body { color: red; }</style>
<script>var banner = document.querySelector(".ticker");</script></head>
<body>
  <h1>Welcome to SHU</h1>
  <div class="ticker">Admissions for Spring 2026 are open</div>
  <p>Training session on research ethics this Friday.</p>
</body></html>
"""

PAGES: Dict[str, str] = {
    HOME_URL: HOMEPAGE_HTML,
    CONTACT_URL: "<html><body><p>Call us any time</p></body></html>",
    PROGRAMS_URL: "<html><body><ul><li>BS Computer Science</li><li>MBA</li></ul></body></html>",
    NEWS_URL: "<html><body><article>Convocation held on campus</article></body></html>",
}

ALL_SOURCES = [
    Source(url=HOME_URL, type="homepage"),
    Source(url=CONTACT_URL, type="contact"),
    Source(url=PROGRAMS_URL, type="programs"),
    Source(url=NEWS_URL, type="news"),
]


class StubFetcher(Fetcher):
    """Serves canned markup; unknown URLs behave like a failed fetch."""

    name = "StubFetcher"

    def __init__(self, pages: Dict[str, str]):
        self.pages = dict(pages)
        self.requested: List[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        await asyncio.sleep(0)
        return self.pages.get(url, "")


class MemoryStore(ContentStore):
    """Dict-backed store with switchable failures."""

    def __init__(self):
        self.rows: Dict[int, StoredContent] = {}
        self.events: List[ChangeEvent] = []
        self._next_id = 1
        self.fail_lookup = False
        self.fail_insert = False
        self.fail_update = False
        self.fail_log = False

    def seed(self, record: ContentRecord) -> int:
        """Insert directly, bypassing uniqueness and the change log."""
        content_id = self._next_id
        self._next_id += 1
        self.rows[content_id] = StoredContent(id=content_id, **record.model_dump())
        return content_id

    async def find_by_key(self, source_url: str, title: str) -> Optional[StoredContent]:
        if self.fail_lookup:
            raise StoreError("lookup unavailable")
        await asyncio.sleep(0)
        matches = [r for r in self.rows.values() if r.source_url == source_url and r.title == title]
        if len(matches) > 1:
            raise DuplicateContentError(source_url, title, len(matches))
        return matches[0].model_copy() if matches else None

    async def insert(self, record: ContentRecord) -> int:
        if self.fail_insert:
            raise StoreError("insert rejected")
        await asyncio.sleep(0)
        return self.seed(record)

    async def update(self, content_id, *, content, metadata, last_scraped_at) -> None:
        if self.fail_update:
            raise StoreError("update rejected")
        self.rows[content_id] = self.rows[content_id].model_copy(
            update={"content": content, "metadata": metadata, "last_scraped_at": last_scraped_at}
        )

    async def log_change(self, event: ChangeEvent) -> None:
        if self.fail_log:
            raise StoreError("change log unavailable")
        self.events.append(event)

    async def recent(self, limit: int) -> List[StoredContent]:
        rows = sorted(self.rows.values(), key=lambda r: r.last_scraped_at, reverse=True)
        return rows[:limit]


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
async def sqlite_store(tmp_path):
    store = SqliteContentStore(str(tmp_path / "content.db"))
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def stub_fetcher():
    return StubFetcher(PAGES)


@pytest.fixture
def config(tmp_path):
    return IngestConfig(database_url=str(tmp_path / "content.db"), sources=ALL_SOURCES)
