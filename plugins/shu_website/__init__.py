"""
SHU website plugin - fetcher, parser, reconciler and content store.

* :class:`PageFetcher`         – downloads raw markup for each configured source
* :class:`ShuWebsiteParser`    – converts :class:`~core.models.RawItem` -> :class:`~core.models.ContentRecord`
* :class:`Reconciler`          – insert / update / no-op against a :class:`~core.interfaces.ContentStore`
* :class:`SqliteContentStore`  – persists records and change events via :class:`core.infra.db.Database`
"""

from .context import build_context_block
from .fetcher import PageFetcher
from .parser import AnnouncementMatcher, ShuWebsiteParser, normalize, register_extractor
from .reconciler import Reconciler
from .store import SqliteContentStore

__all__ = [
    "AnnouncementMatcher",
    "PageFetcher",
    "Reconciler",
    "ShuWebsiteParser",
    "SqliteContentStore",
    "build_context_block",
    "normalize",
    "register_extractor",
]
