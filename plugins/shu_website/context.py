"""
Read side for the chat assistant: renders the freshest scraped content as a
system-context block.
"""

import logging

from core.interfaces import ContentStore


logger = logging.getLogger(__name__)

ITEM_CONTENT_CAP = 500


async def build_context_block(store: ContentStore, limit: int = 20) -> str:
    """Concatenate the *limit* most recently scraped records, newest first."""
    records = await store.recent(limit)
    if not records:
        return ""

    lines = ["Latest information from the university website:"]
    for rec in records:
        lines.append(f"[{rec.content_type}] {rec.title}: {rec.content[:ITEM_CONTENT_CAP]}")
    logger.debug("Built context block from %d record(s)", len(records))
    return "\n".join(lines)
