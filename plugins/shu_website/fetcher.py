"""
SHU website fetcher - downloads raw page markup for configured sources.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.infra.http import HttpClient
from core.interfaces import Fetcher


logger = logging.getLogger(__name__)

__all__ = ["PageFetcher"]


class PageFetcher(Fetcher):
    """Fetches one page per source; transport failures become empty markup."""

    name = "PageFetcher"

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        user_agent: Optional[str] = None,
        http: Optional[HttpClient] = None,
    ) -> None:
        headers = {"User-Agent": user_agent} if user_agent else None
        self._http = http or HttpClient(
            timeout=timeout,
            max_retries=max_retries,
            default_headers=headers,
        )

    async def close(self) -> None:
        await self._http.close()

    async def fetch(self, url: str) -> str:
        try:
            logger.info("Fetching %s...", url)
            return await self._http.get_text(url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error fetching %s: %r", url, exc)
            return ""
