"""
http.py – Async HTTP client built on *aiohttp* with bounded timeouts,
          retries with back-off for 429 / 5xx / network errors and
          per-instance default headers.
"""

from __future__ import annotations

import asyncio
import email.utils
import logging
import random
import time
from datetime import timezone
from typing import Dict, Mapping, Optional

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "shu-content-ingest/1.0 (+https://shu.edu.pk/)"


class HttpClient:
    """
    Thin wrapper over *aiohttp.ClientSession* adding:

    * a total per-request timeout (a timed-out request counts as a failed attempt)
    * exponential back-off **with jitter** for 429 / 5xx / network errors
    * transparent parsing of *Retry-After* header
    * async context-manager support
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._external_session = session
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._default_headers: Dict[str, str] = {"User-Agent": DEFAULT_USER_AGENT}
        self._default_headers.update(default_headers or {})

    # ---------------------------------------------- #
    # Async context-manager
    async def __aenter__(self) -> "HttpClient":  # noqa: D401
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        await self.close()

    # ---------------------------------------------- #
    # Session management
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._external_session:
            return self._external_session
        if self._own_session is None or self._own_session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._own_session = aiohttp.ClientSession(timeout=timeout)
        return self._own_session

    async def close(self) -> None:
        if self._own_session and not self._own_session.closed:
            await self._own_session.close()
            self._own_session = None

    # ---------------------------------------------- #
    # Internal helpers
    @staticmethod
    def _parse_retry_after(header_val: str | None) -> Optional[float]:
        """Return seconds given a Retry-After header value."""
        if not header_val:
            return None
        header_val = header_val.strip()
        if header_val.isdigit():
            return float(header_val)
        try:
            retry_at = email.utils.parsedate_to_datetime(header_val)
        except (TypeError, ValueError):
            return None
        if retry_at is None:
            return None
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=timezone.utc)
        return max(0.0, retry_at.timestamp() - time.time())

    def _backoff(self, attempt: int, retry_after: Optional[float]) -> float:
        if retry_after is not None:
            return min(retry_after, self._max_delay)
        exponential = min(self._base_delay * 2 ** (attempt - 1), self._max_delay)
        return exponential + random.uniform(0, self._base_delay)

    async def _request_text(
        self,
        method: str,
        url: str,
        *,
        retry_for_status: tuple[int, ...] = (429, 500, 502, 503, 504),
        headers: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> str:
        """Perform a request with retries and return the decoded body."""
        session = await self._ensure_session()
        merged = {**self._default_headers, **(headers or {})}
        timeout = aiohttp.ClientTimeout(total=self._timeout)

        for attempt in range(1, self._max_retries + 1):
            retry_after: Optional[float] = None
            try:
                async with session.request(
                    method, url, headers=merged, timeout=timeout, **kwargs
                ) as resp:
                    if resp.status in retry_for_status:
                        retry_after = self._parse_retry_after(resp.headers.get("Retry-After"))
                        raise aiohttp.ClientResponseError(
                            resp.request_info,
                            resp.history,
                            status=resp.status,
                            message=f"retryable status {resp.status}",
                            headers=resp.headers,
                        )
                    resp.raise_for_status()
                    return await resp.text()
            except aiohttp.ClientResponseError as e:
                if e.status not in retry_for_status or attempt == self._max_retries:
                    logger.error("HTTP %s %s failed after %d attempt(s): %s", method, url, attempt, e)
                    raise
                err: Exception = e
            except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
                if attempt == self._max_retries:
                    logger.error("HTTP %s %s failed after %d attempt(s): %r", method, url, attempt, e)
                    raise
                err = e

            sleep_seconds = self._backoff(attempt, retry_after)
            logger.warning(
                "HTTP %s %s failed (attempt %d/%d – will retry in %.1fs): %s",
                method,
                url,
                attempt,
                self._max_retries,
                sleep_seconds,
                (str(err) or repr(err)).splitlines()[0],
            )
            await asyncio.sleep(sleep_seconds)

        # Should never hit here
        raise RuntimeError("Unreachable retry loop")

    # ---------------------------------------------- #
    # Public helpers
    async def get_text(self, url: str, **kwargs) -> str:
        return await self._request_text("GET", url, **kwargs)
