"""
HTTP fetcher with retries and backoff.

Failures never reach the extraction engine: the fetcher either returns a
document or raises FetchError to the tool layer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from appscout.config import DEFAULT_USER_AGENT, Settings, get_settings
from appscout.errors import FetchError
from appscout.extract.scripts import parse_fragment


logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status: int = 0
    text: str = ""
    content_type: str = ""
    attempts: int = 0
    elapsed_ms: float = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type.lower()


class HttpFetcher:
    """
    Async HTTP fetcher with retries and exponential backoff.

    Retries 5xx, 429 (honouring Retry-After), timeouts and connection
    errors; any other 4xx fails immediately.
    """

    def __init__(
        self,
        timeout_s: float = 30.0,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        user_agent: Optional[str] = None,
        accept_language: str = "en-US,en;q=0.9",
        session: Optional[Any] = None,
    ):
        self.timeout_s = timeout_s
        self.max_attempts = max(1, max_attempts)
        self.base_delay_ms = base_delay_ms
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.accept_language = accept_language
        self._session = session
        # A session handed in by the caller is the caller's to close
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "HttpFetcher":
        settings = settings or get_settings()
        return cls(
            timeout_s=settings.request_timeout_s,
            max_attempts=settings.max_attempts,
            base_delay_ms=settings.backoff_base_ms,
            user_agent=settings.user_agent,
            accept_language=settings.accept_language,
            **kwargs,
        )

    async def __aenter__(self) -> "HttpFetcher":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None or (self._owns_session and self._session.closed):
            connector = aiohttp.TCPConnector(
                limit=20,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            headers = {
                "User-Agent": self.user_agent,
                "Accept": "application/json, text/html, */*",
                "Accept-Language": self.accept_language,
            }
            self._session = aiohttp.ClientSession(connector=connector, headers=headers)
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """
        Fetch a URL with retries and backoff. Raises FetchError.
        """
        if self._session is None:
            await self.start()

        start_time = time.time()
        last_status: Optional[int] = None
        last_error = ""

        for attempt in range(self.max_attempts):
            delay = 0
            try:
                timeout = aiohttp.ClientTimeout(total=self.timeout_s)
                async with self._session.get(url, timeout=timeout, headers=headers, allow_redirects=True) as resp:
                    last_status = resp.status

                    if resp.status in RETRYABLE_STATUSES:
                        if resp.status == 429:
                            delay = self._parse_retry_after(resp.headers.get("Retry-After", ""), attempt)
                            last_error = "rate limited"
                        else:
                            delay = self._backoff_delay(attempt)
                            last_error = "server error"
                    elif resp.status >= 400:
                        # Client errors - don't retry
                        raise FetchError(url, status=resp.status, reason=resp.reason or "")
                    else:
                        text = await resp.text(errors="replace")
                        return FetchResult(
                            url=url,
                            status=resp.status,
                            text=text,
                            content_type=resp.headers.get("Content-Type", ""),
                            attempts=attempt + 1,
                            elapsed_ms=(time.time() - start_time) * 1000,
                        )

            except asyncio.TimeoutError:
                last_status = None
                last_error = "timeout"
                delay = self._backoff_delay(attempt)

            except aiohttp.ClientError as e:
                last_status = None
                last_error = str(e) or type(e).__name__
                delay = self._backoff_delay(attempt)

            if attempt + 1 < self.max_attempts:
                logger.warning(
                    "Fetch attempt %d/%d for %s failed (%s), retrying in %dms",
                    attempt + 1,
                    self.max_attempts,
                    url,
                    f"HTTP {last_status}" if last_status else last_error,
                    delay,
                )
                await asyncio.sleep(delay / 1000)

        raise FetchError(url, status=last_status, reason=last_error or "max attempts exceeded")

    async def fetch_text(self, url: str) -> str:
        """Fetch an HTML / text document."""
        result = await self.fetch(url)
        return result.text

    async def fetch_json(self, url: str) -> Any:
        """Fetch and parse a JSON document. Raises FetchError when the body is not JSON."""
        result = await self.fetch(url, headers={"Accept": "application/json"})
        data = parse_fragment(result.text.strip())
        if data is None:
            raise FetchError(url, status=result.status, reason="response is not JSON")
        return data

    def _backoff_delay(self, attempt: int) -> int:
        """Calculate exponential backoff delay in milliseconds."""
        return self.base_delay_ms * (2 ** attempt)

    def _parse_retry_after(self, header: str, attempt: int) -> int:
        """Parse Retry-After header or use backoff."""
        if not header:
            return self._backoff_delay(attempt)
        try:
            # Try as seconds
            return int(header) * 1000
        except ValueError:
            pass
        # Default to backoff
        return self._backoff_delay(attempt)
