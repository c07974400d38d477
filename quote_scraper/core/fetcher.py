"""
HTTP Fetcher - Quote Page Request Module
========================================

Async HTTP client for quote page scraping with:
- Async requests via httpx
- Allowed-domain enforcement (requests elsewhere, redirects included, are never sent)
- Per-domain parallelism and random delay (DomainLimiter)
- User-Agent and Referer rotation
- Per-request timeout covering the whole exchange
- Optional exponential backoff retries for transient failures
"""

import asyncio
from typing import Iterable, Optional

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from quote_scraper.core.config import ScraperConfig
from quote_scraper.core.errors import ScrapeError
from quote_scraper.utils.headers import HeaderManager
from quote_scraper.utils.logger import get_logger
from quote_scraper.utils.rate_limiter import DomainLimiter, LimitRule

log = get_logger(__name__)


class FetcherException(ScrapeError):
    """Base exception for fetcher errors"""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("source", "http")
        super().__init__(message, **kwargs)


class RateLimitException(FetcherException):
    """Raised when server returns 429 Too Many Requests"""


class BlockedException(FetcherException):
    """Raised when server returns 403 Forbidden"""


class HttpStatusError(FetcherException):
    """Raised for any other 4xx/5xx response"""


class DomainNotAllowedError(FetcherException):
    """Raised when a URL (or a redirect target) is outside the allowed domains"""


class Fetcher:
    """
    HTTP client for quote pages.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        allowed_domains: Optional[Iterable[str]] = None,
        limiter: Optional[DomainLimiter] = None,
        header_manager: Optional[HeaderManager] = None,
        timeout: float = 30.0,
        max_retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.allowed_domains = {domain.lower() for domain in (allowed_domains or [])}
        self.limiter = limiter or DomainLimiter()
        self.header_manager = header_manager or HeaderManager()
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

        self.client = self._create_client()
        log.info(
            "Fetcher initialized: allowed_domains={}, timeout={}s, max_retries={}",
            sorted(self.allowed_domains) or "any",
            timeout,
            max_retries,
        )

    @classmethod
    def from_config(cls, config: ScraperConfig, **kwargs) -> "Fetcher":
        limiter = DomainLimiter([
            LimitRule(
                domain_glob=config.domain_glob,
                parallelism=config.parallelism,
                random_delay=config.random_delay_seconds,
            )
        ])
        return cls(
            allowed_domains=config.allowed_domains,
            limiter=limiter,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
            **kwargs,
        )

    def _create_client(self) -> httpx.AsyncClient:
        client_kwargs = {
            "timeout": httpx.Timeout(self.timeout),
            "follow_redirects": True,
            "event_hooks": {"request": [self._check_request_domain]},
        }
        if self._transport is not None:
            client_kwargs["transport"] = self._transport
        return httpx.AsyncClient(**client_kwargs)

    def is_allowed(self, url) -> bool:
        if not self.allowed_domains:
            return True
        host = httpx.URL(str(url)).host.lower()
        return host in self.allowed_domains

    async def _check_request_domain(self, request: httpx.Request) -> None:
        # Runs before every send, redirect hops included
        if not self.is_allowed(request.url):
            raise DomainNotAllowedError(f"Redirected outside allowed domains: {request.url}", url=str(request.url))

    async def close(self):
        """Close the underlying HTTP client"""
        await self.client.aclose()
        log.info("Fetcher client closed (limits: {})", self.limiter.get_stats())

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "Fetch attempt {} failed: {}. Retrying in {:.2f}s...",
            retry_state.attempt_number,
            exc,
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
        )

    async def _do_fetch(self, url: str) -> httpx.Response:
        """Single request: hold a limiter slot, send, classify the status."""
        async with self.limiter.slot(url):
            headers = self.header_manager.get_headers(url)
            log.debug("Fetching {}", url)
            # httpx timeouts apply per phase; wait_for bounds the whole request
            response = await asyncio.wait_for(self.client.get(url, headers=headers), self.timeout)
        self.header_manager.remember(url)

        status = response.status_code
        if status == 429:
            raise RateLimitException(f"Server returned 429 for {url}", status_code=status, url=url)
        if status == 403:
            raise BlockedException(f"403 Forbidden for {url}", status_code=status, url=url)
        if status >= 400:
            raise HttpStatusError(f"Server returned {status} for {url}", status_code=status, url=url)
        return response

    async def fetch_html(self, url: str) -> str:
        """
        Fetch HTML content from a URL.

        Raises:
            DomainNotAllowedError: host is not in the allowed domains
            FetcherException: transport failure, timeout or error status
        """
        if not self.is_allowed(url):
            raise DomainNotAllowedError(f"Domain not allowed: {url}", url=url)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((RateLimitException, httpx.TransportError, asyncio.TimeoutError)),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._do_fetch(url)
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise FetcherException(f"Timed out after {self.timeout}s fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            raise FetcherException(f"Request failed for {url}: {e}", url=url) from e

        return response.text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


__all__ = [
    "Fetcher",
    "FetcherException",
    "RateLimitException",
    "BlockedException",
    "HttpStatusError",
    "DomainNotAllowedError",
]
