"""
Scrape Pipeline - concurrent fetch, parse and persist
=====================================================

Turns a page of assets into one fetch -> parse -> persist unit of work per
asset, runs them concurrently (bounded by the fetcher's per-domain limiter)
and waits for all of them before returning.

Every ticker ends up in exactly one of ``ScrapeReport.succeeded`` or
``ScrapeReport.failed``. A failure for one ticker never aborts its siblings.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Sequence
from uuid import uuid4

from quote_scraper.core.config import ScraperConfig
from quote_scraper.core.errors import ExtractionError, PersistenceError, ScrapeError
from quote_scraper.core.fetcher import Fetcher
from quote_scraper.models import Asset, Price
from quote_scraper.sources.yahoo import QuoteUrlBuilder, build_quote_url
from quote_scraper.sources.yahoo_parser import YahooQuoteParser
from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)

PRICE_NOT_FOUND = "price not found"
PERSIST_FAILED = "persist"


class PriceSink(Protocol):
    async def add_price(self, price: Price) -> None: ...


class PageFetcher(Protocol):
    async def fetch_html(self, url: str) -> str: ...

    async def close(self) -> None: ...


@dataclass(slots=True)
class ScrapeRequest:
    """
    Per-request payload handed to every handler for one asset.

    ``found_price`` and ``failed`` are set by the response and error handlers;
    the completion handler uses them to decide whether the request still
    needs to be recorded as a failure.
    """

    asset: Asset
    url: str = ""
    correlation_id: str = field(default_factory=lambda: uuid4().hex)
    found_price: bool = False
    failed: bool = False
    extraction_error: Optional[str] = None

    @property
    def ticker(self) -> str:
        return self.asset.ticker

    @property
    def currency(self) -> str:
        return self.asset.currency


@dataclass(slots=True)
class ScrapeReport:
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    elapsed: float = 0.0

    @property
    def error_tickers(self) -> List[str]:
        return list(self.failed)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class ScrapeLedger:
    """Outcome per ticker, written by concurrent handlers under a lock."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._succeeded: Dict[str, None] = {}
        self._failed: Dict[str, str] = {}

    async def succeed(self, ticker: str) -> None:
        async with self._lock:
            self._failed.pop(ticker, None)
            self._succeeded[ticker] = None

    async def fail(self, ticker: str, reason: str) -> None:
        async with self._lock:
            if ticker in self._succeeded or ticker in self._failed:
                return
            self._failed[ticker] = reason

    def report(self, elapsed: float = 0.0) -> ScrapeReport:
        return ScrapeReport(succeeded=list(self._succeeded), failed=dict(self._failed), elapsed=elapsed)


class ScrapePipeline:
    """
    Concurrent price scraper for a page of assets.

    Example:
        >>> pipeline = ScrapePipeline.from_config(config.scraper, sink=prices)
        >>> report = await pipeline.run(assets)
        >>> await pipeline.close()
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        sink: PriceSink,
        parser: Optional[YahooQuoteParser] = None,
        url_builder: Optional[Callable[[str], str]] = None,
        source: Optional[str] = "yahoo",
    ):
        self.fetcher = fetcher
        self.sink = sink
        self.parser = parser or YahooQuoteParser()
        self.url_builder = url_builder or build_quote_url
        self.source = source
        self._error_tickers: List[str] = []

    @classmethod
    def from_config(
        cls,
        config: ScraperConfig,
        sink: PriceSink,
        fetcher: Optional[PageFetcher] = None,
    ) -> "ScrapePipeline":
        return cls(
            fetcher=fetcher or Fetcher.from_config(config),
            sink=sink,
            parser=YahooQuoteParser(selector=config.price_selector),
            url_builder=QuoteUrlBuilder(config.quote_url_template),
            source=config.source,
        )

    @property
    def error_tickers(self) -> List[str]:
        """Failed tickers across every run of this pipeline."""
        return list(self._error_tickers)

    async def run(self, assets: Sequence[Asset]) -> ScrapeReport:
        """
        Scrape every asset and wait for all of them to finish.

        Duplicate tickers are scraped once.
        """
        unique: Dict[str, Asset] = {}
        for asset in assets:
            if asset.ticker in unique:
                log.warning("Duplicate ticker {} in page, scraping once", asset.ticker)
                continue
            unique[asset.ticker] = asset

        ledger = ScrapeLedger()
        started = time.monotonic()
        log.info("Scraping prices for {} assets", len(unique))

        await asyncio.gather(*(self._scrape(asset, ledger) for asset in unique.values()))

        report = ledger.report(elapsed=time.monotonic() - started)
        self._error_tickers.extend(report.error_tickers)
        log.info(
            "Scraped {} assets in {:.2f}s: {} succeeded, {} failed",
            report.total,
            report.elapsed,
            len(report.succeeded),
            len(report.failed),
        )
        return report

    async def _scrape(self, asset: Asset, ledger: ScrapeLedger) -> None:
        request = ScrapeRequest(asset=asset)
        try:
            request.url = self.url_builder(asset.ticker)
            log.info("Scraping price for {}", asset.ticker)
            html = await self.fetcher.fetch_html(request.url)
        except (ScrapeError, ValueError) as exc:
            await self.on_error(request, exc, ledger)
        except Exception as exc:  # noqa: BLE001
            log.exception("Unexpected error scraping {}: {}", asset.ticker, exc)
            await self.on_error(request, exc, ledger)
        else:
            try:
                await self.on_response(request, html, ledger)
            except Exception as exc:  # noqa: BLE001
                log.exception("Unexpected error processing {}: {}", asset.ticker, exc)
                await self.on_error(request, exc, ledger)
        finally:
            await self.on_scraped(request, ledger)

    async def on_error(self, request: ScrapeRequest, exc: BaseException, ledger: ScrapeLedger) -> None:
        """Transport, HTTP status, domain or URL failure for one request."""
        log.bind(ticker=request.ticker).error("Failed to request {}: {}", request.url or request.ticker, exc)
        request.failed = True
        await ledger.fail(request.ticker, f"{type(exc).__name__}: {exc}")

    async def on_response(self, request: ScrapeRequest, html: str, ledger: ScrapeLedger) -> None:
        """Extract the price and forward it to the sink."""
        rlog = log.bind(ticker=request.ticker, correlation_id=request.correlation_id)
        rlog.debug("Processing price response for {}", request.ticker)

        try:
            value = self.parser.extract_price(html)
        except ExtractionError as exc:
            rlog.error("Parse price failed for {}: {}", request.ticker, exc)
            request.extraction_error = str(exc)
            return

        if value is None:
            return

        request.found_price = True
        price = Price(ticker=request.ticker, price=value, currency=request.currency, source=self.source)

        try:
            await self.sink.add_price(price)
        except PersistenceError as exc:
            rlog.error("Add price failed for {}: {}", request.ticker, exc)
            request.failed = True
            await ledger.fail(request.ticker, PERSIST_FAILED)
            return

        rlog.info("Saved price {} {} for {}", value, request.currency, request.ticker)
        await ledger.succeed(request.ticker)

    async def on_scraped(self, request: ScrapeRequest, ledger: ScrapeLedger) -> None:
        """Runs once per request after the response or error handler."""
        if request.found_price or request.failed:
            return
        reason = request.extraction_error or PRICE_NOT_FOUND
        log.bind(ticker=request.ticker).error("Price not found for {}: {}", request.ticker, reason)
        await ledger.fail(request.ticker, reason)

    async def close(self) -> None:
        """Log the aggregated error tickers and release the fetcher."""
        log.info("DONE - scraping stock prices, error tickers: {}", self._error_tickers)
        await self.fetcher.close()


__all__ = [
    "ScrapePipeline",
    "ScrapeReport",
    "ScrapeRequest",
    "ScrapeLedger",
    "PriceSink",
    "PRICE_NOT_FOUND",
    "PERSIST_FAILED",
]
