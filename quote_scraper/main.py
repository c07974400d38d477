from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

from quote_scraper.core.config import AppConfig, load_config
from quote_scraper.core.db import close_client, create_client, get_db, init_indexes, ping_db
from quote_scraper.core.errors import PersistenceError
from quote_scraper.core.fetcher import Fetcher
from quote_scraper.core.mongo_repository import AssetRepository, CheckpointRepository, PriceRepository
from quote_scraper.core.paging import PagingService
from quote_scraper.core.pipeline import ScrapePipeline
from quote_scraper.utils.logger import get_logger, setup_logging

log = get_logger(__name__)


async def run_cycle(
    config: AppConfig,
    *,
    page_size: Optional[int] = None,
    scrape_all: bool = False,
    client=None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    One paging cycle: count -> advance checkpoint -> fetch page -> scrape -> report.

    A client passed in is left open for the caller; a client created here is
    always closed, also when the cycle aborts on a store error.
    """
    size = page_size if page_size is not None else config.scraper.page_size
    if size <= 0:
        raise ValueError("page_size must be positive")

    owns_client = client is None
    if owns_client:
        client = create_client(config.mongo)

    try:
        db = get_db(client, config.mongo)
        paging = PagingService(
            assets=AssetRepository.from_config(db, config.mongo),
            checkpoints=CheckpointRepository.from_config(db, config.mongo),
        )
        prices = PriceRepository.from_config(db, config.mongo)

        if scrape_all:
            assets = await paging.get_all_assets()
        else:
            assets = await paging.get_page(size)

        fetcher = Fetcher.from_config(config.scraper, transport=transport)
        pipeline = ScrapePipeline.from_config(config.scraper, sink=prices, fetcher=fetcher)
        try:
            report = await pipeline.run(assets)
        finally:
            await pipeline.close()
    finally:
        if owns_client:
            close_client(client)

    return {
        "mode": "all" if scrape_all else "page",
        "page_size": size,
        "assets": len(assets),
        "succeeded": len(report.succeeded),
        "failed": len(report.failed),
        "error_tickers": report.error_tickers,
        "errors": report.failed,
        "elapsed_seconds": round(report.elapsed, 3),
    }


async def create_indexes(config: AppConfig) -> None:
    client = create_client(config.mongo)
    try:
        if not await ping_db(client):
            raise PersistenceError("MongoDB is not reachable", operation="ping")
        await init_indexes(get_db(client, config.mongo), config.mongo)
    finally:
        close_client(client)


def run_price_scraper(
    *,
    page_size: Optional[int] = None,
    scrape_all: bool = False,
    config: Optional[AppConfig] = None,
) -> Dict[str, Any]:
    """Public entry point used by the CLI, the scheduler and the serverless handler."""
    load_dotenv()
    config = config or load_config()
    setup_logging(config.logging)

    log.info("Starting price scraper (env={}, all={})", config.env, scrape_all)
    summary = asyncio.run(run_cycle(config, page_size=page_size, scrape_all=scrape_all))
    log.success("Price scrape finished: {} succeeded, {} failed", summary["succeeded"], summary["failed"])
    return summary


def lambda_handler(event: Optional[Dict[str, Any]], context: Any) -> Dict[str, Any]:
    """
    Serverless entry point.

    Recognised event keys: ``pageSize`` (int) and ``all`` (bool).
    """
    event = event or {}
    page_size = event.get("pageSize")
    summary = run_price_scraper(
        page_size=int(page_size) if page_size is not None else None,
        scrape_all=bool(event.get("all", False)),
    )
    return {"statusCode": 200, "body": summary}


__all__ = ["run_cycle", "run_price_scraper", "lambda_handler", "create_indexes"]
