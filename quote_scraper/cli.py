"""Command line entry point for the `quote-scraper` script and root main.py."""

import argparse
import asyncio
import json

from dotenv import load_dotenv

from quote_scraper.core.config import load_config
from quote_scraper.core.errors import ConfigError, QuoteScraperError
from quote_scraper.main import create_indexes, run_price_scraper
from quote_scraper.scheduler.scheduler import start_scheduler
from quote_scraper.utils.logger import get_logger, setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Checkpointed quote price scraper")
    parser.add_argument(
        "--mode",
        choices=["once", "scheduler"],
        default="once",
        help="Run a single cycle or keep running on the configured interval.",
    )
    parser.add_argument(
        "--page-size",
        dest="page_size",
        type=int,
        default=None,
        help="Assets per cycle (defaults to scraper.page_size / PAGE_SIZE).",
    )
    parser.add_argument(
        "--all",
        dest="scrape_all",
        action="store_true",
        help="Scrape every asset instead of the next checkpoint page.",
    )
    parser.add_argument(
        "--init-indexes",
        dest="init_indexes",
        action="store_true",
        help="Create MongoDB indexes and exit.",
    )
    args = parser.parse_args(argv)
    if args.page_size is not None and args.page_size <= 0:
        parser.error("--page-size must be positive")
    if args.scrape_all and args.mode == "scheduler":
        parser.error("--all cannot be combined with --mode scheduler")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv()

    try:
        config = load_config()
    except ConfigError as exc:
        setup_logging()
        get_logger(__name__).critical("Invalid configuration: {}", exc.as_dict())
        return 2

    setup_logging(config.logging)
    log = get_logger(__name__)

    if args.mode == "scheduler" and not args.init_indexes:
        start_scheduler(config, page_size=args.page_size)
        return 0

    try:
        if args.init_indexes:
            asyncio.run(create_indexes(config))
            return 0
        summary = run_price_scraper(page_size=args.page_size, scrape_all=args.scrape_all, config=config)
    except QuoteScraperError as exc:
        log.error("Aborted: {}", exc.as_dict())
        return 1

    print(json.dumps(summary, indent=2))
    return 0
