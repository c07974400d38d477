import asyncio
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from quote_scraper.core.config import AppConfig
from quote_scraper.core.errors import QuoteScraperError
from quote_scraper.main import run_cycle
from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)

JOB_ID = "scrape_prices_from_checkpoint"


async def scrape_prices_job(config: AppConfig, page_size: Optional[int] = None) -> None:
    """One scheduled cycle. A failed cycle is logged; the next tick retries from the checkpoint."""
    try:
        summary = await run_cycle(config, page_size=page_size)
    except QuoteScraperError as exc:
        log.error("Scheduled scrape aborted: {}", exc.as_dict())
        return
    log.info(
        "Scheduled scrape finished: {} succeeded, {} failed",
        summary["succeeded"],
        summary["failed"],
    )


def build_scheduler(config: AppConfig, page_size: Optional[int] = None) -> AsyncIOScheduler:
    scheduler_cfg = config.scheduler
    if scheduler_cfg.interval_minutes <= 0:
        raise ValueError(f"Invalid interval_minutes: {scheduler_cfg.interval_minutes}")

    job_kwargs = {}
    if scheduler_cfg.run_on_start:
        job_kwargs["next_run_time"] = datetime.now(timezone.utc)

    scheduler = AsyncIOScheduler(timezone=scheduler_cfg.timezone)
    scheduler.add_job(
        scrape_prices_job,
        trigger=IntervalTrigger(minutes=scheduler_cfg.interval_minutes),
        args=[config, page_size],
        id=JOB_ID,
        max_instances=1,
        misfire_grace_time=300,
        coalesce=True,
        **job_kwargs,
    )
    return scheduler


async def run_scheduler(config: AppConfig, page_size: Optional[int] = None) -> None:
    """Start the scheduler and block until cancelled."""
    scheduler = build_scheduler(config, page_size)
    scheduler.start()
    log.info("Scheduler started: every {} minutes", config.scheduler.interval_minutes)
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        log.info("Scheduler stopped")


def start_scheduler(config: AppConfig, page_size: Optional[int] = None) -> None:
    try:
        asyncio.run(run_scheduler(config, page_size))
    except (KeyboardInterrupt, SystemExit):
        log.info("Scheduler interrupted")
