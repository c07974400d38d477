"""Paging service: hands out one page of assets per cycle using the checkpoint."""

from __future__ import annotations

from typing import List

from quote_scraper.core.checkpoint import next_checkpoint
from quote_scraper.core.mongo_repository import AssetRepository, CheckpointRepository
from quote_scraper.models import Asset
from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)


class PagingService:
    """
    Orchestrates count -> advance checkpoint -> persist -> fetch page.

    This is the only component that mutates the checkpoint. Any store error
    propagates and aborts the cycle; the checkpoint is written only after the
    asset count and the previous checkpoint have been read successfully.
    """

    def __init__(self, assets: AssetRepository, checkpoints: CheckpointRepository) -> None:
        self.assets = assets
        self.checkpoints = checkpoints

    async def get_page(self, page_size: int) -> List[Asset]:
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        log.info("Getting assets from checkpoint (page_size={})", page_size)
        total = await self.assets.count()
        previous = await self.checkpoints.read()

        checkpoint = next_checkpoint(previous, page_size, total)
        if previous is None:
            log.info("No checkpoint found, starting from the first page")
        else:
            log.info(
                "Advancing checkpoint {} -> {} (assets={}, page_size={})",
                previous.page_index,
                checkpoint.page_index,
                total,
                page_size,
            )

        # Persist before fetching: a failed fetch skips this page next cycle
        checkpoint = await self.checkpoints.write(checkpoint)

        page = await self.assets.find_page(skip=checkpoint.offset, limit=checkpoint.page_size)
        log.info("Fetched {} assets for page {}", len(page), checkpoint.page_index)
        return page

    async def get_all_assets(self) -> List[Asset]:
        """Full sweep without touching the checkpoint."""
        log.info("Getting all assets")
        return await self.assets.find_all()


__all__ = ["PagingService"]
