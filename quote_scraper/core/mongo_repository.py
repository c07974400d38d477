"""
MongoDB Repository - Data Access Layer

Thin async adapters over the three collections used by a paging cycle:

- ``AssetRepository``: count and paginate the asset universe (read-only)
- ``CheckpointRepository``: read/write the single paging checkpoint
- ``PriceRepository``: idempotent upsert of the latest price per ticker

Every store call is bounded by the configured store timeout. Driver errors
and timeouts are logged with the operation and collection, then raised as
``PersistenceError``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from quote_scraper.core.config import MongoConfig
from quote_scraper.core.db import get_assets_col, get_checkpoint_col, get_prices_col
from quote_scraper.core.errors import PersistenceError
from quote_scraper.models import Asset, Checkpoint, Price
from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def utc_now_ts() -> int:
    return int(datetime.now(timezone.utc).timestamp())


class _MongoRepository:
    def __init__(self, collection, *, timeout: float, clock: Callable[[], int] = utc_now_ts) -> None:
        self._col = collection
        self._timeout = timeout
        self._clock = clock

    @property
    def collection_name(self) -> str:
        return getattr(self._col, "name", "?")

    async def _run(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            log.error("{} on {} timed out after {}s", operation, self.collection_name, self._timeout)
            raise PersistenceError(
                f"{operation} timed out", operation=operation, collection=self.collection_name
            ) from exc
        except PyMongoError as exc:
            log.error("{} on {} failed: {}", operation, self.collection_name, exc)
            raise PersistenceError(
                f"{operation} failed: {exc}", operation=operation, collection=self.collection_name
            ) from exc


class AssetRepository(_MongoRepository):
    """Read access to the asset universe."""

    @classmethod
    def from_config(cls, db, config: MongoConfig) -> "AssetRepository":
        return cls(get_assets_col(db, config), timeout=config.timeout_seconds)

    async def count(self) -> int:
        return int(await self._run("count", self._col.count_documents({})))

    async def find_page(self, skip: int, limit: int) -> List[Asset]:
        """
        One page of assets ordered by ``_id`` descending.

        Args:
            skip: number of documents to skip (page_index * page_size)
            limit: page size
        """
        if skip < 0:
            raise ValueError("skip must be non-negative")
        if limit <= 0:
            raise ValueError("limit must be positive")

        cursor = self._col.find({}).sort("_id", DESCENDING).skip(skip).limit(limit)
        docs = await self._run("find_page", cursor.to_list(length=limit))
        return self._decode(docs)

    async def find_all(self) -> List[Asset]:
        cursor = self._col.find({})
        docs = await self._run("find_all", cursor.to_list(length=None))
        return self._decode(docs)

    def _decode(self, docs) -> List[Asset]:
        assets: List[Asset] = []
        for doc in docs:
            try:
                assets.append(Asset.from_document(doc))
            except ValueError as exc:
                log.error("decode failed on {}: {}", self.collection_name, exc)
                raise PersistenceError(
                    f"decode failed: {exc}", operation="decode", collection=self.collection_name
                ) from exc
        return assets


class CheckpointRepository(_MongoRepository):
    """
    Single checkpoint record per schema version.

    The ``schema`` field is the record identity: reads filter on it and
    writes upsert on it, so a missing record is created on first write.
    """

    def __init__(
        self,
        collection,
        *,
        timeout: float,
        schema_version: str,
        clock: Callable[[], int] = utc_now_ts,
    ) -> None:
        super().__init__(collection, timeout=timeout, clock=clock)
        self._schema = schema_version

    @classmethod
    def from_config(cls, db, config: MongoConfig) -> "CheckpointRepository":
        return cls(
            get_checkpoint_col(db, config),
            timeout=config.timeout_seconds,
            schema_version=config.schema_version,
        )

    def _filter(self) -> dict:
        return {"schema": self._schema}

    async def read(self) -> Optional[Checkpoint]:
        doc = await self._run("find_checkpoint", self._col.find_one(self._filter()))
        if doc is None:
            return None
        try:
            return Checkpoint.from_document(doc)
        except (TypeError, ValueError) as exc:
            log.error("decode checkpoint failed: {}", exc)
            raise PersistenceError(
                f"decode failed: {exc}", operation="decode", collection=self.collection_name
            ) from exc

    async def write(self, checkpoint: Checkpoint) -> Checkpoint:
        now = self._clock()
        update = {
            "$set": {
                "size": checkpoint.page_size,
                "prevIndex": checkpoint.page_index,
                "schema": self._schema,
                "isActive": True,
                "modifiedAt": now,
            },
            "$setOnInsert": {"createdAt": now},
        }
        result = await self._run(
            "update_checkpoint",
            self._col.update_one(self._filter(), update, upsert=True),
        )
        upserted_id: Any = getattr(result, "upserted_id", None)
        if upserted_id is not None:
            log.info("Created checkpoint record {}", upserted_id)
            return Checkpoint(checkpoint.page_size, checkpoint.page_index, id=upserted_id)
        return checkpoint


class PriceRepository(_MongoRepository):
    """Latest price per ticker."""

    def __init__(
        self,
        collection,
        *,
        timeout: float,
        schema_version: str,
        clock: Callable[[], int] = utc_now_ts,
    ) -> None:
        super().__init__(collection, timeout=timeout, clock=clock)
        self._schema = schema_version

    @classmethod
    def from_config(cls, db, config: MongoConfig) -> "PriceRepository":
        return cls(
            get_prices_col(db, config),
            timeout=config.timeout_seconds,
            schema_version=config.schema_version,
        )

    async def add_price(self, price: Price) -> None:
        """
        Upsert ``price`` keyed by ticker.

        ``isActive`` and ``modifiedAt`` are refreshed on every write,
        ``createdAt`` is written only when the record is first inserted.
        """
        now = self._clock()
        update = {
            "$set": {
                **price.to_document(),
                "schema": self._schema,
                "isActive": True,
                "modifiedAt": now,
            },
            "$setOnInsert": {"createdAt": now},
        }
        await self._run(
            "upsert_price",
            self._col.update_one({"ticker": price.ticker}, update, upsert=True),
        )


__all__ = ["AssetRepository", "CheckpointRepository", "PriceRepository", "utc_now_ts"]
