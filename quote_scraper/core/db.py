"""
MongoDB Database Connection and Collections

Builds the async Motor client from ``MongoConfig`` and resolves the logical
collections (assets, asset_prices, scrape_checkpoint) to real collection
names.
"""

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from quote_scraper.core.config import (
    ASSET_PRICES_COLLECTION,
    ASSETS_COLLECTION,
    SCRAPE_CHECKPOINT_COLLECTION,
    MongoConfig,
)
from quote_scraper.core.errors import PersistenceError
from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)


def create_client(config: MongoConfig, **overrides: Any) -> AsyncIOMotorClient:
    """Create a Motor client with the configured pool options."""
    options: Dict[str, Any] = {
        **config.client_options(),
        "serverSelectionTimeoutMS": int(config.timeout_seconds * 1000),
        "tz_aware": True,
    }
    options.update(overrides)
    client = AsyncIOMotorClient(config.connection_uri(), **options)
    log.info("MongoDB client initialized (db={}, pool={})", config.dbname, config.client_options())
    return client


def get_db(client: AsyncIOMotorClient, config: MongoConfig) -> AsyncIOMotorDatabase:
    return client[config.dbname]


def get_collection(db: AsyncIOMotorDatabase, config: MongoConfig, key: str) -> AsyncIOMotorCollection:
    """Collection for a logical key; raises ConfigError if the key is not mapped."""
    return db[config.collection_name(key)]


def get_assets_col(db: AsyncIOMotorDatabase, config: MongoConfig) -> AsyncIOMotorCollection:
    """Assets collection"""
    return get_collection(db, config, ASSETS_COLLECTION)


def get_prices_col(db: AsyncIOMotorDatabase, config: MongoConfig) -> AsyncIOMotorCollection:
    """Asset prices collection"""
    return get_collection(db, config, ASSET_PRICES_COLLECTION)


def get_checkpoint_col(db: AsyncIOMotorDatabase, config: MongoConfig) -> AsyncIOMotorCollection:
    """Scrape checkpoint collection"""
    return get_collection(db, config, SCRAPE_CHECKPOINT_COLLECTION)


async def init_indexes(db: AsyncIOMotorDatabase, config: MongoConfig) -> None:
    """
    Create indexes used by the paging cycle and the price upsert.

    Safe to run on every deployment; existing indexes are left as they are.
    """
    log.info("Creating MongoDB indexes...")
    try:
        await get_prices_col(db, config).create_index("ticker", unique=True)
        await get_prices_col(db, config).create_index([("modifiedAt", DESCENDING)])
        await get_checkpoint_col(db, config).create_index([("schema", ASCENDING)], unique=True)
    except PyMongoError as exc:
        log.error("Index creation failed: {}", exc)
        raise PersistenceError("Index creation failed", operation="create_index") from exc
    log.info("MongoDB indexes created")


async def ping_db(client: AsyncIOMotorClient) -> bool:
    """
    Ping MongoDB to check connection

    Returns:
        bool: True if connected, False otherwise
    """
    try:
        await client.admin.command("ping")
        log.info("MongoDB connection successful")
        return True
    except PyMongoError as e:
        log.error("MongoDB connection failed: {}", e)
        return False


def close_client(client: Optional[AsyncIOMotorClient]) -> None:
    """Close MongoDB connection"""
    if client is None:
        return
    log.info("Closing MongoDB client")
    client.close()


__all__ = [
    "create_client",
    "get_db",
    "get_collection",
    "get_assets_col",
    "get_prices_col",
    "get_checkpoint_col",
    "init_indexes",
    "ping_db",
    "close_client",
]
