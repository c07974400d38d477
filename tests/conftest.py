"""Shared pytest fixtures: in-memory Motor stand-ins, a fixed clock and app config."""
import asyncio
import itertools
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from pymongo import DESCENDING

from quote_scraper.core.config import AppConfig, Config

ASSET_HTML = """
<html><body>
  <div id="quote-header-info">
    <span data-reactid="30">Vanguard S&amp;P 500 Index ETF</span>
    <span data-reactid="32">{price}</span>
  </div>
</body></html>
"""

NO_PRICE_HTML = "<html><body><div id='quote-header-info'><span data-reactid='31'>n/a</span></div></body></html>"


def quote_html(price: str) -> str:
    return ASSET_HTML.format(price=price)


class FakeCursor:
    """Subset of ``AsyncIOMotorCursor`` used by the repositories."""

    def __init__(self, collection: "FakeCollection", docs: List[Dict[str, Any]]):
        self._collection = collection
        self._docs = docs
        self.sorted_by = None
        self.skipped = 0
        self.limited = None

    def sort(self, key, direction=1):
        self.sorted_by = (key, direction)
        self._docs = sorted(self._docs, key=lambda d: d[key], reverse=direction == DESCENDING)
        return self

    def skip(self, count: int):
        self.skipped = count
        self._docs = self._docs[count:]
        return self

    def limit(self, count: int):
        self.limited = count
        if count:
            self._docs = self._docs[:count]
        return self

    async def to_list(self, length: Optional[int] = None):
        await self._collection._hook("find")
        docs = self._docs if length is None else self._docs[:length]
        return [dict(doc) for doc in docs]


class FakeCollection:
    """
    In-memory stand-in for ``AsyncIOMotorCollection``.

    ``fail_on[op] = exc`` raises ``exc`` from the next ``op`` call and
    ``delay_on[op] = seconds`` makes ``op`` slow. ``calls`` records every
    operation in order.
    """

    _ids = itertools.count(1)

    def __init__(self, name: str = "fake", docs: Optional[List[Dict[str, Any]]] = None):
        self.name = name
        self.docs: List[Dict[str, Any]] = []
        self.fail_on: Dict[str, BaseException] = {}
        self.delay_on: Dict[str, float] = {}
        self.calls: List[str] = []
        for doc in docs or []:
            self.insert(doc)

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(doc)
        doc.setdefault("_id", next(self._ids))
        self.docs.append(doc)
        return doc

    async def _hook(self, op: str) -> None:
        self.calls.append(op)
        if op in self.delay_on:
            await asyncio.sleep(self.delay_on[op])
        if op in self.fail_on:
            raise self.fail_on[op]

    def _match(self, filter_: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [doc for doc in self.docs if all(doc.get(k) == v for k, v in filter_.items())]

    async def count_documents(self, filter_: Dict[str, Any]) -> int:
        await self._hook("count_documents")
        return len(self._match(filter_))

    def find(self, filter_: Optional[Dict[str, Any]] = None) -> FakeCursor:
        return FakeCursor(self, self._match(filter_ or {}))

    async def find_one(self, filter_: Dict[str, Any]):
        await self._hook("find_one")
        matches = self._match(filter_)
        return dict(matches[0]) if matches else None

    async def update_one(self, filter_: Dict[str, Any], update: Dict[str, Any], upsert: bool = False):
        await self._hook("update_one")
        matches = self._match(filter_)
        if matches:
            matches[0].update(update.get("$set", {}))
            return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
        doc = self.insert({**filter_, **update.get("$set", {}), **update.get("$setOnInsert", {})})
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])

    async def create_index(self, keys, **kwargs):
        await self._hook("create_index")
        return str(keys)


class FakeDatabase:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class FakeMongoClient:
    def __init__(self):
        self.databases: Dict[str, FakeDatabase] = {}
        self.closed = False

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self.databases:
            self.databases[name] = FakeDatabase()
        return self.databases[name]

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app_config() -> AppConfig:
    """Shipped settings with a local Mongo URI and no request delay."""
    config = AppConfig.from_settings(
        Config.load(),
        env_name="dev",
        env={"MONGO_URI": "mongodb://localhost:27017"},
    ).validate()
    config.scraper.random_delay_seconds = 0.0
    config.mongo.timeout_seconds = 5.0
    return config


@pytest.fixture
def mongo_client():
    return FakeMongoClient()


def seed_assets(collection: FakeCollection, tickers, currency: str = "USD") -> None:
    for ticker in tickers:
        collection.insert({"ticker": ticker, "currency": currency})
