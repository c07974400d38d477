import pytest
from pymongo.errors import OperationFailure

from quote_scraper.core.db import create_client, get_assets_col, get_collection, init_indexes
from quote_scraper.core.errors import ConfigError, PersistenceError
from tests.conftest import FakeDatabase


def test_collections_resolve_through_config(app_config):
    db = FakeDatabase()
    assert get_assets_col(db, app_config.mongo).name == "assets"


def test_unmapped_collection_key(app_config):
    with pytest.raises(ConfigError):
        get_collection(FakeDatabase(), app_config.mongo, "watchlists")


@pytest.mark.asyncio
async def test_init_indexes(app_config):
    db = FakeDatabase()
    await init_indexes(db, app_config.mongo)

    assert db["asset_prices"].calls == ["create_index", "create_index"]
    assert db["scrape_checkpoint"].calls == ["create_index"]


@pytest.mark.asyncio
async def test_init_indexes_failure(app_config):
    db = FakeDatabase()
    db["asset_prices"].fail_on["create_index"] = OperationFailure("index conflict")

    with pytest.raises(PersistenceError):
        await init_indexes(db, app_config.mongo)


def test_create_client_applies_pool_options(app_config, monkeypatch):
    captured = {}

    class RecordingClient:
        def __init__(self, uri, **kwargs):
            captured["uri"] = uri
            captured.update(kwargs)

    monkeypatch.setattr("quote_scraper.core.db.AsyncIOMotorClient", RecordingClient)
    create_client(app_config.mongo)

    assert captured["uri"] == "mongodb://localhost:27017"
    assert captured["minPoolSize"] == 5
    assert captured["maxPoolSize"] == 10
    assert captured["maxIdleTimeMS"] == 360000
    assert captured["serverSelectionTimeoutMS"] == 5000
