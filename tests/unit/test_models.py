import math

import pytest

from quote_scraper.models import Asset, Price


def test_asset_from_document():
    asset = Asset.from_document({"_id": 1, "ticker": " VFV.TO ", "currency": "CAD", "isActive": False})
    assert asset == Asset("VFV.TO", currency="CAD", is_active=False)


def test_asset_from_document_requires_ticker():
    with pytest.raises(ValueError):
        Asset.from_document({"_id": 1, "ticker": "", "currency": "CAD"})


def test_asset_from_dict_accepts_to_dict_output():
    asset = Asset("XEQT.TO", currency="CAD", source="tsx")
    assert Asset.from_dict(asset.to_dict()) == asset


def test_price_document_fields():
    price = Price("VFV.TO", 97.85, currency="CAD")
    assert price.to_document() == {"ticker": "VFV.TO", "currency": "CAD", "price": 97.85, "source": "yahoo"}
    assert Price.from_document({"_id": 9, **price.to_document(), "isActive": True}) == price


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_price_must_be_finite(value):
    with pytest.raises(ValueError):
        Price("VFV.TO", value)


def test_price_requires_ticker():
    with pytest.raises(ValueError):
        Price("", 1.0)
