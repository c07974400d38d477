"""Model exports for the quote scraper."""

from .asset import Asset
from .checkpoint import Checkpoint
from .price import Price

__all__ = [
    "Asset",
    "Checkpoint",
    "Price",
]
