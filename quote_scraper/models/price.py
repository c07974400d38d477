"""Latest scraped price for one ticker."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(slots=True, frozen=True)
class Price:
    ticker: str
    price: float
    currency: str = ""
    source: Optional[str] = "yahoo"

    def __post_init__(self) -> None:
        if not self.ticker:
            raise ValueError("ticker is required")
        if not math.isfinite(self.price):
            raise ValueError(f"price for {self.ticker} must be finite, got {self.price!r}")

    def to_document(self) -> Dict[str, Any]:
        """Fields written with ``$set`` on every upsert."""
        doc: Dict[str, Any] = {
            "ticker": self.ticker,
            "currency": self.currency,
            "price": self.price,
        }
        if self.source:
            doc["source"] = self.source
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Price":
        return cls(
            ticker=str(doc["ticker"]),
            price=float(doc["price"]),
            currency=str(doc.get("currency") or ""),
            source=doc.get("source"),
        )


__all__ = ["Price"]
