"""Asset reference data read from the assets collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(slots=True, frozen=True)
class Asset:
    """A tradable instrument. ``ticker`` is the unique key."""

    ticker: str
    currency: str = ""
    source: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "currency": self.currency,
            "source": self.source,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Asset":
        return cls(
            ticker=str(payload["ticker"]),
            currency=str(payload.get("currency") or ""),
            source=payload.get("source"),
            is_active=bool(payload.get("is_active", True)),
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Asset":
        ticker = str(doc.get("ticker") or "").strip()
        if not ticker:
            raise ValueError(f"Asset document {doc.get('_id')!r} has no ticker")
        return cls(
            ticker=ticker,
            currency=str(doc.get("currency") or ""),
            source=doc.get("source"),
            is_active=bool(doc.get("isActive", True)),
        )


__all__ = ["Asset"]
