"""Persisted paging cursor over the asset collection."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


@dataclass(slots=True, frozen=True)
class Checkpoint:
    """
    Page size plus the index of the page most recently handed out.

    ``page_index * page_size`` is the ``skip`` used for the page query.
    """

    page_size: int
    page_index: int = 0
    id: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.page_index < 0:
            raise ValueError("page_index must be non-negative")

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    def with_index(self, page_index: int, page_size: Optional[int] = None) -> "Checkpoint":
        return replace(self, page_index=page_index, page_size=page_size or self.page_size)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Checkpoint":
        if not doc.get("size"):
            raise ValueError(f"Checkpoint document {doc.get('_id')!r} has no page size")
        return cls(
            page_size=int(doc["size"]),
            page_index=int(doc.get("prevIndex") or 0),
            id=doc.get("_id"),
        )


__all__ = ["Checkpoint"]
