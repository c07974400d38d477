"""Checkpoint advancement for resumable paging over the asset collection."""

from __future__ import annotations

from typing import Optional

from quote_scraper.models.checkpoint import Checkpoint


def advance(prev_index: int, page_size: int, total_count: int) -> int:
    """
    Return the page index to process after ``prev_index``.

    Wraps to 0 when the page after ``prev_index`` would start at or beyond
    ``total_count``; this covers both reaching the end of the collection and
    the collection shrinking since the last run.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if prev_index < 0:
        raise ValueError("prev_index must be non-negative")
    if total_count < 0:
        raise ValueError("total_count must be non-negative")

    if prev_index * page_size + page_size >= total_count:
        return 0
    return prev_index + 1


def next_checkpoint(previous: Optional[Checkpoint], page_size: int, total_count: int) -> Checkpoint:
    """
    Advance ``previous`` using the requested ``page_size``.

    With no stored checkpoint the first page (index 0) is returned without
    evaluating the wrap condition.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    if previous is None:
        return Checkpoint(page_size=page_size, page_index=0)

    new_index = advance(previous.page_index, page_size, total_count)
    return previous.with_index(new_index, page_size=page_size)


__all__ = ["advance", "next_checkpoint"]
