import pytest

from quote_scraper.core.checkpoint import advance, next_checkpoint
from quote_scraper.models import Checkpoint


@pytest.mark.parametrize(
    "prev_index, page_size, total, expected",
    [
        (0, 5, 12, 1),
        (1, 5, 12, 2),
        (2, 5, 12, 0),
        (0, 5, 5, 0),
        (0, 5, 0, 0),
        (7, 5, 12, 0),
        (3, 10, 100, 4),
        (8, 10, 100, 9),
        (9, 10, 100, 0),
        (0, 50, 50, 0),
        (2, 25, 1000, 3),
        (39, 25, 1000, 0),
        (0, 1, 2, 1),
        (1, 1, 2, 0),
    ],
)
def test_advance(prev_index, page_size, total, expected):
    assert advance(prev_index, page_size, total) == expected


@pytest.mark.parametrize("total", range(0, 40))
@pytest.mark.parametrize("page_size", [1, 2, 3, 7, 50])
def test_advance_always_lands_on_a_valid_page(page_size, total):
    for prev_index in range(0, 12):
        new_index = advance(prev_index, page_size, total)
        assert new_index == 0 or new_index == prev_index + 1
        if new_index > 0:
            assert new_index * page_size < total


@pytest.mark.parametrize("total", [1, 9, 10, 11, 57])
def test_advance_cycles_through_every_page(total):
    page_size = 10
    pages = -(-total // page_size)

    index = 0
    visited = [index]
    for _ in range(pages * 2 - 1):
        index = advance(index, page_size, total)
        visited.append(index)

    assert visited == list(range(pages)) * 2


@pytest.mark.parametrize(
    "prev_index, page_size, total",
    [(0, 0, 10), (0, -1, 10), (-1, 5, 10), (0, 5, -1)],
)
def test_advance_rejects_invalid_input(prev_index, page_size, total):
    with pytest.raises(ValueError):
        advance(prev_index, page_size, total)


def test_next_checkpoint_without_previous_starts_at_first_page():
    checkpoint = next_checkpoint(None, page_size=5, total_count=0)
    assert checkpoint.page_index == 0
    assert checkpoint.page_size == 5
    assert checkpoint.offset == 0


def test_next_checkpoint_keeps_record_id():
    previous = Checkpoint(page_size=5, page_index=1, id="cp-1")
    checkpoint = next_checkpoint(previous, page_size=5, total_count=12)
    assert checkpoint == Checkpoint(page_size=5, page_index=2, id="cp-1")
    assert checkpoint.offset == 10


def test_next_checkpoint_uses_requested_page_size():
    previous = Checkpoint(page_size=5, page_index=1)
    checkpoint = next_checkpoint(previous, page_size=3, total_count=12)
    assert checkpoint.page_size == 3
    assert checkpoint.page_index == 2
    assert checkpoint.offset == 6


def test_next_checkpoint_wraps_when_collection_shrank():
    previous = Checkpoint(page_size=5, page_index=4)
    assert next_checkpoint(previous, page_size=5, total_count=8).page_index == 0


def test_checkpoint_from_document():
    checkpoint = Checkpoint.from_document({"_id": 7, "size": 20, "prevIndex": 3, "schema": "1"})
    assert checkpoint == Checkpoint(page_size=20, page_index=3, id=7)


def test_checkpoint_rejects_invalid_values():
    with pytest.raises(ValueError):
        Checkpoint(page_size=0)
    with pytest.raises(ValueError):
        Checkpoint(page_size=5, page_index=-1)
