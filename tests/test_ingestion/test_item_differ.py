"""Tests for new item id discovery."""

from __future__ import annotations

from auction_ingest.ingestion.item_differ import find_new_item_ids


def test_unknown_ids_deduplicated():
    assert find_new_item_ids({1, 2, 3}, [1, 1, 2, 4, 5, 5]) == {4, 5}


def test_all_known_returns_empty():
    assert find_new_item_ids({1, 2, 3}, [3, 2, 1, 1]) == set()


def test_empty_known_set_returns_every_id():
    assert find_new_item_ids(set(), [7, 8, 7]) == {7, 8}


def test_no_observations():
    assert find_new_item_ids({1}, []) == set()


def test_accepts_generator():
    assert find_new_item_ids(frozenset({10}), (i for i in (10, 20))) == {20}
