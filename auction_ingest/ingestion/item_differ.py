"""
New item discovery — which item ids in a file are not yet known to the
database.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable


def find_new_item_ids(known: AbstractSet[int], observed: Iterable[int]) -> set[int]:
    """Return every observed item id absent from ``known``, deduplicated.

    Args:
        known: Item ids already present in the ``items`` table.
        observed: Item ids from the file's rows, duplicates allowed.

    Returns:
        Set of new item ids (possibly empty).

    Example::

        find_new_item_ids({1, 2, 3}, [1, 1, 2, 4, 5, 5])  # → {4, 5}
    """
    return {item_id for item_id in observed if item_id not in known}
