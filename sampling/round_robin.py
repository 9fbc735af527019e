"""Round-robin diversity sampling.

Exhaustive search tends to cluster its output around whichever branch it
visits first. This module re-balances a list of candidates so that every
*bucket* (any hashable key the caller chooses) gets a fair share of a bounded
sample.

Algorithm (two-phase)
---------------------
1. Partition all items into buckets by ``key(item)``.
2. Optionally shuffle the contents of each bucket and the order of buckets.
3. Sweep the buckets in order, taking one unused item from every bucket that
   still has one, until ``limit`` items are taken or a sweep adds nothing.

If there are K buckets and the limit is M, per-bucket counts differ by at most
one as long as each bucket has enough items for the rounds it takes part in.

The engine is problem-agnostic: the schedule generator passes the
lecture-combination signature as key, but any item type works.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Optional, TypeVar

import random


T = TypeVar("T")


@dataclass
class SelectionResult(Generic[T]):
    selected: List[T]
    bucket_counts: Dict[Hashable, int]  # bucket key -> number of items taken
    total_buckets: int
    rounds: int


def round_robin_select(
    items: Iterable[T],
    *,
    key: Callable[[T], Hashable],
    limit: int,
    rng: Optional[random.Random] = None,
    shuffle: bool = True,
) -> SelectionResult[T]:
    """Pick up to `limit` items spread evenly across buckets of `key`.

    Contract:
    - never returns an item twice
    - never returns more than `limit` items
    - returns every item when there are at most `limit` of them
    """

    if limit < 0:
        raise ValueError("limit must be >= 0")

    buckets: Dict[Hashable, List[T]] = {}
    for item in items:
        buckets.setdefault(key(item), []).append(item)

    order = list(buckets.keys())
    if shuffle:
        r = rng or random.Random()
        for k in order:
            r.shuffle(buckets[k])
        r.shuffle(order)

    selected: List[T] = []
    counts: Dict[Hashable, int] = {k: 0 for k in order}
    cursor: Dict[Hashable, int] = {k: 0 for k in order}

    rounds = 0
    while len(selected) < limit:
        added = False
        for k in order:
            if len(selected) >= limit:
                break
            idx = cursor[k]
            if idx < len(buckets[k]):
                selected.append(buckets[k][idx])
                cursor[k] = idx + 1
                counts[k] += 1
                added = True
        rounds += 1
        if not added:
            break

    return SelectionResult(
        selected=selected,
        bucket_counts=counts,
        total_buckets=len(order),
        rounds=rounds,
    )
