import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import random

import pytest

from sampling import round_robin_select


def test_counts_differ_by_at_most_one():
    items = [("A", i) for i in range(10)] + [("B", i) for i in range(10)] + [("C", i) for i in range(10)]
    res = round_robin_select(items, key=lambda x: x[0], limit=7, rng=random.Random(1))

    assert len(res.selected) == 7
    assert len(set(res.selected)) == 7
    counts = sorted(res.bucket_counts.values())
    assert counts[-1] - counts[0] <= 1
    assert res.total_buckets == 3


def test_returns_everything_under_limit():
    items = list(range(5))
    res = round_robin_select(items, key=lambda x: x % 2, limit=10, rng=random.Random(0))
    assert sorted(res.selected) == items


def test_small_bucket_exhausts_and_large_bucket_fills():
    items = [("A", 0)] + [("B", i) for i in range(6)]
    res = round_robin_select(items, key=lambda x: x[0], limit=5, shuffle=False)
    assert res.bucket_counts == {"A": 1, "B": 4}
    # first sweep takes one from each bucket in first-seen order
    assert res.selected[:2] == [("A", 0), ("B", 0)]


def test_seed_reproduces_selection():
    items = [(k, i) for k in "ABCD" for i in range(5)]
    first = round_robin_select(items, key=lambda x: x[0], limit=6, rng=random.Random(42)).selected
    second = round_robin_select(items, key=lambda x: x[0], limit=6, rng=random.Random(42)).selected
    assert first == second


def test_zero_limit_and_empty_input():
    assert round_robin_select([1, 2, 3], key=lambda x: x, limit=0).selected == []
    res = round_robin_select([], key=lambda x: x, limit=5)
    assert res.selected == []
    assert res.total_buckets == 0


def test_negative_limit_rejected():
    with pytest.raises(ValueError):
        round_robin_select([1], key=lambda x: x, limit=-1)
