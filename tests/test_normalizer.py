"""
tests/test_normalizer.py
─────────────────────────
Test suite for eagle_core/normalizer.py

normalize_scores() is a min–max stretch into [min, max]. All-equal input
collapses to min (the floor), never the midpoint or the ceiling.
"""

from __future__ import annotations

from typing import List

from eagle_core.normalizer import normalize_scores
from eagle_core.scorer import MAX_NODE_SCORE, MIN_NODE_SCORE
from scheduler.shared.models import ScoreEntry


def _entries(*scores: int) -> List[ScoreEntry]:
    return [ScoreEntry(name=f"m{i}", score=s) for i, s in enumerate(scores)]


def _values(entries: List[ScoreEntry]) -> List[int]:
    return [e.score for e in entries]


class TestNormalizeScores:

    def test_all_equal_collapse_to_minimum(self) -> None:
        assert _values(normalize_scores(_entries(50, 50, 50))) == [MIN_NODE_SCORE] * 3

    def test_all_equal_at_max_still_collapse_to_minimum(self) -> None:
        assert _values(normalize_scores(_entries(100, 100))) == [MIN_NODE_SCORE] * 2

    def test_single_entry_is_minimum(self) -> None:
        assert _values(normalize_scores(_entries(87))) == [MIN_NODE_SCORE]

    def test_extremes_map_to_range_ends(self) -> None:
        assert _values(normalize_scores(_entries(87, 22))) == [MAX_NODE_SCORE, MIN_NODE_SCORE]

    def test_integer_stretch(self) -> None:
        """(20 − 10) × 100 // 30 = 33."""
        assert _values(normalize_scores(_entries(10, 20, 40))) == [0, 33, 100]

    def test_order_preserved(self) -> None:
        raw = [5, 61, 17, 90, 42]
        normalised = _values(normalize_scores(_entries(*raw)))
        assert sorted(range(5), key=lambda i: raw[i]) == sorted(range(5), key=lambda i: normalised[i])

    def test_custom_range(self) -> None:
        """(5 − 0) × 9 // 10 + 1 = 5."""
        entries = normalize_scores(_entries(0, 5, 10), min_score=1, max_score=10)
        assert _values(entries) == [1, 5, 10]

    def test_custom_range_equal_scores_use_custom_minimum(self) -> None:
        entries = normalize_scores(_entries(7, 7), min_score=1, max_score=10)
        assert _values(entries) == [1, 1]

    def test_in_place(self) -> None:
        entries = _entries(10, 30)
        returned = normalize_scores(entries)
        assert returned is entries
        assert entries[0].score == 0
        assert entries[1].score == 100
        assert [e.name for e in entries] == ["m0", "m1"]

    def test_values_are_python_ints(self) -> None:
        entries = normalize_scores(_entries(3, 9))
        assert all(type(e.score) is int for e in entries)

    def test_empty_list(self) -> None:
        assert normalize_scores([]) == []
