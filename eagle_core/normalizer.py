"""
eagle_core/normalizer.py
─────────────────────────
Min–max stretch of raw EAGLE scores across one workload's candidate set.

    normalised = (score − lowest) × (max − min) // (highest − lowest) + min

The highest raw score maps to exactly max, the lowest to exactly min, and
relative order is unchanged. Integer arithmetic, matching the host's
integer score type.

Degenerate case: if every raw score is equal there is nothing to
discriminate on, and every entry is set to min (the floor, not the
ceiling or the midpoint).

This is a barrier: it needs the global min/max, so it runs only after every
machine has been scored.
"""

from __future__ import annotations

import numpy as np

from eagle_core.scorer import MAX_NODE_SCORE, MIN_NODE_SCORE
from scheduler.shared.models import ScoreList


def normalize_scores(
    scores: ScoreList,
    *,
    min_score: int = MIN_NODE_SCORE,
    max_score: int = MAX_NODE_SCORE,
) -> ScoreList:
    """
    Rescale scores in place to [min_score, max_score].

    Args:
        scores:    ScoreEntry list for every machine that passed filtering.
        min_score: Target range floor (keyword-only).
        max_score: Target range ceiling (keyword-only).

    Returns:
        The same list, for chaining. An empty list is returned untouched.
    """
    if not scores:
        return scores

    raw = np.fromiter((entry.score for entry in scores), dtype=np.int64, count=len(scores))
    lowest = int(raw.min())
    highest = int(raw.max())

    old_range = highest - lowest
    if old_range == 0:
        normalised = np.full_like(raw, min_score)
    else:
        new_range = max_score - min_score
        normalised = (raw - lowest) * new_range // old_range + min_score

    for entry, value in zip(scores, normalised.tolist()):
        entry.score = value
    return scores
