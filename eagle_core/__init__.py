"""
eagle_core — the EAGLE admission and ranking algorithm.

Public API:
    compute_required_resources — containers → one required Resource
    fits_request               — feasibility checks → List[InsufficientResource]
    fit_eagle                  — the geometric EAGLE bound on its own
    eagle_score                — bias + potential score for one machine
    normalize_scores           — min–max stretch across all scored machines

Usage:
    from eagle_core import compute_required_resources, fits_request, eagle_score

    required = compute_required_resources(workload)
    if not fits_request(required, machine):
        score = eagle_score(required, machine)
"""

from eagle_core.aggregator import compute_required_resources
from eagle_core.fit import R0, fit_eagle, fits_request
from eagle_core.normalizer import normalize_scores
from eagle_core.scorer import (
    MAX_NODE_SCORE,
    MIN_NODE_SCORE,
    ResourceAllocationScorer,
    eagle_resource_scorer,
    eagle_score,
)

__all__ = [
    "compute_required_resources",
    "R0",
    "fit_eagle",
    "fits_request",
    "normalize_scores",
    "MAX_NODE_SCORE",
    "MIN_NODE_SCORE",
    "ResourceAllocationScorer",
    "eagle_resource_scorer",
    "eagle_score",
]
