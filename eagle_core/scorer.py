"""
eagle_core/scorer.py
─────────────────────
EAGLE scoring: how desirable is a machine that already passed feasibility?

The score
──────────
Let cpu and mem be the utilisation fractions AFTER hypothetically placing
the workload:

    cpu = (already requested cpu + workload cpu) / allocatable cpu
    mem = (already requested mem + workload mem) / allocatable mem

Two terms are combined:

  bias      = 1 − |cpu − mem|
              Rewards machines where CPU and memory are consumed evenly.
              An uneven machine strands the less-used resource.

  potential = (1 − y) / (1 − x)      with x = min(cpu, mem), y = max(cpu, mem)
              Ratio of headroom left on the busier resource to headroom left
              on the idler one. Near 1 → headroom is evenly distributed.
              Near 0 → the idler resource has lots of headroom that the busier
              resource will never let anyone use.
              Equal fractions (including both at 1.0) → potential = 1.

  final     = (10 × bias + potential) / 11,  clamped to [0, 1]

Bias dominates. Potential breaks ties between equally balanced machines.
The final value is scaled by the host's maximum node score and truncated.

Worked example (max score 100)
───────────────────────────────
  cpu = 0.25, mem = 0.125
  bias      = 1 − 0.125           = 0.875
  potential = 0.75 / 0.875        ≈ 0.857
  final     = (8.75 + 0.857) / 11 ≈ 0.873  → 87

Zero capacity on a dimension gives fraction 0 for that dimension
(fail-open: the machine is still scorable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict

from scheduler.shared.models import (
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    MachineResourceState,
    Resource,
)

MIN_NODE_SCORE: int = 0
"""Lowest score a plugin may return (host framework constant)."""

MAX_NODE_SCORE: int = 100
"""Highest score a plugin may return (host framework constant)."""

BIAS_WEIGHT: float = 10.0
"""Weight of the bias term relative to the potential term (weight 1)."""

ResourceToValueMap = Dict[str, int]
ScorerFunc = Callable[[ResourceToValueMap, ResourceToValueMap], int]


def fraction_of_capacity(requested: int, capacity: int) -> float:
    """requested / capacity, or 0.0 when capacity is 0."""
    if capacity == 0:
        return 0.0
    return float(requested) / float(capacity)


def bias(a: float, b: float) -> float:
    """1 − |a − b|. Equal fractions score 1."""
    return 1.0 - abs(b - a)


def potential(x: float, y: float) -> float:
    """
    Headroom ratio (1 − y) / (1 − x), where x <= y.

    x == y (including the fully packed x == y == 1) → 1.
    x == 1 with y > 1 cannot pass feasibility; scored as 0 rather than
    dividing by zero.
    """
    if x == y:
        return 1.0
    if x >= 1.0:
        return 0.0
    return (1.0 - y) / (1.0 - x)


def combine(bias_value: float, potential_value: float) -> float:
    """Weighted combination clamped to [0, 1]."""
    final = (bias_value * BIAS_WEIGHT + potential_value) / (BIAS_WEIGHT + 1.0)
    return min(max(final, 0.0), 1.0)


def eagle_score_fractions(cpu_fraction: float, mem_fraction: float) -> float:
    """The unscaled EAGLE score in [0, 1] for a pair of utilisation fractions."""
    x, y = min(cpu_fraction, mem_fraction), max(cpu_fraction, mem_fraction)
    return combine(bias(cpu_fraction, mem_fraction), potential(x, y))


def eagle_resource_scorer(max_score: int = MAX_NODE_SCORE) -> ScorerFunc:
    """
    Build the scorer function used by ResourceAllocationScorer.

    The returned function takes (requested, allocatable) maps keyed by
    resource name, where requested already includes the workload.
    """
    def _score(requested: ResourceToValueMap, allocatable: ResourceToValueMap) -> int:
        cpu_fraction = fraction_of_capacity(
            requested.get(RESOURCE_CPU, 0), allocatable.get(RESOURCE_CPU, 0)
        )
        mem_fraction = fraction_of_capacity(
            requested.get(RESOURCE_MEMORY, 0), allocatable.get(RESOURCE_MEMORY, 0)
        )
        return int(eagle_score_fractions(cpu_fraction, mem_fraction) * max_score)

    return _score


@dataclass
class ResourceAllocationScorer:
    """
    Scores a machine from its requested/allocatable resource maps.

    resource_to_weight lists which resources are looked at and their weight.
    The EAGLE formula treats CPU and memory symmetrically, so the weights are
    carried for configuration but do not change the result.
    """
    name: str
    scorer: ScorerFunc
    resource_to_weight: Dict[str, int] = field(
        default_factory=lambda: {RESOURCE_CPU: 1, RESOURCE_MEMORY: 1}
    )

    def score(self, required: Resource, machine: MachineResourceState) -> int:
        """Score machine as if the workload requiring `required` were placed on it."""
        requested: ResourceToValueMap = {}
        allocatable: ResourceToValueMap = {}
        for resource in self.resource_to_weight:
            requested[resource] = (
                _resource_value(machine.requested, resource)
                + _resource_value(required, resource)
            )
            allocatable[resource] = _resource_value(machine.allocatable, resource)
        return self.scorer(requested, allocatable)


def _resource_value(resource: Resource, name: str) -> int:
    if name == RESOURCE_CPU:
        return resource.milli_cpu
    if name == RESOURCE_MEMORY:
        return resource.memory
    return resource.scalar_resources.get(name, 0)


def eagle_score(
    required: Resource,
    machine: MachineResourceState,
    *,
    max_score: int = MAX_NODE_SCORE,
) -> int:
    """
    Score a machine for a workload. Returns an int in [0, max_score].

    Standalone use:
        score = eagle_score(required, machine)
    """
    scorer = ResourceAllocationScorer(
        name="NodeResourcesEagleAllocated",
        scorer=eagle_resource_scorer(max_score),
    )
    return scorer.score(required, machine)
