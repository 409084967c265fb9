"""
eagle_core/fit.py
──────────────────
Feasibility: can this machine host this workload at all?

What it checks (in order)
──────────────────────────
  1. Pod count       — one more workload must not exceed the machine's cap.
  2. Zero request    — a workload requesting nothing always fits on
                       resource grounds; skip checks 3–5.
  3. CPU headroom    — allocatable >= required + already requested.
  4. Memory headroom — same for memory.
  5. EAGLE bound     — the post-placement utilisation point must lie inside
                       the acceptance region (see fit_eagle below).

Every check appends to the result list independently. A rejected machine
reports every violated dimension, not just the first one.

The EAGLE bound
────────────────
Let cpu and mem be the post-placement utilisation ratios, and

    x = min(cpu, mem)      (the less loaded resource)
    y = max(cpu, mem)      (the more loaded resource)

A point (x, y) is admitted when ANY of these holds:

    y <= 1 − R0                                   low overall load
    x >= R0                                       both resources nearly full
    (x − R0)² + (y − (1 − R0))² <= R0²            inside the transition circle

With R0 = 0.8 the circle is centred at (0.8, 0.2) with radius 0.8. What is
left outside it is the top-left corner of the (x, y) plane: one resource
moderately or heavily loaded while the other is almost idle. That is the
configuration that strands capacity, and the bound refuses it.

Equal ratios are always admitted (the point lies on the diagonal, which
is perfectly balanced). Any ratio above 1 is rejected as out of limit.

Ratio arithmetic
─────────────────
Ratios are computed in floating point by default. The truncating variant
(integer division before conversion) collapses nearly every real ratio to
0 or 1, which makes the bound a no-op. It is kept as RATIO_TRUNCATE for
comparison only.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from scheduler.shared.models import (
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    RESOURCE_PODS,
    InsufficientResource,
    MachineResourceState,
    Resource,
)

logger = logging.getLogger(__name__)

# ── EAGLE bound constants ─────────────────────────────────────────────────────

R0: float = 0.8
"""Primary EAGLE radius. Also sets the low-load corner (1 − R0) and the
high-load threshold (R0) of the acceptance region."""

R0_SECONDARY: float = 0.9
"""Secondary EAGLE constant. Declared alongside R0; the acceptance test
does not consult it."""

# ── Reasons ───────────────────────────────────────────────────────────────────

REASON_TOO_MANY_PODS = "Too many pods"
REASON_INSUFFICIENT_CPU = "Insufficient cpu"
REASON_INSUFFICIENT_MEMORY = "Insufficient memory"
REASON_OUT_OF_LIMIT = "resource out of limit"
REASON_OUT_OF_BOUND = "Out of EAGLE bound"
REASON_OK = "ok"

# ── Ratio modes ───────────────────────────────────────────────────────────────

RATIO_FLOAT = "float"
RATIO_TRUNCATE = "truncate"


def fits_request(
    required: Resource,
    machine: MachineResourceState,
    *,
    ratio_mode: str = RATIO_FLOAT,
) -> List[InsufficientResource]:
    """
    Run every feasibility check for (required, machine).

    Args:
        required:   The workload's required vector (from the aggregator).
        machine:    The candidate machine's snapshot.
        ratio_mode: RATIO_FLOAT (default) or RATIO_TRUNCATE, forwarded to
                    fit_eagle.

    Returns:
        List of InsufficientResource. Empty = admitted.
    """
    insufficient: List[InsufficientResource] = []

    if machine.workload_count + 1 > machine.allowed_workload_count:
        insufficient.append(InsufficientResource(
            resource_name=RESOURCE_PODS,
            reason=REASON_TOO_MANY_PODS,
            requested=1,
            used=machine.workload_count,
            capacity=machine.allowed_workload_count,
        ))

    if required.is_zero():
        return insufficient

    allocatable = machine.allocatable
    requested = machine.requested

    if allocatable.milli_cpu < required.milli_cpu + requested.milli_cpu:
        insufficient.append(InsufficientResource(
            resource_name=RESOURCE_CPU,
            reason=REASON_INSUFFICIENT_CPU,
            requested=required.milli_cpu,
            used=requested.milli_cpu,
            capacity=allocatable.milli_cpu,
        ))

    if allocatable.memory < required.memory + requested.memory:
        insufficient.append(InsufficientResource(
            resource_name=RESOURCE_MEMORY,
            reason=REASON_INSUFFICIENT_MEMORY,
            requested=required.memory,
            used=requested.memory,
            capacity=allocatable.memory,
        ))

    reason, ok = fit_eagle(required, machine, ratio_mode=ratio_mode)
    if not ok:
        insufficient.append(InsufficientResource(
            resource_name=RESOURCE_CPU,
            reason=reason,
            requested=required.milli_cpu,
            used=requested.milli_cpu,
            capacity=allocatable.milli_cpu,
        ))

    # Extended (scalar) resource checks would follow the same pattern here.
    return insufficient


def fit_eagle(
    required: Resource,
    machine: MachineResourceState,
    *,
    r0: float = R0,
    ratio_mode: str = RATIO_FLOAT,
) -> Tuple[str, bool]:
    """
    Test whether the post-placement utilisation point is inside the EAGLE bound.

    Args:
        required:   The workload's required vector.
        machine:    The candidate machine's snapshot.
        r0:         EAGLE radius (keyword-only). Defaults to R0.
        ratio_mode: RATIO_FLOAT or RATIO_TRUNCATE (keyword-only).

    Returns:
        (reason, admitted). reason is REASON_OK when admitted.
    """
    cpu_ratio = utilisation_ratio(
        required.milli_cpu + machine.requested.milli_cpu,
        machine.allocatable.milli_cpu,
        ratio_mode=ratio_mode,
    )
    mem_ratio = utilisation_ratio(
        required.memory + machine.requested.memory,
        machine.allocatable.memory,
        ratio_mode=ratio_mode,
    )
    return eagle_bound(cpu_ratio, mem_ratio, r0=r0)


def eagle_bound(cpu_ratio: float, mem_ratio: float, *, r0: float = R0) -> Tuple[str, bool]:
    """
    Classify a (cpu_ratio, mem_ratio) point against the acceptance region.

    Split out from fit_eagle so the geometry can be tested on raw ratios.
    """
    if cpu_ratio > 1 or mem_ratio > 1:
        return REASON_OUT_OF_LIMIT, False

    if cpu_ratio == mem_ratio:
        return REASON_OK, True

    x, y = min(cpu_ratio, mem_ratio), max(cpu_ratio, mem_ratio)

    if y <= (1 - r0) or x >= r0:
        return REASON_OK, True
    if within_radius(x, y, r0=r0):
        return REASON_OK, True

    logger.debug(
        "fit_eagle: point (x=%.3f, y=%.3f) outside EAGLE bound (r0=%.2f)",
        x, y, r0,
    )
    return REASON_OUT_OF_BOUND, False


def within_radius(x: float, y: float, *, r0: float = R0) -> bool:
    """True if (x, y) lies within the circle of radius r0 centred at (r0, 1 − r0)."""
    distance = (x - r0) * (x - r0) + (y - 1 + r0) * (y - 1 + r0)
    return distance <= r0 * r0


def utilisation_ratio(used: int, capacity: int, *, ratio_mode: str = RATIO_FLOAT) -> float:
    """
    used / capacity as a float.

    Zero capacity: 0.0 if nothing is used, otherwise +inf (out of limit).
    """
    if capacity == 0:
        return 0.0 if used == 0 else float("inf")
    if ratio_mode == RATIO_TRUNCATE:
        return float(used // capacity)
    if ratio_mode != RATIO_FLOAT:
        raise ValueError(f"unknown ratio mode {ratio_mode!r}")
    return float(used) / float(capacity)
