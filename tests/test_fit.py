"""
tests/test_fit.py
──────────────────
Test suite for eagle_core/fit.py

What we are testing
────────────────────
fits_request() runs five ordered, append-only checks. fit_eagle() /
eagle_bound() implement the geometric acceptance region:

    admit if  y <= 1 − R0
          or  x >= R0
          or  (x − R0)² + (y − (1 − R0))² <= R0²

Test groups
────────────
Group 1: pod count            — independent of resource sufficiency
Group 2: zero-request         — short-circuit of checks 3–5
Group 3: cpu / memory         — insufficient capacity, all reasons kept
Group 4: EAGLE geometry       — eagle_bound() on raw ratios
Group 5: fit_eagle ratios     — float vs truncating arithmetic, zero capacity
"""

from __future__ import annotations

from typing import Dict, Optional

import pytest

from eagle_core.fit import (
    R0,
    RATIO_FLOAT,
    RATIO_TRUNCATE,
    REASON_INSUFFICIENT_CPU,
    REASON_INSUFFICIENT_MEMORY,
    REASON_OK,
    REASON_OUT_OF_BOUND,
    REASON_OUT_OF_LIMIT,
    REASON_TOO_MANY_PODS,
    eagle_bound,
    fit_eagle,
    fits_request,
    utilisation_ratio,
    within_radius,
)
from scheduler.shared.models import (
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    RESOURCE_PODS,
    MachineResourceState,
    Resource,
)

Gi = 1024 * 1024 * 1024


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _res(cpu: int = 0, mem: int = 0, scalar: Optional[Dict[str, int]] = None) -> Resource:
    return Resource(milli_cpu=cpu, memory=mem, scalar_resources=scalar or {})


def _make_machine(
    alloc_cpu: int = 4000,
    alloc_mem: int = 8 * Gi,
    used_cpu: int = 0,
    used_mem: int = 0,
    allowed: int = 110,
    count: int = 0,
) -> MachineResourceState:
    return MachineResourceState(
        name="m-test",
        allocatable=_res(alloc_cpu, alloc_mem),
        requested=_res(used_cpu, used_mem),
        allowed_workload_count=allowed,
        workload_count=count,
    )


def _reasons(required: Resource, machine: MachineResourceState, **kwargs) -> list:
    return [r.reason for r in fits_request(required, machine, **kwargs)]


# ─────────────────────────────────────────────────────────────────────────────
# Group 1: pod count
# ─────────────────────────────────────────────────────────────────────────────

class TestPodCount:

    def test_machine_at_cap_with_abundant_resources_fails_only_on_pods(self) -> None:
        """cpu 0.025, mem 0.125 → inside the low-load corner; only the cap fails."""
        machine = _make_machine(allowed=10, count=10)
        result = fits_request(_res(cpu=100, mem=Gi), machine)

        assert len(result) == 1
        entry = result[0]
        assert entry.resource_name == RESOURCE_PODS
        assert entry.reason == REASON_TOO_MANY_PODS
        assert entry.requested == 1
        assert entry.used == 10
        assert entry.capacity == 10

    def test_one_slot_left_is_enough(self) -> None:
        machine = _make_machine(allowed=10, count=9)
        assert fits_request(_res(cpu=100, mem=Gi), machine) == []

    def test_pod_violation_reported_alongside_resource_violations(self) -> None:
        machine = _make_machine(used_cpu=3500, used_mem=7 * Gi, allowed=5, count=5)
        reasons = _reasons(_res(cpu=1000, mem=2 * Gi), machine)
        assert reasons == [
            REASON_TOO_MANY_PODS,
            REASON_INSUFFICIENT_CPU,
            REASON_INSUFFICIENT_MEMORY,
            REASON_OUT_OF_LIMIT,
        ]


# ─────────────────────────────────────────────────────────────────────────────
# Group 2: zero-request short-circuit
# ─────────────────────────────────────────────────────────────────────────────

class TestZeroRequest:

    def test_zero_request_fits_fully_used_machine(self) -> None:
        machine = _make_machine(used_cpu=4000, used_mem=8 * Gi)
        assert fits_request(_res(), machine) == []

    def test_zero_request_fits_overcommitted_machine(self) -> None:
        machine = _make_machine(used_cpu=5000, used_mem=9 * Gi)
        assert fits_request(_res(), machine) == []

    def test_zero_request_still_respects_pod_cap(self) -> None:
        machine = _make_machine(used_cpu=4000, used_mem=8 * Gi, allowed=3, count=3)
        assert _reasons(_res(), machine) == [REASON_TOO_MANY_PODS]

    def test_scalar_request_disables_short_circuit(self) -> None:
        """A workload asking only for a GPU is not a zero request."""
        machine = _make_machine(used_cpu=4001, used_mem=Gi)
        reasons = _reasons(_res(scalar={"nvidia.com/gpu": 1}), machine)
        assert reasons == [REASON_INSUFFICIENT_CPU, REASON_OUT_OF_LIMIT]

    def test_zero_valued_scalar_is_still_a_zero_request(self) -> None:
        """cpu 1.0, mem 0.125 is outside the bound, but a zero request skips it."""
        machine = _make_machine(used_cpu=4000, used_mem=Gi)
        assert fits_request(_res(scalar={"nvidia.com/gpu": 0}), machine) == []


# ─────────────────────────────────────────────────────────────────────────────
# Group 3: cpu / memory
# ─────────────────────────────────────────────────────────────────────────────

class TestCpuMemory:

    def test_insufficient_cpu(self) -> None:
        machine = _make_machine(used_cpu=3500)
        result = fits_request(_res(cpu=1000, mem=Gi), machine)

        assert [r.reason for r in result] == [REASON_INSUFFICIENT_CPU, REASON_OUT_OF_LIMIT]
        cpu = result[0]
        assert cpu.resource_name == RESOURCE_CPU
        assert (cpu.requested, cpu.used, cpu.capacity) == (1000, 3500, 4000)

    def test_insufficient_memory(self) -> None:
        machine = _make_machine(used_mem=7 * Gi)
        result = fits_request(_res(cpu=1000, mem=2 * Gi), machine)

        assert [r.reason for r in result] == [REASON_INSUFFICIENT_MEMORY, REASON_OUT_OF_LIMIT]
        mem = result[0]
        assert mem.resource_name == RESOURCE_MEMORY
        assert (mem.requested, mem.used, mem.capacity) == (2 * Gi, 7 * Gi, 8 * Gi)

    def test_exactly_full_is_not_insufficient(self) -> None:
        """allocatable == required + requested passes; both ratios 1.0 → balanced."""
        machine = _make_machine(used_cpu=3000, used_mem=6 * Gi)
        assert fits_request(_res(cpu=1000, mem=2 * Gi), machine) == []

    def test_out_of_bound_entry_carries_cpu_figures(self) -> None:
        """cpu 0.1, mem 0.8 → outside the circle (0.49 + 0.36 = 0.85 > 0.64)."""
        machine = _make_machine(alloc_cpu=10000, alloc_mem=10 * Gi)
        result = fits_request(_res(cpu=1000, mem=8 * Gi), machine)

        assert len(result) == 1
        entry = result[0]
        assert entry.reason == REASON_OUT_OF_BOUND
        assert entry.resource_name == RESOURCE_CPU
        assert (entry.requested, entry.used, entry.capacity) == (1000, 0, 10000)


# ─────────────────────────────────────────────────────────────────────────────
# Group 4: EAGLE geometry
# ─────────────────────────────────────────────────────────────────────────────

class TestEagleBound:

    def test_equal_ratios_admitted(self) -> None:
        assert eagle_bound(0.5, 0.5) == (REASON_OK, True)

    def test_both_full_admitted(self) -> None:
        assert eagle_bound(1.0, 1.0) == (REASON_OK, True)

    @pytest.mark.parametrize("mem_ratio", [0.0, 0.5, 1.0, 1.1])
    def test_cpu_above_one_out_of_limit(self, mem_ratio: float) -> None:
        assert eagle_bound(1.1, mem_ratio) == (REASON_OUT_OF_LIMIT, False)

    def test_mem_above_one_out_of_limit(self) -> None:
        assert eagle_bound(0.2, 1.01) == (REASON_OUT_OF_LIMIT, False)

    def test_low_load_corner(self) -> None:
        """x=0.1, y=0.15: admitted via y <= 1 − R0 (0.15 <= 0.2)."""
        assert 0.15 <= 1 - R0
        assert eagle_bound(0.1, 0.15) == (REASON_OK, True)

    def test_high_load_band(self) -> None:
        """x=0.85, y=0.9: admitted via x >= R0."""
        assert eagle_bound(0.85, 0.9) == (REASON_OK, True)

    def test_transition_circle(self) -> None:
        """x=0.3, y=0.5: (0.3−0.8)² + (0.5−0.2)² = 0.25 + 0.09 = 0.34 <= 0.64."""
        distance = (0.3 - R0) ** 2 + (0.5 - (1 - R0)) ** 2
        assert distance == pytest.approx(0.34)
        assert distance <= R0 ** 2
        assert within_radius(0.3, 0.5)
        assert eagle_bound(0.3, 0.5) == (REASON_OK, True)

    @pytest.mark.parametrize("x,y", [(0.1, 0.8), (0.05, 0.9), (0.0, 1.0), (0.25, 1.0)])
    def test_fragmenting_points_rejected(self, x: float, y: float) -> None:
        assert not within_radius(x, y)
        assert eagle_bound(x, y) == (REASON_OUT_OF_BOUND, False)

    @pytest.mark.parametrize("a,b", [(0.1, 0.8), (0.3, 0.5), (0.85, 0.9), (0.1, 0.15)])
    def test_symmetric_in_cpu_and_memory(self, a: float, b: float) -> None:
        assert eagle_bound(a, b) == eagle_bound(b, a)

    def test_custom_radius(self) -> None:
        """With r0=0.5 the low-load corner grows to y <= 0.5."""
        assert eagle_bound(0.0, 0.45, r0=0.5) == (REASON_OK, True)
        assert eagle_bound(0.0, 0.45) == (REASON_OUT_OF_BOUND, False)


# ─────────────────────────────────────────────────────────────────────────────
# Group 5: fit_eagle ratio arithmetic
# ─────────────────────────────────────────────────────────────────────────────

class TestFitEagleRatios:

    def test_float_ratios_reject_unbalanced_machine(self) -> None:
        """10% cpu / 80% memory is rejected with floating-point ratios."""
        machine = _make_machine(alloc_cpu=10000, alloc_mem=10 * Gi)
        assert fit_eagle(_res(cpu=1000, mem=8 * Gi), machine) == (REASON_OUT_OF_BOUND, False)

    def test_truncating_ratios_admit_same_machine(self) -> None:
        """Integer division collapses both ratios to 0, so the bound never bites."""
        machine = _make_machine(alloc_cpu=10000, alloc_mem=10 * Gi)
        required = _res(cpu=1000, mem=8 * Gi)
        assert fit_eagle(required, machine, ratio_mode=RATIO_TRUNCATE) == (REASON_OK, True)
        assert fits_request(required, machine, ratio_mode=RATIO_TRUNCATE) == []

    def test_default_mode_is_float(self) -> None:
        machine = _make_machine(alloc_cpu=10000, alloc_mem=10 * Gi)
        required = _res(cpu=1000, mem=8 * Gi)
        assert fit_eagle(required, machine) == fit_eagle(required, machine, ratio_mode=RATIO_FLOAT)

    def test_utilisation_ratio_values(self) -> None:
        assert utilisation_ratio(1000, 4000) == pytest.approx(0.25)
        assert utilisation_ratio(3999, 4000, ratio_mode=RATIO_TRUNCATE) == 0.0
        assert utilisation_ratio(4000, 4000, ratio_mode=RATIO_TRUNCATE) == 1.0

    def test_zero_capacity_nothing_used(self) -> None:
        assert utilisation_ratio(0, 0) == 0.0

    def test_zero_capacity_something_used_is_out_of_limit(self) -> None:
        machine = _make_machine(alloc_cpu=0)
        assert fit_eagle(_res(cpu=100, mem=Gi), machine) == (REASON_OUT_OF_LIMIT, False)

    def test_unknown_ratio_mode(self) -> None:
        with pytest.raises(ValueError):
            utilisation_ratio(1, 2, ratio_mode="round")
