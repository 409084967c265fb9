"""
scheduler/framework/runtime.py
───────────────────────────────
Framework: the in-process host that drives plugins through a scheduling cycle.

What a cycle looks like
────────────────────────
For one workload:

  1. Create a fresh CycleState.
  2. PreFilter  — every pre-filter plugin, once.
  3. Filter     — every filter plugin, per machine in the snapshot.
                  A machine is feasible only if every plugin returns SUCCESS.
                  The first UNSCHEDULABLE verdict for a machine is recorded.
  4. Score      — every score plugin, per feasible machine.
  5. Normalize  — each score plugin's own normalize_score, once, after all
                  of that plugin's scores are in (a barrier).
  6. Combine    — total = Σ weight × normalised score, per machine.
  7. Select     — highest total wins. Ties go to the machine that comes
                  first in the snapshot, so placement is deterministic.

Steps 3 and 4 read only per-machine state plus the immutable cached request,
so with parallelism > 1 they fan out over a ThreadPoolExecutor.

Assume / forget
────────────────
schedule() places a batch of workloads one by one. After each placement the
chosen machine's requested vector and workload count are bumped (assume),
so the next workload sees the updated snapshot. forget() reverses it.

Error handling contract
────────────────────────
  SchedulingFailedError: no machine passed Filter. Carries per-machine
                         reasons. A normal outcome for a full cluster.
  PluginError:           a plugin returned Status.ERROR. Not retried within
                         the cycle; the caller decides.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field

from eagle_core import compute_required_resources
from scheduler.config import FEATURE_POD_OVERHEAD, SchedulerConfig
from scheduler.framework.cycle_state import CycleState
from scheduler.framework.plugin import (
    FilterPlugin,
    FrameworkHandle,
    PreFilterPlugin,
    Registry,
    ScorePlugin,
)
from scheduler.framework.snapshot import NodeNotFoundError, Snapshot
from scheduler.framework.status import Code, Status
from scheduler.shared.models import (
    MachineResourceState,
    PlacementPlan,
    Resource,
    ScoreEntry,
    Workload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class SchedulingFailedError(Exception):
    """
    Raised when no machine passes Filter for a workload.

    Attributes:
        workload: namespace/name of the workload.
        reasons:  machine name → reasons it was rejected.
    """

    def __init__(self, workload: str, reasons: Dict[str, List[str]]) -> None:
        self.workload = workload
        self.reasons = reasons
        detail = "; ".join(
            f"{machine}: {', '.join(r)}" for machine, r in sorted(reasons.items())
        )
        super().__init__(
            f"0/{len(reasons)} machines are available for {workload}"
            + (f" ({detail})" if detail else "")
        )


class PluginError(Exception):
    """
    Raised when a plugin returns Status.ERROR.

    Attributes:
        plugin: Plugin name.
        point:  Extension point ("PreFilter", "Filter", "Score", "NormalizeScore").
        status: The error Status.
    """

    def __init__(self, plugin: str, point: str, status: Status) -> None:
        self.plugin = plugin
        self.point = point
        self.status = status
        super().__init__(f"{point} plugin {plugin!r} failed: {status.message}")


class ScheduleResult(BaseModel):
    """Outcome of scheduling one workload."""
    workload: str
    selected: str
    scores: Dict[str, int] = Field(
        default_factory=dict,
        description="machine → combined weighted score for every feasible machine"
    )
    rejected: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="machine → reasons, for machines that failed Filter"
    )


class BatchResult(BaseModel):
    """Outcome of scheduling a list of workloads."""
    plan: PlacementPlan = Field(default_factory=dict)
    failures: Dict[str, str] = Field(
        default_factory=dict,
        description="workload → why it could not be placed"
    )


class Framework(FrameworkHandle):
    """
    Host for a configured set of plugins over a mutable set of machines.

    Usage:
        framework = Framework(config, registry, machines)
        result = framework.schedule_one(workload)
        result.selected   # → machine name

    Not thread-safe across cycles: run one cycle at a time. Inside a cycle,
    Filter and Score may fan out to `config.parallelism` threads.
    """

    def __init__(
        self,
        config: SchedulerConfig,
        registry: Registry,
        machines: Iterable[MachineResourceState] = (),
    ) -> None:
        self.config = config
        self._machines: Dict[str, MachineResourceState] = {m.name: m for m in machines}
        self._snapshot = Snapshot(self._machines.values())

        self._pre_filter_plugins: List[PreFilterPlugin] = []
        self._filter_plugins: List[FilterPlugin] = []
        self._score_plugins: List[Tuple[ScorePlugin, int]] = []

        for plugin_config in config.plugins:
            plugin = registry.build(plugin_config.name, plugin_config.args, self)
            if isinstance(plugin, PreFilterPlugin):
                self._pre_filter_plugins.append(plugin)
            if isinstance(plugin, FilterPlugin):
                self._filter_plugins.append(plugin)
            if isinstance(plugin, ScorePlugin):
                self._score_plugins.append((plugin, plugin_config.weight))

        logger.info(
            "Framework %s initialised with plugins %s and %d machines.",
            config.scheduler_name,
            [p.name for p in config.plugins],
            len(self._machines),
        )

    # ── FrameworkHandle ────────────────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        return self._snapshot

    def feature_enabled(self, name: str) -> bool:
        return self.config.feature_gates.enabled(name)

    # ── Machine bookkeeping ────────────────────────────────────────────────────

    def update_machine(self, machine: MachineResourceState) -> None:
        """Add or replace a machine and rebuild the snapshot."""
        self._machines[machine.name] = machine
        self._snapshot = Snapshot(self._machines.values())

    def remove_machine(self, name: str) -> None:
        if self._machines.pop(name, None) is None:
            raise NodeNotFoundError(name)
        self._snapshot = Snapshot(self._machines.values())

    def assume(self, workload: Workload, machine_name: str) -> None:
        """Account a workload placed on machine_name in the snapshot."""
        machine = self._snapshot.get(machine_name)
        required = self._required(workload)
        self.update_machine(machine.model_copy(update={
            "requested": machine.requested.add(required),
            "workload_count": machine.workload_count + 1,
        }))
        logger.debug(
            "Assumed: %s on %s cpu=%dm mem=%d",
            workload.key, machine_name, required.milli_cpu, required.memory,
        )

    def forget(self, workload: Workload, machine_name: str) -> None:
        """Reverse assume()."""
        machine = self._snapshot.get(machine_name)
        required = self._required(workload)
        requested = machine.requested
        scalar = {
            name: max(0, value - required.scalar_resources.get(name, 0))
            for name, value in requested.scalar_resources.items()
        }
        self.update_machine(machine.model_copy(update={
            "requested": requested.model_copy(update={
                "milli_cpu": max(0, requested.milli_cpu - required.milli_cpu),
                "memory": max(0, requested.memory - required.memory),
                "ephemeral_storage": max(0, requested.ephemeral_storage - required.ephemeral_storage),
                "scalar_resources": scalar,
            }),
            "workload_count": max(0, machine.workload_count - 1),
        }))

    def _required(self, workload: Workload) -> Resource:
        return compute_required_resources(
            workload,
            pod_overhead_enabled=self.feature_enabled(FEATURE_POD_OVERHEAD),
        )

    # ── Scheduling ─────────────────────────────────────────────────────────────

    def schedule_one(self, workload: Workload) -> ScheduleResult:
        """
        Run one full cycle for a workload.

        Does not modify the snapshot; call assume() to commit the placement.

        Raises:
            SchedulingFailedError: no machine passed Filter.
            PluginError:           a plugin returned Status.ERROR.
        """
        state = CycleState()

        for plugin in self._pre_filter_plugins:
            status = plugin.pre_filter(state, workload)
            if not status.is_success():
                raise PluginError(plugin.name, "PreFilter", status)

        machines = self._snapshot.list()
        verdicts = self._parallel(
            lambda machine: self._run_filters(state, workload, machine),
            machines,
        )

        feasible: List[MachineResourceState] = []
        rejected: Dict[str, List[str]] = {}
        for machine, verdict in zip(machines, verdicts):
            if verdict.is_success():
                feasible.append(machine)
            else:
                rejected[machine.name] = verdict.reasons

        if not feasible:
            logger.warning(
                "schedule: no feasible machine for %s (%d rejected)",
                workload.key, len(rejected),
            )
            raise SchedulingFailedError(workload.key, rejected)

        totals = self._run_scores(state, workload, feasible)

        selected = feasible[0].name
        for machine in feasible:
            if totals[machine.name] > totals[selected]:
                selected = machine.name

        logger.info(
            "schedule: %s → %s (score %d, %d/%d feasible)",
            workload.key, selected, totals[selected], len(feasible), len(machines),
        )
        return ScheduleResult(
            workload=workload.key,
            selected=selected,
            scores=totals,
            rejected=rejected,
        )

    def schedule(self, workloads: Sequence[Workload]) -> BatchResult:
        """
        Place workloads one at a time, assuming each placement before the next.

        Unschedulable workloads are recorded in BatchResult.failures and the
        batch continues. PluginError is not caught.
        """
        result = BatchResult()
        for workload in workloads:
            try:
                outcome = self.schedule_one(workload)
            except SchedulingFailedError as exc:
                result.failures[workload.key] = str(exc)
                continue
            self.assume(workload, outcome.selected)
            result.plan[workload.key] = outcome.selected
        return result

    # ── Internals ──────────────────────────────────────────────────────────────

    def _run_filters(
        self,
        state: CycleState,
        workload: Workload,
        machine: MachineResourceState,
    ) -> Status:
        for plugin in self._filter_plugins:
            status = plugin.filter(state, workload, machine)
            if status.code == Code.ERROR:
                raise PluginError(plugin.name, "Filter", status)
            if not status.is_success():
                return status
        return Status.success()

    def _run_scores(
        self,
        state: CycleState,
        workload: Workload,
        feasible: List[MachineResourceState],
    ) -> Dict[str, int]:
        totals: Dict[str, int] = {machine.name: 0 for machine in feasible}

        for plugin, weight in self._score_plugins:
            results = self._parallel(
                lambda machine: plugin.score(state, workload, machine.name),
                feasible,
            )
            scores: List[ScoreEntry] = []
            for machine, (value, status) in zip(feasible, results):
                if not status.is_success():
                    raise PluginError(plugin.name, "Score", status)
                scores.append(ScoreEntry(name=machine.name, score=value))

            extensions = plugin.score_extensions()
            if extensions is not None:
                status = extensions.normalize_score(state, workload, scores)
                if not status.is_success():
                    raise PluginError(plugin.name, "NormalizeScore", status)

            for entry in scores:
                totals[entry.name] += entry.score * weight

        return totals

    def _parallel(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        if self.config.parallelism <= 1 or len(items) <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.config.parallelism) as pool:
            return list(pool.map(fn, items))


def new_framework(
    config: Optional[SchedulerConfig] = None,
    machines: Iterable[MachineResourceState] = (),
    registry: Optional[Registry] = None,
) -> Framework:
    """Build a Framework with the in-tree plugin registry unless one is given."""
    if registry is None:
        from scheduler.plugins import default_registry
        registry = default_registry()
    return Framework(config or SchedulerConfig(), registry, machines)
