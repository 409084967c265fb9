"""
scheduler/plugins/eagle.py
───────────────────────────
The EAGLE plugin: eagle_core wired into the four extension points.

  PreFilter      → compute_required_resources(workload) → cycle state
  Filter         → fits_request(cached required, machine)
  Score          → eagle_score(required, snapshot machine)
  NormalizeScore → normalize_scores(scores)

Error contract
───────────────
  Filter without PreFilter  → Status.ERROR  (never a silent zero request)
  Score on unknown machine  → Status.ERROR  (host may retry on a new snapshot)
  Machine does not fit      → Status.UNSCHEDULABLE with every reason

Nothing is raised into the host.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from eagle_core import (
    MAX_NODE_SCORE,
    MIN_NODE_SCORE,
    ResourceAllocationScorer,
    compute_required_resources,
    eagle_resource_scorer,
    fits_request,
    normalize_scores,
)
from eagle_core.fit import RATIO_FLOAT
from scheduler.config import FEATURE_POD_OVERHEAD, EagleArgs
from scheduler.framework.cycle_state import (
    CycleState,
    PreFilterStateMissingError,
    StateAlreadyWrittenError,
)
from scheduler.framework.plugin import (
    FilterPlugin,
    FrameworkHandle,
    PreFilterPlugin,
    ScoreExtensions,
    ScorePlugin,
)
from scheduler.framework.snapshot import NodeNotFoundError
from scheduler.framework.status import Status
from scheduler.shared.models import (
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    MachineResourceState,
    ScoreList,
    Workload,
)

logger = logging.getLogger(__name__)

NAME = "eagle"
PRE_FILTER_STATE_KEY = "PreFilter" + NAME


class Eagle(PreFilterPlugin, FilterPlugin, ScorePlugin, ScoreExtensions):
    """
    EAGLE admission + ranking plugin.

    Stateless between cycles: everything per-workload lives in CycleState.
    One instance serves every workload the host schedules.
    """

    def __init__(
        self,
        args: EagleArgs,
        handle: FrameworkHandle,
        *,
        ratio_mode: str = RATIO_FLOAT,
    ) -> None:
        self.args = args
        self.handle = handle
        self.ratio_mode = ratio_mode
        self.allocation_scorer = ResourceAllocationScorer(
            name="NodeResourcesEagleAllocated",
            scorer=eagle_resource_scorer(MAX_NODE_SCORE),
            resource_to_weight={
                RESOURCE_CPU: args.cpu_weight,
                RESOURCE_MEMORY: args.memory_weight,
            },
        )

    @classmethod
    def new(cls, args: Mapping[str, Any], handle: FrameworkHandle) -> "Eagle":
        """Registry factory. Raises ConfigError on invalid args."""
        decoded = EagleArgs.decode(args)
        logger.info("eagle: plugin args %s", decoded.model_dump())
        return cls(decoded, handle, ratio_mode=decoded.ratio_mode)

    @property
    def name(self) -> str:
        return NAME

    # ── PreFilter ──────────────────────────────────────────────────────────────

    def pre_filter(self, state: CycleState, workload: Workload) -> Status:
        required = compute_required_resources(
            workload,
            pod_overhead_enabled=self.handle.feature_enabled(FEATURE_POD_OVERHEAD),
        )
        try:
            state.write_pre_filter(PRE_FILTER_STATE_KEY, required)
        except StateAlreadyWrittenError as exc:
            return Status.error(str(exc))
        logger.debug(
            "eagle: pre_filter %s → cpu=%dm mem=%d",
            workload.key, required.milli_cpu, required.memory,
        )
        return Status.success()

    # ── Filter ─────────────────────────────────────────────────────────────────

    def filter(
        self,
        state: CycleState,
        workload: Workload,
        machine: MachineResourceState,
    ) -> Status:
        try:
            required = state.read_pre_filter(PRE_FILTER_STATE_KEY)
        except PreFilterStateMissingError as exc:
            return Status.error(str(exc))

        insufficient = fits_request(required, machine, ratio_mode=self.ratio_mode)
        if insufficient:
            reasons = [r.reason for r in insufficient]
            logger.debug(
                "eagle: %s does not fit on %s: %s",
                workload.key, machine.name, reasons,
            )
            return Status.unschedulable(*reasons)
        return Status.success()

    # ── Score ──────────────────────────────────────────────────────────────────

    def score(
        self,
        state: CycleState,
        workload: Workload,
        machine_name: str,
    ) -> Tuple[int, Status]:
        try:
            machine = self.handle.snapshot().get(machine_name)
        except NodeNotFoundError as exc:
            logger.warning("eagle: cannot score %s for %s: %s", machine_name, workload.key, exc)
            return 0, Status.error(f"getting machine {machine_name!r} from snapshot: {exc}")

        required = compute_required_resources(
            workload,
            pod_overhead_enabled=self.handle.feature_enabled(FEATURE_POD_OVERHEAD),
        )
        value = self.allocation_scorer.score(required, machine)
        logger.debug("eagle: score %s on %s = %d", workload.key, machine_name, value)
        return value, Status.success()

    def score_extensions(self) -> Optional[ScoreExtensions]:
        return self

    # ── NormalizeScore ─────────────────────────────────────────────────────────

    def normalize_score(
        self,
        state: CycleState,
        workload: Workload,
        scores: ScoreList,
    ) -> Status:
        normalize_scores(scores, min_score=MIN_NODE_SCORE, max_score=MAX_NODE_SCORE)
        return Status.success()

    def __repr__(self) -> str:
        return f"Eagle(args={self.args!r}, ratio_mode={self.ratio_mode!r})"
