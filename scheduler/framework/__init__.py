"""
scheduler/framework — the host side of the plugin contract.

Public API:
    CycleState             — per-workload, write-once pre-filter slot
    Status, Code           — typed extension point results
    Snapshot               — machine name → MachineResourceState
    Registry               — plugin name → factory
    Framework              — runs PreFilter → Filter → Score → NormalizeScore
    new_framework()        — Framework with the in-tree registry
    SchedulingFailedError  — no machine passed Filter
    PluginError            — a plugin returned Status.ERROR
"""

from scheduler.framework.cycle_state import (
    CycleState,
    PreFilterStateMissingError,
    StateAlreadyWrittenError,
)
from scheduler.framework.plugin import (
    FilterPlugin,
    FrameworkHandle,
    PreFilterPlugin,
    Registry,
    ScoreExtensions,
    ScorePlugin,
    UnknownPluginError,
)
from scheduler.framework.runtime import (
    BatchResult,
    Framework,
    PluginError,
    ScheduleResult,
    SchedulingFailedError,
    new_framework,
)
from scheduler.framework.snapshot import NodeNotFoundError, Snapshot
from scheduler.framework.status import Code, Status

__all__ = [
    "CycleState",
    "PreFilterStateMissingError",
    "StateAlreadyWrittenError",
    "FilterPlugin",
    "FrameworkHandle",
    "PreFilterPlugin",
    "Registry",
    "ScoreExtensions",
    "ScorePlugin",
    "UnknownPluginError",
    "BatchResult",
    "Framework",
    "PluginError",
    "ScheduleResult",
    "SchedulingFailedError",
    "new_framework",
    "NodeNotFoundError",
    "Snapshot",
    "Code",
    "Status",
]
