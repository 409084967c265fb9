"""
scheduler/framework/cycle_state.py
───────────────────────────────────
CycleState: per-workload scratch space for one scheduling cycle.

The host creates a fresh CycleState for every workload it schedules and
throws it away when the cycle ends. PreFilter writes the workload's required
vector once; every Filter call in the same cycle reads it.

The slot is typed. There is no generic key → object lookup, so a reader can
never get back something that is not a Resource. The only failure modes are
"nothing was written" and "written twice".
"""

from __future__ import annotations

from typing import Optional

from scheduler.shared.models import Resource


class PreFilterStateMissingError(Exception):
    """
    Raised when the pre-filter slot is read before PreFilter wrote it.

    Attributes:
        key: The state key that was read.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"error reading {key!r} from cycle state: not found "
            f"(PreFilter was not run for this workload)"
        )


class StateAlreadyWrittenError(Exception):
    """Raised when PreFilter writes the slot a second time in one cycle."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"cycle state {key!r} is write-once and was already written")


class CycleState:
    """
    Write-once, read-many holder for the pre-filter Resource.

    Not shared across cycles or workloads; the host guarantees a single
    writer. Readers across machines may run in parallel because the stored
    Resource is immutable.
    """

    def __init__(self) -> None:
        self._pre_filter_key: Optional[str] = None
        self._pre_filter: Optional[Resource] = None

    def write_pre_filter(self, key: str, required: Resource) -> None:
        if self._pre_filter is not None:
            raise StateAlreadyWrittenError(key)
        self._pre_filter_key = key
        self._pre_filter = required

    def read_pre_filter(self, key: str) -> Resource:
        if self._pre_filter is None or self._pre_filter_key != key:
            raise PreFilterStateMissingError(key)
        return self._pre_filter

    def __repr__(self) -> str:
        return f"CycleState(pre_filter_key={self._pre_filter_key!r})"
