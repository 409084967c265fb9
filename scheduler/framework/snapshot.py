"""
scheduler/framework/snapshot.py
────────────────────────────────
Snapshot: the host's view of every machine for one scheduling cycle.

Filter receives a MachineResourceState directly. Score receives only a
machine name and resolves it here, the same way a plugin resolves a node
name against the scheduler's shared lister.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from scheduler.shared.models import MachineResourceState


class NodeNotFoundError(Exception):
    """
    Raised when a machine name cannot be resolved against the snapshot.

    Attributes:
        name: The machine name that was looked up.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"machine {name!r} not found in snapshot")


class Snapshot:
    """Immutable name → MachineResourceState lookup."""

    def __init__(self, machines: Iterable[MachineResourceState] = ()) -> None:
        self._machines: Dict[str, MachineResourceState] = {
            machine.name: machine for machine in machines
        }

    def get(self, name: str) -> MachineResourceState:
        try:
            return self._machines[name]
        except KeyError:
            raise NodeNotFoundError(name) from None

    def list(self) -> List[MachineResourceState]:
        return list(self._machines.values())

    def __len__(self) -> int:
        return len(self._machines)

    def __contains__(self, name: object) -> bool:
        return name in self._machines
