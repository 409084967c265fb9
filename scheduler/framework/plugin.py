"""
scheduler/framework/plugin.py
──────────────────────────────
Extension point contracts and the plugin registry.

Contracts
──────────
A plugin implements any subset of these. The host calls them in a fixed
order for every workload:

    PreFilterPlugin.pre_filter        once per workload
    FilterPlugin.filter               once per candidate machine
    ScorePlugin.score                 once per machine that passed Filter
    ScoreExtensions.normalize_score   once, after every score is in

Each call returns a Status (Score returns (int, Status)). Plugins never
raise into the host; internal exceptions are converted to Status.ERROR at
the plugin boundary.

Registry
─────────
Plugins are built by name from configuration:

    registry = Registry()
    registry.register("eagle", Eagle.new)
    plugin = registry.build("eagle", args={"cpu_weight": 1}, handle=handle)

A factory takes (args: dict, handle: FrameworkHandle) and returns a Plugin.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from scheduler.framework.cycle_state import CycleState
from scheduler.framework.snapshot import Snapshot
from scheduler.framework.status import Status
from scheduler.shared.models import MachineResourceState, ScoreList, Workload


class FrameworkHandle(abc.ABC):
    """What a plugin may ask of the host."""

    @abc.abstractmethod
    def snapshot(self) -> Snapshot:
        """The machine snapshot for the current cycle."""

    @abc.abstractmethod
    def feature_enabled(self, name: str) -> bool:
        """Whether a named feature gate is on."""


class Plugin(abc.ABC):
    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Registry name of the plugin."""


class PreFilterPlugin(Plugin):
    @abc.abstractmethod
    def pre_filter(self, state: CycleState, workload: Workload) -> Status:
        """Compute per-workload data and store it in cycle state."""


class FilterPlugin(Plugin):
    @abc.abstractmethod
    def filter(
        self,
        state: CycleState,
        workload: Workload,
        machine: MachineResourceState,
    ) -> Status:
        """Admit or reject one machine."""


class ScoreExtensions(abc.ABC):
    @abc.abstractmethod
    def normalize_score(
        self,
        state: CycleState,
        workload: Workload,
        scores: ScoreList,
    ) -> Status:
        """Rewrite scores in place into the host's score range."""


class ScorePlugin(Plugin):
    @abc.abstractmethod
    def score(
        self,
        state: CycleState,
        workload: Workload,
        machine_name: str,
    ) -> Tuple[int, Status]:
        """Raw score for one machine."""

    def score_extensions(self) -> Optional[ScoreExtensions]:
        """Return self if the plugin normalises its own scores, else None."""
        return None


PluginFactory = Callable[[Mapping[str, Any], FrameworkHandle], Plugin]


class UnknownPluginError(Exception):
    """
    Raised when a configured plugin name has no registered factory.

    Attributes:
        name: The unknown plugin name.
    """

    def __init__(self, name: str, known: List[str]) -> None:
        self.name = name
        super().__init__(f"plugin {name!r} is not registered (known: {sorted(known)})")


class Registry:
    """Name → factory map for building plugins from configuration."""

    def __init__(self) -> None:
        self._factories: Dict[str, PluginFactory] = {}

    def register(self, name: str, factory: PluginFactory) -> None:
        if name in self._factories:
            raise ValueError(f"plugin {name!r} is already registered")
        self._factories[name] = factory

    def build(
        self,
        name: str,
        args: Optional[Mapping[str, Any]],
        handle: FrameworkHandle,
    ) -> Plugin:
        try:
            factory = self._factories[name]
        except KeyError:
            raise UnknownPluginError(name, list(self._factories)) from None
        return factory(args or {}, handle)

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories
