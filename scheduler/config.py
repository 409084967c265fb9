"""
scheduler/config.py
────────────────────
Configuration for the host and the EAGLE plugin.

Loads YAML and validates it with pydantic. Unknown keys are rejected so a
typo in a config file fails loudly instead of silently falling back to a
default.

Example file
─────────────
    scheduler_name: eagle-scheduler
    parallelism: 4
    log_level: DEBUG
    feature_gates:
      pod_overhead: true
    plugins:
      - name: eagle
        weight: 1
        args:
          cpu_weight: 1
          memory_weight: 1

R0 is deliberately not configurable: the acceptance geometry is fixed.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


DEFAULT_SCHEDULER_NAME = "eagle-scheduler"

FEATURE_POD_OVERHEAD = "pod_overhead"


class ConfigError(Exception):
    """Raised when a config file or plugin args fail to load or validate."""


class EagleArgs(BaseModel):
    """
    Arguments of the EAGLE plugin.

    Fields:
        kubeconfig    → Path to a kubeconfig. Decoded and carried for
                        deployments that run against a real API server;
                        the in-process host does not use it.
        master        → API server URL override. Same as kubeconfig.
        cpu_weight    → Weight of CPU in the allocation scorer.
        memory_weight → Weight of memory in the allocation scorer.
                        The EAGLE formula treats both symmetrically, so the
                        weights are recorded but do not change scores.
        ratio_mode    → "float" (default) divides utilisation ratios in
                        floating point. "truncate" uses integer division,
                        which collapses most ratios to 0 or 1 and so
                        effectively disables the EAGLE bound.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    kubeconfig: Optional[str] = None
    master: Optional[str] = None
    cpu_weight: int = Field(1, ge=1)
    memory_weight: int = Field(1, ge=1)
    ratio_mode: Literal["float", "truncate"] = "float"

    @classmethod
    def decode(cls, args: Optional[Mapping[str, Any]]) -> "EagleArgs":
        try:
            return cls.model_validate(dict(args or {}))
        except ValidationError as exc:
            raise ConfigError(f"invalid eagle plugin args: {exc}") from exc


class FeatureGates(BaseModel):
    """Named feature switches consulted by plugins."""
    model_config = ConfigDict(extra="forbid")

    pod_overhead: bool = Field(
        True,
        description="Count pod overhead in the workload's required resources."
    )

    def enabled(self, name: str) -> bool:
        return bool(getattr(self, name, False))


class PluginConfig(BaseModel):
    """One enabled plugin: its registry name, score weight and raw args."""
    model_config = ConfigDict(extra="forbid")

    name: str
    weight: int = Field(1, ge=1, description="Multiplier on normalised scores")
    args: Dict[str, Any] = Field(default_factory=dict)


def _default_plugins() -> List[PluginConfig]:
    return [PluginConfig(name="eagle")]


class SchedulerConfig(BaseModel):
    """Top-level host configuration."""
    model_config = ConfigDict(extra="forbid")

    scheduler_name: str = DEFAULT_SCHEDULER_NAME
    feature_gates: FeatureGates = Field(default_factory=FeatureGates)
    plugins: List[PluginConfig] = Field(default_factory=_default_plugins)
    parallelism: int = Field(
        1, ge=1,
        description="Worker threads for Filter/Score across machines. 1 = sequential."
    )
    log_level: str = "INFO"


def load_config(config_path: Optional[str] = None) -> SchedulerConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to a YAML file. None, or a path that does not
                     exist, yields the defaults.

    Returns:
        Validated SchedulerConfig.

    Raises:
        ConfigError: if the YAML cannot be parsed or fails validation.
    """
    if config_path is None or not os.path.exists(config_path):
        return SchedulerConfig()

    with open(config_path, "r") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"cannot parse {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    try:
        return SchedulerConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {config_path}: {exc}") from exc
