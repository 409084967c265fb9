"""
scheduler/shared/models.py
───────────────────────────
The data structures exchanged between the host framework and the EAGLE plugin.

Design philosophy
-----------------
Every model answers one question: "What does the plugin *need to know*
about this thing in order to admit and rank a placement?"

The answer is deliberately small. A workload is reduced to its containers'
resource requests. A machine is reduced to what it can allocate, what has
already been promised to other workloads, and how many workloads it may
host. Nothing else about the cluster reaches the plugin.

Reading guide
-------------
Read top-to-bottom. Each model builds on the ones above it.

Units
-----
  CPU               → millicores (1 core = 1000)
  memory / storage  → bytes
  scalar resources  → whole units of the named resource (e.g. GPUs)

Manifest parsing uses kubernetes.utils.parse_quantity so "500m", "1Gi" and
"2e3" mean exactly what they mean to a kube-apiserver.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

from kubernetes.utils import parse_quantity
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: RESOURCE NAMES
# The keys used in Kubernetes-style resource lists and in rejection reasons.
# ─────────────────────────────────────────────────────────────────────────────

RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"
RESOURCE_EPHEMERAL_STORAGE = "ephemeral-storage"
RESOURCE_PODS = "pods"

Quantity = Union[str, int, float, Decimal]


def _milli_value(quantity: Quantity) -> int:
    """Millicores for a CPU quantity, rounded up like Quantity.MilliValue()."""
    return int(math.ceil(parse_quantity(quantity) * 1000))


def _value(quantity: Quantity) -> int:
    """Whole units for a quantity, rounded up like Quantity.Value()."""
    return int(math.ceil(parse_quantity(quantity)))


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: RESOURCE VECTOR
# What a workload asks for, what a machine offers, what is already in use.
# ─────────────────────────────────────────────────────────────────────────────

class Resource(BaseModel):
    """
    An immutable CPU / memory / storage / scalar resource vector.

    The same shape is used for three different things:
      - the required vector of a workload (output of the aggregator)
      - a machine's allocatable capacity
      - the capacity a machine has already promised to other workloads

    Arithmetic never mutates: add() and set_max() return a new Resource.

    Fields:
        milli_cpu         → CPU in millicores.
        memory            → Memory in bytes.
        ephemeral_storage → Local ephemeral storage in bytes.
        scalar_resources  → Any other named resource, e.g. {"nvidia.com/gpu": 2}.
    """
    model_config = ConfigDict(frozen=True)

    milli_cpu: int = Field(0, ge=0, description="CPU in millicores")
    memory: int = Field(0, ge=0, description="Memory in bytes")
    ephemeral_storage: int = Field(0, ge=0, description="Ephemeral storage in bytes")
    scalar_resources: Dict[str, NonNegativeInt] = Field(
        default_factory=dict,
        description="Extended resources keyed by name. Absent key = 0."
    )

    @classmethod
    def from_resource_list(cls, resources: Optional[Mapping[str, Quantity]]) -> "Resource":
        """
        Build a vector from a Kubernetes-style resource list.

            Resource.from_resource_list({"cpu": "500m", "memory": "1Gi"})
            → Resource(milli_cpu=500, memory=1073741824)

        "pods" is a machine attribute, not a resource a workload requests,
        so it is skipped here (see MachineResourceState.from_manifest).
        """
        if not resources:
            return cls()

        milli_cpu = 0
        memory = 0
        ephemeral_storage = 0
        scalar: Dict[str, int] = {}
        for name, quantity in resources.items():
            if name == RESOURCE_CPU:
                milli_cpu = _milli_value(quantity)
            elif name == RESOURCE_MEMORY:
                memory = _value(quantity)
            elif name == RESOURCE_EPHEMERAL_STORAGE:
                ephemeral_storage = _value(quantity)
            elif name == RESOURCE_PODS:
                continue
            else:
                scalar[name] = _value(quantity)

        return cls(
            milli_cpu=milli_cpu,
            memory=memory,
            ephemeral_storage=ephemeral_storage,
            scalar_resources=scalar,
        )

    def add(self, other: Optional["Resource"]) -> "Resource":
        """Component-wise sum. Scalar resource names are unioned."""
        if other is None:
            return self
        scalar = dict(self.scalar_resources)
        for name, value in other.scalar_resources.items():
            scalar[name] = scalar.get(name, 0) + value
        return Resource(
            milli_cpu=self.milli_cpu + other.milli_cpu,
            memory=self.memory + other.memory,
            ephemeral_storage=self.ephemeral_storage + other.ephemeral_storage,
            scalar_resources=scalar,
        )

    def set_max(self, other: Optional["Resource"]) -> "Resource":
        """Component-wise maximum. Scalar resource names are unioned."""
        if other is None:
            return self
        scalar = dict(self.scalar_resources)
        for name, value in other.scalar_resources.items():
            scalar[name] = max(scalar.get(name, 0), value)
        return Resource(
            milli_cpu=max(self.milli_cpu, other.milli_cpu),
            memory=max(self.memory, other.memory),
            ephemeral_storage=max(self.ephemeral_storage, other.ephemeral_storage),
            scalar_resources=scalar,
        )

    def is_zero(self) -> bool:
        """True if every component, scalar resources included, is exactly 0."""
        return (
            self.milli_cpu == 0
            and self.memory == 0
            and self.ephemeral_storage == 0
            and all(value == 0 for value in self.scalar_resources.values())
        )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: WORKLOAD
# The unit being placed: containers that each declare a request.
# ─────────────────────────────────────────────────────────────────────────────

class Container(BaseModel):
    """One container of a workload and its declared resource requests."""
    model_config = ConfigDict(frozen=True)

    name: str = Field("", description="Container name (informational only)")
    requests: Resource = Field(default_factory=Resource)


class Workload(BaseModel):
    """
    A workload to be placed (a pod, in Kubernetes terms).

    Fields:
        containers      → Regular containers. They run concurrently, so their
                          requests are summed.
        init_containers → Run one at a time before the regular containers.
                          Only the largest one has to coexist with nothing else.
        overhead        → Pod-level runtime overhead (e.g. a sandbox VM).
                          Counted only when the pod overhead feature is enabled.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Workload name")
    namespace: str = Field("default", description="Workload namespace")
    containers: List[Container] = Field(default_factory=list)
    init_containers: List[Container] = Field(default_factory=list)
    overhead: Optional[Resource] = Field(
        None,
        description="Pod overhead. None = no overhead declared."
    )

    @property
    def key(self) -> str:
        """namespace/name, the identifier used in log lines."""
        return f"{self.namespace}/{self.name}"

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "Workload":
        """
        Parse a pod manifest (as loaded from YAML or JSON).

        Only the fields the plugin needs are read:
          metadata.name, metadata.namespace,
          spec.containers[].resources.requests,
          spec.initContainers[].resources.requests,
          spec.overhead
        """
        metadata = manifest.get("metadata") or {}
        spec = manifest.get("spec") or {}

        def _containers(items: Optional[List[Mapping[str, Any]]]) -> List[Container]:
            result = []
            for item in items or []:
                resources = item.get("resources") or {}
                result.append(Container(
                    name=item.get("name", ""),
                    requests=Resource.from_resource_list(resources.get("requests")),
                ))
            return result

        overhead = spec.get("overhead")
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "default"),
            containers=_containers(spec.get("containers")),
            init_containers=_containers(spec.get("initContainers")),
            overhead=Resource.from_resource_list(overhead) if overhead is not None else None,
        )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 4: MACHINE
# The read-only view of a candidate machine supplied by the host.
# ─────────────────────────────────────────────────────────────────────────────

class MachineResourceState(BaseModel):
    """
    A snapshot of one candidate machine's capacity and usage.

    Not owned or mutated by the plugin. The host builds one per machine per
    scheduling cycle.

    Fields:
        name                   → Machine identifier (node name).
        allocatable            → Capacity available to workloads.
        requested              → Capacity already promised to placed workloads.
        allowed_workload_count → Maximum number of workloads the machine hosts.
        workload_count         → Number of workloads currently placed on it.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Machine identifier")
    allocatable: Resource = Field(default_factory=Resource)
    requested: Resource = Field(default_factory=Resource)
    allowed_workload_count: int = Field(110, ge=0, description="Pod capacity")
    workload_count: int = Field(0, ge=0, description="Pods currently placed")

    @classmethod
    def from_manifest(
        cls,
        manifest: Mapping[str, Any],
        requested: Optional[Resource] = None,
        workload_count: int = 0,
    ) -> "MachineResourceState":
        """
        Parse a node manifest.

        status.allocatable provides both the capacity vector and the pod cap
        (the "pods" entry). What is already requested on the node is not part
        of the node object, so the caller passes it in.
        """
        metadata = manifest.get("metadata") or {}
        status = manifest.get("status") or {}
        allocatable = status.get("allocatable") or {}

        kwargs: Dict[str, Any] = {}
        if RESOURCE_PODS in allocatable:
            kwargs["allowed_workload_count"] = _value(allocatable[RESOURCE_PODS])

        return cls(
            name=metadata.get("name", ""),
            allocatable=Resource.from_resource_list(allocatable),
            requested=requested or Resource(),
            workload_count=workload_count,
            **kwargs,
        )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 5: VERDICTS AND SCORES
# What the plugin hands back to the host.
# ─────────────────────────────────────────────────────────────────────────────

class InsufficientResource(BaseModel):
    """
    One failed dimension of a feasibility check.

    A check may emit zero or more of these. Zero means the machine admits
    the workload.

    Fields:
        resource_name → Which dimension failed ("pods", "cpu", "memory").
        reason        → Human-readable reason, passed through to the host.
        requested     → What the workload asked for on this dimension.
        used          → What the machine already has in use.
        capacity      → What the machine can allocate in total.
    """
    model_config = ConfigDict(frozen=True)

    resource_name: str
    reason: str
    requested: int
    used: int
    capacity: int


class ScoreEntry(BaseModel):
    """
    A (machine, score) pair.

    Produced by the Score extension point, rewritten in place by
    NormalizeScore, so this model is intentionally not frozen.
    """
    name: str = Field(..., description="Machine identifier")
    score: int = Field(0, description="Raw score, then normalised score")


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 6: CONVENIENCE TYPE ALIASES
# ─────────────────────────────────────────────────────────────────────────────

# The result of a full scheduling cycle: machine name per workload key
# e.g., {"default/web-1": "machine-a"}
PlacementPlan = Dict[str, str]

ScoreList = List[ScoreEntry]
