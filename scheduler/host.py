"""
scheduler/host.py
──────────────────
Wires a config file, node manifests and pod manifests into one batch run.

    result = run_batch("scheduler.yaml", nodes, pods)
    result.plan       # {"ns/pod": "node", ...}
    result.failures   # {"ns/pod": "0/3 machines are available ..."}

Node manifests carry allocatable capacity only. Resources already in use
on a node come from the pods bound to it: any pod manifest whose
spec.nodeName is set is accounted on that node before the batch starts,
and only unbound pods are scheduled.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from eagle_core import compute_required_resources
from scheduler.config import FEATURE_POD_OVERHEAD, load_config
from scheduler.framework import BatchResult, Framework, new_framework
from scheduler.logging_setup import configure_logging
from scheduler.shared.models import MachineResourceState, Resource, Workload

logger = logging.getLogger(__name__)


def build_machines(
    node_manifests: Iterable[Mapping[str, Any]],
    bound_pods: Iterable[Mapping[str, Any]] = (),
    *,
    pod_overhead_enabled: bool = True,
) -> List[MachineResourceState]:
    """Parse nodes and account every bound pod on the node it is bound to."""
    usage: Dict[str, Resource] = {}
    counts: Dict[str, int] = {}
    for manifest in bound_pods:
        node_name = (manifest.get("spec") or {}).get("nodeName")
        required = compute_required_resources(
            Workload.from_manifest(manifest),
            pod_overhead_enabled=pod_overhead_enabled,
        )
        usage[node_name] = usage.get(node_name, Resource()).add(required)
        counts[node_name] = counts.get(node_name, 0) + 1

    machines = []
    for manifest in node_manifests:
        name = (manifest.get("metadata") or {}).get("name", "")
        machines.append(MachineResourceState.from_manifest(
            manifest,
            requested=usage.pop(name, None),
            workload_count=counts.pop(name, 0),
        ))

    for orphan in usage:
        logger.warning("build_machines: pods bound to unknown node %s ignored", orphan)
    return machines


def run_batch(
    config_path: Optional[str],
    node_manifests: Iterable[Mapping[str, Any]],
    pod_manifests: Iterable[Mapping[str, Any]],
) -> BatchResult:
    """
    Load config, set up logging, build the framework and place unbound pods.

    Raises:
        ConfigError: the config file is invalid.
        PluginError: a plugin failed mid-cycle.
    """
    config = load_config(config_path)
    configure_logging(config.log_level)

    bound: List[Mapping[str, Any]] = []
    pending: List[Workload] = []
    for manifest in pod_manifests:
        if (manifest.get("spec") or {}).get("nodeName"):
            bound.append(manifest)
        else:
            pending.append(Workload.from_manifest(manifest))

    machines = build_machines(
        node_manifests,
        bound,
        pod_overhead_enabled=config.feature_gates.enabled(FEATURE_POD_OVERHEAD),
    )
    framework: Framework = new_framework(config, machines)

    logger.info(
        "run_batch: %d pending workloads, %d bound, %d machines",
        len(pending), len(bound), len(machines),
    )
    return framework.schedule(pending)
