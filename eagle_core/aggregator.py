"""
eagle_core/aggregator.py
─────────────────────────
Reduce a workload's containers to one required-resource vector.

How the vector is built
────────────────────────
  1. Sum every regular container's request.
     Regular containers run side by side, so they all need room at once.

  2. Take the component-wise max against each init container.
     Init containers run one at a time and finish before the regular
     containers start. The workload therefore needs whichever phase asks
     for more, never the sum of both:

         required = max(sum(containers), init_1, init_2, ...)

  3. Add pod overhead, if the feature is enabled and overhead is declared.

Example
────────
  containers      : {cpu: 500m, mem: 1Gi} + {cpu: 250m, mem: 512Mi}
  init containers : {cpu: 1000m, mem: 256Mi}
  overhead        : {cpu: 100m}

  step 1 → {cpu: 750m,  mem: 1.5Gi}
  step 2 → {cpu: 1000m, mem: 1.5Gi}
  step 3 → {cpu: 1100m, mem: 1.5Gi}

Pure function: the caller stores the result in cycle state.
"""

from __future__ import annotations

from scheduler.shared.models import Resource, Workload


def compute_required_resources(
    workload: Workload,
    *,
    pod_overhead_enabled: bool = True,
) -> Resource:
    """
    Compute the resource vector a workload needs on a machine.

    Args:
        workload:             The workload being scheduled.
        pod_overhead_enabled: Whether pod overhead accounting is active
                              (FeatureGates.pod_overhead). When False the
                              overhead vector is ignored entirely.

    Returns:
        Resource with every field >= 0. Absent requests count as 0.
    """
    result = Resource()
    for container in workload.containers:
        result = result.add(container.requests)

    for container in workload.init_containers:
        result = result.set_max(container.requests)

    if pod_overhead_enabled and workload.overhead is not None:
        result = result.add(workload.overhead)

    return result
