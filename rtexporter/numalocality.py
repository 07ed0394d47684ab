"""Filters over pod resources based on NUMA locality."""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from rtexporter.podres import PodResources, TopologyInfo

# Criteria a pod must meet to pass ``always_pass``: none at all.
_NO_CRITERIA: tuple[Callable[[Optional[PodResources]], bool], ...] = ()


def always_pass(pr: Optional[PodResources]) -> bool:
    """Accept every pod: it is the filter with no criteria."""
    return all(check(pr) for check in _NO_CRITERIA)


def required(pr: Optional[PodResources]) -> bool:
    """Tell whether the pod holds any exclusive, NUMA-bound resource."""
    if pr is None:
        return False
    for cr in pr.containers:
        if cr.cpu_ids:
            return True
        if any(is_present(mem.topology) for mem in cr.memory):
            return True
        if any(dev.device_ids and is_present(dev.topology) for dev in cr.devices):
            return True
    return False


def is_present(topo: Optional[TopologyInfo]) -> bool:
    """Tell whether the topology names at least one concrete NUMA node."""
    if topo is None or topo.nodes is None:
        return False
    return any(node.id >= 0 for node in topo.nodes)