"""Load the subset of the kubelet configuration file the exporter cares about."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_FIELDS = {
    "kind": "kind",
    "apiVersion": "api_version",
    "topologyManagerPolicy": "topology_manager_policy",
    "topologyManagerScope": "topology_manager_scope",
    "cpuManagerPolicy": "cpu_manager_policy",
    "memoryManagerPolicy": "memory_manager_policy",
    "reservedSystemCPUs": "reserved_system_cpus",
}


@dataclass
class KubeletConfiguration:
    kind: str = ""
    api_version: str = ""
    topology_manager_policy: str = ""
    topology_manager_scope: str = ""
    cpu_manager_policy: str = ""
    memory_manager_policy: str = ""
    reserved_system_cpus: str = ""
    raw: dict[str, Any] = field(default_factory=dict)


def get_kubelet_config_from_local_file(path: str | Path) -> KubeletConfiguration:
    """Read the node-local kubelet configuration file at ``path``."""
    data = yaml.safe_load(Path(path).read_text())
    if data is None:
        return KubeletConfiguration()
    if not isinstance(data, dict):
        raise ValueError(f"kubelet configuration in {str(path)!r} is not a mapping")
    values: dict[str, str] = {}
    for key, attr in _FIELDS.items():
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if not isinstance(value, str):
            raise ValueError(f"kubelet configuration key {key!r} has non-string value")
        values[attr] = value
    return KubeletConfiguration(raw=data, **values)