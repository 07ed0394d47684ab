"""Exporter metrics: labelled counters and gauges plus their text exposition."""

from __future__ import annotations

import os
import socket
import threading
from collections.abc import Mapping, Sequence
from enum import Enum


class MetricKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_value(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return repr(value)


class MetricVec:
    """A family of samples of one metric, one sample per label combination."""

    def __init__(
        self, name: str, help: str, label_names: Sequence[str], kind: MetricKind
    ) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self.kind = kind
        self._values: dict[tuple[str, ...], float] = {}
        self._lock = threading.Lock()

    def _key(self, labels: Mapping[str, str]) -> tuple[str, ...]:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"metric {self.name} expects labels {sorted(self.label_names)}, "
                f"got {sorted(labels)}"
            )
        return tuple(str(labels[name]) for name in self.label_names)

    def inc(self, labels: Mapping[str, str]) -> None:
        """Add one to the sample selected by ``labels``."""
        key = self._key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + 1.0

    def set(self, labels: Mapping[str, str], value: float) -> None:
        """Set the sample selected by ``labels``; only gauges can be set."""
        if self.kind is not MetricKind.GAUGE:
            raise TypeError(f"metric {self.name} is a {self.kind.value}, it cannot be set")
        key = self._key(labels)
        with self._lock:
            self._values[key] = float(value)

    def value(self, labels: Mapping[str, str]) -> float:
        """Current value of the sample selected by ``labels`` (0 if never touched)."""
        key = self._key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def _render(self) -> str:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} {self.kind.value}"]
        with self._lock:
            samples = sorted(self._values.items())
        order = sorted(range(len(self.label_names)), key=lambda i: self.label_names[i])
        for key, value in samples:
            labels = ",".join(f'{self.label_names[i]}="{_escape(key[i])}"' for i in order)
            lines.append(f"{self.name}{{{labels}}} {_format_value(value)}")
        return "\n".join(lines) + "\n"


POD_RESOURCE_API_CALLS_FAILURE = MetricVec(
    "rte_podresource_api_call_failures_total",
    "The total number of podresource api calls that failed by the updater",
    ["node", "function_name"],
    MetricKind.COUNTER,
)

NODE_RESOURCE_TOPOLOGY_WRITES = MetricVec(
    "rte_noderesourcetopology_writes_total",
    "The total number of NodeResourceTopology writes",
    ["node", "operation", "trigger"],
    MetricKind.COUNTER,
)

OPERATION_DELAY = MetricVec(
    "rte_operation_delay_milliseconds",
    "The latency between exporting stages, milliseconds",
    ["node", "operation_name", "trigger"],
    MetricKind.GAUGE,
)

WAKEUP_DELAY = MetricVec(
    "rte_wakeup_delay_milliseconds",
    "The wakeup delay of the monitor code, milliseconds",
    ["node", "trigger"],
    MetricKind.GAUGE,
)

_REGISTRY = (
    POD_RESOURCE_API_CALLS_FAILURE,
    NODE_RESOURCE_TOPOLOGY_WRITES,
    OPERATION_DELAY,
    WAKEUP_DELAY,
)

_node_name = ""


def setup(nname: str) -> None:
    """Set the node label: ``nname``, else $NODE_NAME, else the host name."""
    global _node_name
    val = nname
    if val == "":
        env = os.environ.get("NODE_NAME")
        val = env if env is not None else socket.gethostname()
    _node_name = val


def get_node_name() -> str:
    """The node name used as the ``node`` label."""
    return _node_name


def update_node_resource_topology_writes_metric(operation: str, trigger: str) -> None:
    NODE_RESOURCE_TOPOLOGY_WRITES.inc(
        {"node": _node_name, "operation": operation, "trigger": trigger}
    )


def update_pod_resource_api_calls_failure_metric(func_name: str) -> None:
    POD_RESOURCE_API_CALLS_FAILURE.inc({"node": _node_name, "function_name": func_name})


def update_operation_delay_metric(op_name: str, trigger: str, operation_delay: float) -> None:
    OPERATION_DELAY.set(
        {"node": _node_name, "operation_name": op_name, "trigger": trigger}, operation_delay
    )


def update_wakeup_delay_metric(trigger: str, wakeup_delay: float) -> None:
    WAKEUP_DELAY.set({"node": _node_name, "trigger": trigger}, wakeup_delay)


def render_exposition() -> str:
    """All metrics in the plain-text exposition format."""
    return "".join(metric._render() for metric in _REGISTRY)