"""Pod resources API data model, endpoint parsing and a file-backed client."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable
from urllib.parse import unquote, urlsplit

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_MSG_SIZE = 1024 * 1024 * 16

UNIX_PROTOCOL = "unix"
FAKE_PROTOCOL = "fake"


def _get(data: Mapping[str, Any], key: str) -> Any:
    """Look a key up exactly, then case-insensitively, as JSON decoding does."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return None


@dataclass
class NUMANode:
    id: int = 0


@dataclass
class TopologyInfo:
    nodes: Optional[list[NUMANode]] = None


@dataclass
class ContainerDevices:
    resource_name: str = ""
    device_ids: list[str] = field(default_factory=list)
    topology: Optional[TopologyInfo] = None


@dataclass
class ContainerMemory:
    memory_type: str = ""
    size: int = 0
    topology: Optional[TopologyInfo] = None


@dataclass
class ContainerResources:
    name: str = ""
    devices: list[ContainerDevices] = field(default_factory=list)
    cpu_ids: list[int] = field(default_factory=list)
    memory: list[ContainerMemory] = field(default_factory=list)


def _topology(data: Any) -> Optional[TopologyInfo]:
    if not isinstance(data, Mapping):
        return None
    nodes = _get(data, "nodes")
    if nodes is None:
        return TopologyInfo()
    return TopologyInfo(
        nodes=[NUMANode(id=int(_get(n, "ID") or 0)) for n in nodes if isinstance(n, Mapping)]
    )


def _devices(items: Any) -> list[ContainerDevices]:
    return [
        ContainerDevices(
            resource_name=_get(d, "resource_name") or "",
            device_ids=list(_get(d, "device_ids") or []),
            topology=_topology(_get(d, "topology")),
        )
        for d in items or []
        if isinstance(d, Mapping)
    ]


def _memory(items: Any) -> list[ContainerMemory]:
    return [
        ContainerMemory(
            memory_type=_get(m, "memory_type") or "",
            size=int(_get(m, "size") or 0),
            topology=_topology(_get(m, "topology")),
        )
        for m in items or []
        if isinstance(m, Mapping)
    ]


def _container(data: Mapping[str, Any]) -> ContainerResources:
    return ContainerResources(
        name=_get(data, "name") or "",
        devices=_devices(_get(data, "devices")),
        cpu_ids=[int(c) for c in _get(data, "cpu_ids") or []],
        memory=_memory(_get(data, "memory")),
    )


@dataclass
class PodResources:
    name: str = ""
    namespace: str = ""
    containers: list[ContainerResources] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PodResources":
        if not data:
            return cls()
        return cls(
            name=_get(data, "name") or "",
            namespace=_get(data, "namespace") or "",
            containers=[
                _container(c) for c in _get(data, "containers") or [] if isinstance(c, Mapping)
            ],
        )


@dataclass
class ListPodResourcesResponse:
    pod_resources: list[PodResources] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ListPodResourcesResponse":
        if not data:
            return cls()
        return cls(
            pod_resources=[
                PodResources.from_dict(p)
                for p in _get(data, "pod_resources") or []
                if isinstance(p, Mapping)
            ]
        )


@dataclass
class AllocatableResourcesResponse:
    devices: list[ContainerDevices] = field(default_factory=list)
    cpu_ids: list[int] = field(default_factory=list)
    memory: list[ContainerMemory] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AllocatableResourcesResponse":
        if not data:
            return cls()
        return cls(
            devices=_devices(_get(data, "devices")),
            cpu_ids=[int(c) for c in _get(data, "cpu_ids") or []],
            memory=_memory(_get(data, "memory")),
        )


@dataclass
class GetPodResourcesResponse:
    pod_resources: Optional[PodResources] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "GetPodResourcesResponse":
        if not data:
            return cls()
        pod = _get(data, "pod_resources")
        return cls(pod_resources=PodResources.from_dict(pod) if isinstance(pod, Mapping) else None)


@runtime_checkable
class PodResourcesLister(Protocol):
    """Anything able to answer pod resources API queries."""

    def list(self) -> ListPodResourcesResponse: ...

    def get_allocatable_resources(self) -> AllocatableResourcesResponse: ...

    def get(self) -> GetPodResourcesResponse: ...


class UnsupportedProtocolError(ValueError):
    """The endpoint uses a scheme other than the supported ones."""

    def __init__(self, proto: str) -> None:
        super().__init__(f'protocol "{proto}" not supported')
        self.proto = proto


def parse_endpoint(endpoint: str) -> tuple[str, str]:
    """Split an endpoint URL into ``(protocol, path)``."""
    parts = urlsplit(endpoint)
    if parts.scheme not in (UNIX_PROTOCOL, FAKE_PROTOCOL):
        raise UnsupportedProtocolError(parts.scheme)
    path = unquote(parts.path)
    log.debug("endpoint %r -> protocol=%r path=%r", endpoint, parts.scheme, path)
    return parts.scheme, path


class FakeClient:
    """Client answering queries from JSON files stored in a directory."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_json(self, name: str) -> Any:
        return json.loads((self.path / name).read_text())

    def list(self) -> ListPodResourcesResponse:
        return ListPodResourcesResponse.from_dict(self._read_json("list.json"))

    def get_allocatable_resources(self) -> AllocatableResourcesResponse:
        return AllocatableResourcesResponse.from_dict(
            self._read_json("get_allocatable_resources.json")
        )

    def get(self) -> GetPodResourcesResponse:
        return GetPodResourcesResponse.from_dict(self._read_json("get.json"))


def get_v1_client_fake(path: str | Path) -> FakeClient:
    """Return a client reading its answers from ``path``."""
    return FakeClient(path)