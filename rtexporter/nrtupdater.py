"""Publishing of node resource topology objects built from monitor information."""

from __future__ import annotations

import copy
import logging
import queue
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Union

from rtexporter import metrics
from rtexporter.annotations import RTE_UPDATE, merge
from rtexporter.dump import dump_object
from rtexporter.podreadiness import ConditionStatus, ConditionType, PodCondition, set_condition

log = logging.getLogger(__name__)

RTE_UPDATE_PERIODIC = "periodic"
RTE_UPDATE_REACTIVE = "reactive"

_POLL_INTERVAL = 0.05

Quantity = Union[int, str]


class NotConfiguredError(Exception):
    """The requested feature is not configured."""

    def __init__(self, detail: str = "") -> None:
        message = "unconfigured feature"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.detail = detail


class NodeNotFoundError(LookupError):
    """No node of the given name is known."""

    def __init__(self, node_name: str) -> None:
        super().__init__(f"node {node_name} Not Found")
        self.node_name = node_name


class K8sConnectionError(ConnectionError):
    """Talking to the cluster failed."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(f"error connection k8s: {err}")
        self.err = err


class NRTNotFoundError(LookupError):
    """No topology object of the given name exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"noderesourcetopology {name} not found")
        self.name = name


@dataclass
class Node:
    name: str
    uid: str = ""


@dataclass
class OwnerReference:
    api_version: str
    kind: str
    name: str
    uid: str = ""


@dataclass
class CostInfo:
    name: str
    value: int


@dataclass
class ResourceInfo:
    name: str
    capacity: Quantity = 0
    allocatable: Quantity = 0
    available: Quantity = 0


@dataclass
class Attribute:
    name: str
    value: str


@dataclass
class Zone:
    name: str
    type: str
    parent: str = ""
    costs: list[CostInfo] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)
    resources: list[ResourceInfo] = field(default_factory=list)


@dataclass
class NodeResourceTopology:
    name: str
    annotations: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)
    topology_policies: list[str] = field(default_factory=list)
    zones: list[Zone] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)


class NodeGetter(Protocol):
    def get(self, node_name: str) -> Node: ...


class NodeLister(Protocol):
    def list_nodes(self) -> Iterable[Node]: ...


class NRTClient(Protocol):
    """Store of topology objects; ``get`` raises NRTNotFoundError when missing."""

    def get(self, name: str) -> NodeResourceTopology: ...

    def create(self, nrt: NodeResourceTopology) -> NodeResourceTopology: ...

    def update(self, nrt: NodeResourceTopology) -> NodeResourceTopology: ...


class DisabledNodeGetter:
    """Node getter for when owner references are not wanted."""

    def get(self, node_name: str) -> Node:
        """Refuse every lookup, naming the node that was asked for."""
        log.debug("node lookup for %s refused: node getter disabled", node_name)
        raise NotConfiguredError(f"node lookup for {node_name}")


class CachedNodeGetter:
    """Node getter answering from a snapshot of the cluster nodes."""

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self.nodes = {node.name: node for node in nodes}

    @classmethod
    def from_client(cls, client: NodeLister) -> "CachedNodeGetter":
        """Snapshot the nodes listed by ``client``."""
        try:
            nodes = list(client.list_nodes())
        except Exception as err:
            raise K8sConnectionError(
                RuntimeError(f"unable to get node list information: {err}")
            ) from err
        return cls(nodes)

    def get(self, node_name: str) -> Node:
        try:
            return self.nodes[node_name]
        except KeyError:
            raise NodeNotFoundError(node_name) from None


@dataclass
class Args:
    no_publish: bool = False
    oneshot: bool = False
    hostname: str = ""
    kube_config: str = ""

    def clone(self) -> "Args":
        """Copy of the publishing options; the kubeconfig path is not carried over."""
        return Args(no_publish=self.no_publish, oneshot=self.oneshot, hostname=self.hostname)


@dataclass
class TMConfig:
    policy: str = ""
    scope: str = ""

    def is_valid(self) -> bool:
        return self.policy != "" and self.scope != ""


@dataclass
class MonitorInfo:
    timer: bool = False
    zones: list[Zone] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)

    def update_reason(self) -> str:
        return RTE_UPDATE_PERIODIC if self.timer else RTE_UPDATE_REACTIVE


class NRTUpdater:
    """Creates or updates the topology object of this node."""

    def __init__(
        self,
        node_getter: NodeGetter,
        nrt_client: Optional[NRTClient],
        args: Args,
        tm_config: TMConfig,
    ) -> None:
        if nrt_client is None:
            raise ValueError("missing NRT client interface")
        self.args = args
        self.tm_config = tm_config
        self.node_getter = node_getter
        self.nrt_client = nrt_client
        self._stop = threading.Event()

    def update(self, info: MonitorInfo) -> None:
        """Publish ``info``, creating the object if it does not exist yet."""
        self._update_with_client(self.nrt_client, info)

    def stop(self) -> None:
        self._stop.set()

    def run(
        self,
        info_queue: "queue.Queue[MonitorInfo]",
        cond_queue: Optional["queue.Queue[PodCondition]"],
    ) -> None:
        """Publish every info taken from ``info_queue`` until ``stop`` is called."""
        while not self._stop.is_set():
            try:
                info = info_queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            ts_begin = time.monotonic()
            cond_status = ConditionStatus.TRUE
            try:
                self.update(info)
            except Exception as err:
                log.warning("failed to update: %s", err)
                cond_status = ConditionStatus.FALSE
            elapsed_ms = int((time.monotonic() - ts_begin) * 1000)
            metrics.update_operation_delay_metric(
                "node_resource_object_update", RTE_UPDATE_REACTIVE, float(elapsed_ms)
            )
            if self.args.oneshot:
                continue
            set_condition(cond_queue, ConditionType.NODE_TOPOLOGY_UPDATED, cond_status)
        log.info("update stop at %s", datetime.now())

    def _update_with_client(self, cli: NRTClient, info: MonitorInfo) -> None:
        if log.isEnabledFor(logging.DEBUG):
            log.debug("update: sending zone: %s", dump_object(info.zones))

        if self.args.no_publish:
            return

        try:
            nrt = cli.get(self.args.hostname)
        except NRTNotFoundError:
            nrt_new = NodeResourceTopology(name=self.args.hostname)
            self._update_nrt_info(nrt_new, info)
            try:
                created = cli.create(nrt_new)
            except Exception as err:
                raise RuntimeError(f"update failed for NRT instance: {err}") from err
            metrics.update_node_resource_topology_writes_metric("create", info.update_reason())
            log.info("nrtupdater created NRT instance: %s", dump_object(created))
            return

        mutated = copy.deepcopy(nrt)
        self._update_nrt_info(mutated, info)
        try:
            updated = cli.update(mutated)
        except Exception as err:
            raise RuntimeError(f"update failed for NRT instance: {err}") from err
        metrics.update_node_resource_topology_writes_metric("update", info.update_reason())
        if log.isEnabledFor(logging.DEBUG):
            log.debug("nrtupdater changed CRD instance: %s", dump_object(updated))

    def _update_nrt_info(self, nrt: NodeResourceTopology, info: MonitorInfo) -> None:
        nrt.annotations = merge(nrt.annotations, info.annotations)
        nrt.annotations[RTE_UPDATE] = info.update_reason()
        nrt.zones = copy.deepcopy(info.zones)
        nrt.attributes = copy.deepcopy(info.attributes) + self._make_attributes()
        self._update_owner_references(nrt)

    def _update_owner_references(self, nrt: NodeResourceTopology) -> None:
        """Make the node of the same name the only node owner of ``nrt``."""
        try:
            node = self.node_getter.get(nrt.name)
        except NotConfiguredError:
            return
        except Exception as err:
            log.debug(
                "nrtupdater unable to get Node %s. Can't add Owner reference. error: %s",
                nrt.name, err,
            )
            return
        nrt.owner_references = [
            OwnerReference(api_version="v1", kind="Node", name=node.name, uid=node.uid)
        ]

    def _make_attributes(self) -> list[Attribute]:
        return [
            Attribute(name="topologyManagerScope", value=self.tm_config.scope),
            Attribute(name="topologyManagerPolicy", value=self.tm_config.policy),
        ]