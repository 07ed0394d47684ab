"""Pod resources client wrapper that hides the shared CPU pool from container CPU sets."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Optional

from rtexporter.podres import (
    AllocatableResourcesResponse,
    GetPodResourcesResponse,
    ListPodResourcesResponse,
    PodResources,
    PodResourcesLister,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerIdent:
    """Identifies a container as namespace, pod name and container name."""

    namespace: str = ""
    pod_name: str = ""
    container_name: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.pod_name}/{self.container_name}"

    def is_empty(self) -> bool:
        """True if any of the three parts is missing."""
        return not (self.namespace and self.pod_name and self.container_name)


def container_ident_from_env() -> Optional[ContainerIdent]:
    """Build the reference container from the REFERENCE_* environment variables."""
    ident = ContainerIdent(
        namespace=os.environ.get("REFERENCE_NAMESPACE", ""),
        pod_name=os.environ.get("REFERENCE_POD_NAME", ""),
        container_name=os.environ.get("REFERENCE_CONTAINER_NAME", ""),
    )
    return None if ident.is_empty() else ident


def container_ident_from_string(ident: str) -> Optional[ContainerIdent]:
    """Parse ``namespace/pod/container``; an empty string gives ``None``."""
    if ident == "":
        return None
    items = ident.split("/")
    if len(items) != 3:
        raise ValueError(f"malformed ident: {ident!r}")
    namespace, pod_name, container_name = (item.strip() for item in items)
    result = ContainerIdent(namespace, pod_name, container_name)
    log.info("reference container: %s", result)
    return result


def _find_shared_pool_cpus(
    ref_cnt: Optional[ContainerIdent], pod_resources: Optional[Sequence[PodResources]]
) -> frozenset[int]:
    if ref_cnt is None or pod_resources is None:
        return frozenset()
    for pod in pod_resources:
        if pod.namespace != ref_cnt.namespace or pod.name != ref_cnt.pod_name:
            continue
        for cnt in pod.containers:
            if cnt.name == ref_cnt.container_name:
                return frozenset(cnt.cpu_ids)
    return frozenset()


def _remove_cpus(cpu_ids: Iterable[int], to_remove: frozenset[int]) -> list[int]:
    return sorted(set(cpu_ids) - to_remove)


def _fmt_cpus(cpus: Iterable[int]) -> str:
    return ",".join(str(cpu) for cpu in sorted(set(cpus)))


class FilteringClient:
    """Lister that removes the shared pool CPUs, learnt from a reference container."""

    def __init__(
        self, cli: PodResourcesLister, debug: bool, reference_container: Optional[ContainerIdent]
    ) -> None:
        self.cli = cli
        self.debug = debug
        self.ref_cnt = reference_container
        self.shared_pool_cpus: frozenset[int] = frozenset()

    def filter_list_response(self, resp: ListPodResourcesResponse) -> ListPodResourcesResponse:
        shared = _find_shared_pool_cpus(self.ref_cnt, resp.pod_resources)
        if shared != self.shared_pool_cpus:
            log.info(
                "detected shared pool change: %r -> %r",
                _fmt_cpus(self.shared_pool_cpus), _fmt_cpus(shared),
            )
            self.shared_pool_cpus = shared
        for pod in resp.pod_resources:
            for cnt in pod.containers:
                cpu_ids = _remove_cpus(cnt.cpu_ids, shared)
                if self.debug and cpu_ids != cnt.cpu_ids:
                    log.info(
                        "performed pool change for %s/%s: %r -> %r",
                        pod.name, cnt.name, _fmt_cpus(cnt.cpu_ids), _fmt_cpus(cpu_ids),
                    )
                cnt.cpu_ids = cpu_ids
        return resp

    def list(self) -> ListPodResourcesResponse:
        return self.filter_list_response(self.cli.list())

    def get_allocatable_resources(self) -> AllocatableResourcesResponse:
        return self.cli.get_allocatable_resources()

    def get(self) -> GetPodResourcesResponse:
        return self.cli.get()


def new_from_lister(
    cli: PodResourcesLister, debug: bool, reference_container: Optional[ContainerIdent]
) -> FilteringClient:
    """Wrap ``cli`` so that shared pool CPUs are dropped from container CPU lists."""
    return FilteringClient(cli, debug, reference_container)