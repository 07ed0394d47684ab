"""Pod resources client wrapper that hides pods in a terminal phase."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from rtexporter.podres import (
    AllocatableResourcesResponse,
    GetPodResourcesResponse,
    ListPodResourcesResponse,
    PodResourcesLister,
)

log = logging.getLogger(__name__)

TERMINAL_FIELD_SELECTOR = "status.phase==Failed,status.phase==Succeeded"


@dataclass(frozen=True)
class PodRef:
    """A pod known to be in a terminal state."""

    namespace: str
    name: str


def filter_from(resp: ListPodResourcesResponse, pods: Iterable[PodRef]) -> None:
    """Drop from ``resp`` every pod listed in ``pods``, in place."""
    terminal = {(pod.namespace, pod.name) for pod in pods}
    kept = []
    for pr in resp.pod_resources:
        if (pr.namespace, pr.name) in terminal:
            log.debug(
                "pod %s/%s is in terminal state, filtered from ListPodResourcesResponse",
                pr.namespace, pr.name,
            )
            continue
        kept.append(pr)
    resp.pod_resources = kept


class FilteringClient:
    """Lister that removes terminal pods, as reported by ``pod_lister``."""

    def __init__(
        self,
        cli: PodResourcesLister,
        pod_lister: Callable[[], Iterable[PodRef]],
        debug: bool,
    ) -> None:
        self.cli = cli
        self.pod_lister = pod_lister
        self.debug = debug

    def list(self) -> ListPodResourcesResponse:
        resp = self.cli.list()
        filter_from(resp, self.pod_lister())
        return resp

    def get_allocatable_resources(self) -> AllocatableResourcesResponse:
        return self.cli.get_allocatable_resources()

    def get(self) -> GetPodResourcesResponse:
        return self.cli.get()


def new_from_lister(
    cli: PodResourcesLister, pod_lister: Callable[[], Iterable[PodRef]], debug: bool
) -> FilteringClient:
    """Wrap ``cli`` so that terminal pods returned by ``pod_lister`` are hidden."""
    return FilteringClient(cli, pod_lister, debug)