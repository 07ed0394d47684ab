"""Pod resources client wrapper that hides pods matching exclusion globs."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache

from rtexporter.podres import (
    AllocatableResourcesResponse,
    GetPodResourcesResponse,
    ListPodResourcesResponse,
    PodResourcesLister,
)

log = logging.getLogger(__name__)


class _BadPattern(ValueError):
    pass


@dataclass(frozen=True)
class Item:
    """A namespace glob and a pod name glob selecting pods to exclude."""

    namespace_pattern: str
    name_pattern: str


def describe(items: Iterable[Item]) -> str:
    """Render exclusion items one per line as ``- namespace/name``."""
    return "".join(f"- {item.namespace_pattern}/{item.name_pattern}\n" for item in items)


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    if i >= len(pattern) or pattern[i] in "-]":
        raise _BadPattern(pattern)
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            raise _BadPattern(pattern)
    return pattern[i], i + 1


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    """Translate a path-style glob into a regex; ``*`` and ``?`` never match '/'."""
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "\\":
            if i + 1 >= n:
                raise _BadPattern(pattern)
            out.append(re.escape(pattern[i + 1]))
            i += 2
        elif c == "[":
            i += 1
            negated = i < n and pattern[i] == "^"
            if negated:
                i += 1
            ranges: list[tuple[str, str]] = []
            while True:
                if i < n and pattern[i] == "]" and ranges:
                    i += 1
                    break
                lo, i = _class_char(pattern, i)
                hi = lo
                if i < n and pattern[i] == "-":
                    hi, i = _class_char(pattern, i + 1)
                ranges.append((lo, hi))
            alts = [f"[{re.escape(lo)}-{re.escape(hi)}]" for lo, hi in ranges if lo <= hi]
            body = "(?:" + "|".join(alts) + ")" if alts else "(?!)"
            out.append(f"(?!{body})(?s:.)" if negated else body)
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out), re.DOTALL)


def _match(pattern: str, name: str) -> bool:
    return _compile(pattern).fullmatch(name) is not None


def should_exclude(pod_excludes: Sequence[Item], namespace: str, name: str, debug: bool) -> bool:
    """Tell whether the pod ``namespace/name`` matches any exclusion item."""
    for item in pod_excludes:
        try:
            if not _match(item.namespace_pattern, namespace):
                continue
        except _BadPattern:
            if debug:
                log.warning(
                    "match error: namespace glob=%r pod=%s/%s: syntax error in pattern",
                    item.namespace_pattern, namespace, name,
                )
            continue
        try:
            if not _match(item.name_pattern, name):
                continue
        except _BadPattern:
            if debug:
                log.warning(
                    "match error: name glob=%r pod=%s/%s: syntax error in pattern",
                    item.name_pattern, namespace, name,
                )
            continue
        return True
    return False


class FilteringClient:
    """Lister that drops excluded pods from list answers."""

    def __init__(self, cli: PodResourcesLister, debug: bool, pod_excludes: Sequence[Item]) -> None:
        self.cli = cli
        self.debug = debug
        self.pod_excludes = list(pod_excludes)

    def filter_list_response(self, resp: ListPodResourcesResponse) -> ListPodResourcesResponse:
        return ListPodResourcesResponse(
            pod_resources=[
                pod
                for pod in resp.pod_resources
                if not should_exclude(self.pod_excludes, pod.namespace, pod.name, self.debug)
            ]
        )

    def list(self) -> ListPodResourcesResponse:
        return self.filter_list_response(self.cli.list())

    def get_allocatable_resources(self) -> AllocatableResourcesResponse:
        return self.cli.get_allocatable_resources()

    def get(self) -> GetPodResourcesResponse:
        return self.cli.get()


def new_from_lister(
    cli: PodResourcesLister, debug: bool, pod_excludes: Sequence[Item]
) -> FilteringClient:
    """Wrap ``cli`` so that pods matching ``pod_excludes`` are hidden."""
    log.info("> POD excludes:\n%s", describe(pod_excludes))
    return FilteringClient(cli, debug, pod_excludes)