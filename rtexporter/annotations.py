"""Annotation keys set on topology objects and a helper to merge annotation maps."""

from __future__ import annotations

from collections.abc import Mapping

RTE_UPDATE = "k8stopoawareschedwg/rte-update"
SLEEP_DURATION = "k8stopoawareschedwg/sleep-duration"
UPDATE_INTERVAL = "k8stopoawareschedwg/update-interval"


def merge(*args: Mapping[str, str] | None) -> dict[str, str]:
    """Merge annotation maps into a new dict; later maps win on conflicts."""
    ret: dict[str, str] = {}
    for kv in args:
        if kv:
            ret.update(kv)
    return ret