"""Pod readiness conditions reported by the exporter and their injection into the pod status."""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol, Union

log = logging.getLogger(__name__)


class ConditionType(str, Enum):
    PODRESOURCES_FETCHED = "PodresourcesFetched"
    NODE_TOPOLOGY_UPDATED = "NodeTopologyUpdated"


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class PodCondition:
    type: Union[ConditionType, str]
    status: ConditionStatus
    last_transition_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: str = ""
    message: str = ""


_FAILURES = {
    ConditionType.PODRESOURCES_FETCHED: ("ScanFailed", "failed to scan pod resources"),
    ConditionType.NODE_TOPOLOGY_UPDATED: (
        "UpdateFailed",
        "failed to update noderesourcetopology object",
    ),
}


def new_condition_template(cond_type: ConditionType, status: ConditionStatus) -> PodCondition:
    """Return a condition of the given type and status, stamped now."""
    return PodCondition(type=cond_type, status=status)


def set_condition(
    cond_queue: Optional["queue.Queue[PodCondition]"],
    cond_type: ConditionType,
    cond_status: ConditionStatus,
) -> None:
    """Build a condition and put it on ``cond_queue``; no-op if the queue is None."""
    if cond_queue is None:
        return
    cond = new_condition_template(cond_type, cond_status)
    if cond_status == ConditionStatus.FALSE and cond_type in _FAILURES:
        cond.reason, cond.message = _FAILURES[cond_type]
    cond_queue.put(cond)


class PodStatusClient(Protocol):
    """Access to the conditions of a pod status."""

    def get_pod_conditions(self, namespace: str, name: str) -> list[PodCondition]: ...

    def update_pod_conditions(
        self, namespace: str, name: str, conditions: list[PodCondition]
    ) -> None: ...


class ConditionInjector:
    """Writes exporter conditions into the status of its own pod."""

    def __init__(self, client: PodStatusClient, namespace: str, pod_name: str) -> None:
        self.client = client
        self.namespace = namespace
        self.pod_name = pod_name

    @classmethod
    def from_env(cls, client: PodStatusClient) -> "ConditionInjector":
        """Create an injector for the pod named by REFERENCE_NAMESPACE and REFERENCE_POD_NAME."""
        try:
            namespace = os.environ["REFERENCE_NAMESPACE"]
        except KeyError:
            raise LookupError("the env REFERENCE_NAMESPACE doesn't exist") from None
        try:
            pod_name = os.environ["REFERENCE_POD_NAME"]
        except KeyError:
            raise LookupError("the env REFERENCE_POD_NAME doesn't exist") from None
        return cls(client, namespace, pod_name)

    def inject(self, cond: PodCondition) -> bool:
        """Store ``cond`` in the pod status; return False if it was already current."""
        conditions = list(self.client.get_pod_conditions(self.namespace, self.pod_name))
        exists = False
        for pos, pod_cond in enumerate(conditions):
            if pod_cond.type == cond.type:
                exists = True
                if pod_cond.status == cond.status:
                    return False
                conditions[pos] = cond
        if not exists:
            conditions.append(cond)
        log.info("pod conditions: %s", conditions)
        self.client.update_pod_conditions(self.namespace, self.pod_name, conditions)
        return True

    def run(self, cond_queue: "queue.Queue[Optional[PodCondition]]") -> threading.Thread:
        """Inject conditions from ``cond_queue`` in a background thread; ``None`` stops it."""

        def loop() -> None:
            while True:
                cond = cond_queue.get()
                if cond is None:
                    return
                try:
                    self.inject(cond)
                except Exception:
                    log.exception("failed to update pod status with condition: %s", cond)

        thread = threading.Thread(target=loop, name="condition-injector", daemon=True)
        thread.start()
        return thread