"""Generator of synthetic topology updates, for load testing the updater."""

from __future__ import annotations

import logging
import queue
import random
import threading

from rtexporter.dump import dump_object
from rtexporter.nrtupdater import CostInfo, MonitorInfo, ResourceInfo, Zone

log = logging.getLogger(__name__)


class Generator:
    """Emits a periodic MonitorInfo with two fake NUMA zones on ``infos``."""

    def __init__(self, interval: float, rand_seed: int) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive: {interval}")
        self.infos: "queue.Queue[MonitorInfo]" = queue.Queue()
        self.interval = interval
        self._rnd = random.Random(rand_seed)
        self._stop = threading.Event()

    def run(self) -> None:
        """Emit an update every ``interval`` seconds until ``stop`` is called."""
        while not self._stop.wait(self.interval):
            info = MonitorInfo(timer=True, zones=self.make_zones())
            self.infos.put(info)
            if log.isEnabledFor(logging.DEBUG):
                log.debug("generated periodic update: %s", dump_object(info.zones))

    def stop(self) -> None:
        self._stop.set()

    def make_zones(self) -> list[Zone]:
        return [
            Zone(
                name="fake-node-0",
                type="Node",
                costs=[
                    CostInfo(name="fake-node-0", value=10),
                    CostInfo(name="fake-node-1", value=21),
                ],
                resources=[
                    self.make_resource_info_cpus(128, 126, 126),
                    self.make_resource_info_devices(16),
                ],
            ),
            Zone(
                name="fake-node-1",
                type="Node",
                costs=[
                    CostInfo(name="fake-node-1", value=10),
                    CostInfo(name="fake-node-0", value=21),
                ],
                resources=[
                    self.make_resource_info_cpus(128, 126, 126),
                    self.make_resource_info_devices(16),
                ],
            ),
        ]

    def make_resource_info_devices(self, count: int) -> ResourceInfo:
        """A device resource of fixed capacity 16; ``count`` is accepted but not used."""
        return ResourceInfo(
            name="vendor.com/device",
            capacity=16,
            allocatable=16,
            available=self._rnd.randrange(17),
        )

    def make_resource_info_cpus(
        self, capacity: int, allocatable: int, available: int
    ) -> ResourceInfo:
        """A cpu resource whose availability is random in ``[0, available]``."""
        return ResourceInfo(
            name="cpu",
            capacity=capacity,
            allocatable=allocatable,
            available=self._rnd.randrange(available + 1),
        )