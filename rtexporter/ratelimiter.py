"""Rate limiting decorator for event sources."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Optional, Protocol

from rtexporter.notification import Event

log = logging.getLogger(__name__)

BUFFER_SIZE = 5
DEFAULT_SLACK = 10

_POLL_INTERVAL = 0.05


class EventSource(Protocol):
    """A producer of update events."""

    def events(self) -> "queue.Queue[Event]": ...

    def close(self) -> None: ...

    def wait(self) -> None: ...

    def stop(self) -> None: ...

    def run(self) -> None: ...


class RateLimiter:
    """Leaky-bucket limiter spacing calls to ``take`` by ``per / rate`` seconds.

    Up to ``slack`` requests of unused budget may be accumulated while idle.
    """

    def __init__(
        self,
        rate: int,
        per: float = 1.0,
        slack: int = DEFAULT_SLACK,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive: {rate}")
        if per <= 0:
            raise ValueError(f"time unit must be positive: {per}")
        if slack < 0:
            raise ValueError(f"slack cannot be negative: {slack}")
        self.per_request = per / rate
        self.max_slack = -slack * self.per_request
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self._sleep_for = 0.0
        self._lock = threading.Lock()

    def take(self) -> float:
        """Block until the next request is allowed; return the time it was granted."""
        with self._lock:
            now = self._clock()
            if self._last is None:
                self._last = now
                return now
            self._sleep_for += self.per_request - (now - self._last)
            if self._sleep_for < self.max_slack:
                self._sleep_for = self.max_slack
            if self._sleep_for > 0:
                self._sleep(self._sleep_for)
                self._last = now + self._sleep_for
                self._sleep_for = 0.0
            else:
                self._last = now
            return self._last


class RateLimitedEventSource:
    """Forwards events of a wrapped source no faster than a configured rate.

    The wrapped source is never blocked: when the internal buffer is full,
    new events are dropped.
    """

    def __init__(
        self, es: EventSource, max_events_per_time_unit: int, time_unit: float
    ) -> None:
        self._es = es
        self._in = es.events()
        self._buffer: "queue.Queue[Event]" = queue.Queue(maxsize=BUFFER_SIZE)
        self._out: "queue.Queue[Event]" = queue.Queue(maxsize=1)
        self._rt = RateLimiter(max_events_per_time_unit, per=time_unit)
        self._stopping = threading.Event()
        self._started = threading.Event()
        self._threads: list[threading.Thread] = []

    def events(self) -> "queue.Queue[Event]":
        return self._out

    def run(self) -> None:
        """Start forwarding, then run the wrapped source until it stops."""
        self._threads = [
            threading.Thread(target=self._sender, name="ratelimit-sender", daemon=True),
            threading.Thread(target=self._receiver, name="ratelimit-receiver", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        self._started.set()
        self._es.run()

    def stop(self) -> None:
        # The source goes first, so it never waits on an input nobody reads.
        self._es.stop()
        self._es.wait()
        self._stopping.set()

    def wait(self) -> None:
        """Block until both forwarding workers have finished."""
        self._started.wait()
        for thread in self._threads:
            thread.join()

    def close(self) -> None:
        self._es.close()

    def _receiver(self) -> None:
        while not self._stopping.is_set():
            try:
                event = self._in.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                self._buffer.put_nowait(event)
            except queue.Full:
                log.debug("event buffer full, event dropped")

    def _sender(self) -> None:
        while not self._stopping.is_set():
            try:
                event = self._buffer.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            self._rt.take()
            while not self._stopping.is_set():
                try:
                    self._out.put(event, timeout=_POLL_INTERVAL)
                    break
                except queue.Full:
                    continue