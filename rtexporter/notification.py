"""Update triggers: an initial one, a periodic timer, and writes to a notification file."""

from __future__ import annotations

import logging
import os
import queue
import stat
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Flag

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)


class Op(Flag):
    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16


@dataclass(frozen=True)
class FsEvent:
    """A file system change on ``name``."""

    name: str
    op: Op


@dataclass(frozen=True)
class Event:
    """A request to refresh; ``timer_interval`` is positive for timer-driven events."""

    timestamp: datetime
    timer_interval: float = 0.0

    def is_timer(self) -> bool:
        return self.timer_interval > 0


FilterEvent = Callable[[FsEvent], bool]


def any_filter(filters: Iterable[FilterEvent], event: FsEvent) -> bool:
    """True if at least one filter accepts the event."""
    return any(flt(event) for flt in filters)


def _all_filter(filters: Iterable[FilterEvent], event: FsEvent) -> bool:
    return all(flt(event) for flt in filters)


def filter_nothing(event: FsEvent) -> bool:
    """Reject every event: no filter at all accepts it."""
    return any_filter((), event)


def filter_everything(event: FsEvent) -> bool:
    """Accept every event: no filter at all rejects it."""
    return _all_filter((), event)


def ensure_notify_file_path(notify_file_path: str) -> None:
    """Create the notification file, refusing to reuse anything but an empty regular file."""
    path = os.path.normpath(notify_file_path)
    if path != notify_file_path:
        log.info("notification file path: %r -> %r", notify_file_path, path)

    base_dir = os.path.dirname(path)
    if base_dir:
        try:
            os.makedirs(base_dir, mode=0o750, exist_ok=True)
        except OSError as err:
            log.info("error creating the notify path %r: %s", base_dir, err)
            raise

    try:
        info = os.stat(path)
    except FileNotFoundError:
        pass
    else:
        is_reg = stat.S_ISREG(info.st_mode)
        if info.st_size > 0 or not is_reg:
            raise FileExistsError(
                f"cannot use {path!r}: already exists with size={info.st_size} isRegular={is_reg}"
            )

    with open(path, "w"):
        pass


_OPS = {
    "created": Op.CREATE,
    "modified": Op.WRITE,
    "deleted": Op.REMOVE,
    "moved": Op.RENAME,
}

_STOP = object()


class _Forwarder(FileSystemEventHandler):
    def __init__(self, inbox: "queue.Queue[object]") -> None:
        super().__init__()
        self._inbox = inbox

    def on_any_event(self, event: FileSystemEvent) -> None:
        op = _OPS.get(event.event_type)
        if op is None:
            return
        path = event.src_path
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        self._inbox.put(FsEvent(os.path.abspath(path), op))


class UnlimitedEventSource:
    """Emits events as soon as they happen, with no rate limiting."""

    def __init__(self) -> None:
        self.sleep_interval = 0.0
        self._filters: list[FilterEvent] = []
        self._inbox: "queue.Queue[object]" = queue.Queue()
        self._events: "queue.Queue[Event]" = queue.Queue()
        self._done = threading.Event()
        self._observer = Observer()
        self._handler = _Forwarder(self._inbox)
        self._watched_dirs: set[str] = set()

    def events(self) -> "queue.Queue[Event]":
        return self._events

    def close(self) -> None:
        if self._observer.is_alive():
            self._observer.stop()
            self._observer.join()

    def wait(self) -> None:
        """Block until ``run`` has finished."""
        self._done.wait()

    def stop(self) -> None:
        self._inbox.put(_STOP)

    def run(self) -> None:
        """Emit events until ``stop`` is called."""
        self._done.clear()
        self._events.put(Event(timestamp=datetime.now()))
        log.debug("initial update trigger")

        interval = self.sleep_interval
        next_tick = time.monotonic() + interval if interval > 0 else None
        while True:
            timeout = None if next_tick is None else max(0.0, next_tick - time.monotonic())
            try:
                item = self._inbox.get(timeout=timeout)
            except queue.Empty:
                self._events.put(Event(timestamp=datetime.now(), timer_interval=interval))
                log.debug("timer update trigger")
                next_tick += interval
                now = time.monotonic()
                if next_tick <= now:
                    next_tick = now + interval
                continue
            if item is _STOP:
                break
            if isinstance(item, FsEvent):
                log.debug("fsnotify event from %r: %s", item.name, item.op)
                if any_filter(self._filters, item):
                    self._events.put(Event(timestamp=datetime.now()))
                    log.debug("fsnotify update trigger")
        self._done.set()

    def set_interval(self, interval: float) -> None:
        """Set the timer period in seconds; zero disables it. Only one timer is supported."""
        if interval < 0:
            raise ValueError(f"interval cannot be negative: {interval}")
        if self.sleep_interval > 0:
            raise RuntimeError("interval already set, and only one time-based source supported")
        self.sleep_interval = interval
        log.info("added interval every %ss", interval)

    def add_file(self, notify_file_path: str) -> None:
        """Trigger an event whenever the given file is written or its mode changes."""
        if notify_file_path == "":
            return
        ensure_notify_file_path(notify_file_path)
        self._try_to_watch(notify_file_path)

        target = os.path.abspath(os.path.normpath(notify_file_path))

        def _matches(event: FsEvent) -> bool:
            return event.name == target and bool(event.op & (Op.CHMOD | Op.WRITE))

        self._filters.append(_matches)

    def _try_to_watch(self, fs_path: str) -> None:
        directory = os.path.dirname(os.path.abspath(fs_path))
        try:
            if directory not in self._watched_dirs:
                self._observer.schedule(self._handler, directory, recursive=False)
                self._watched_dirs.add(directory)
            if not self._observer.is_alive():
                self._observer.start()
        except OSError as err:
            log.info("error adding watch on [%s]: %s", fs_path, err)
        else:
            log.info("added watch on [%s]", fs_path)