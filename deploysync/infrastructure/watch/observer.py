"""
Watchdog-backed filesystem event stream
"""
import os
import queue
import threading
from pathlib import Path
from typing import Iterator, List

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ...core.exceptions import WatchError
from ...core.interfaces import EventSource
from ...core.logging import get_logger
from ...domain.watch.models import EventKind, FileEvent

logger = get_logger(__name__)

_CLOSED = object()


class _QueueingHandler(FileSystemEventHandler):
    """Translates watchdog file events into FileEvent items on a queue"""

    def __init__(self, sink: "queue.Queue"):
        self.sink = sink

    def _put(self, raw_path, kind: EventKind) -> None:
        self.sink.put(FileEvent(Path(os.fsdecode(raw_path)), kind))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._put(event.src_path, EventKind.CREATE)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._put(event.src_path, EventKind.CHANGE)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._put(event.src_path, EventKind.DELETE)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors save via rename; the destination is what changed
        if not event.is_directory:
            self._put(event.dest_path, EventKind.CREATE)


class WatchdogEventStream(EventSource):
    """
    EventSource over a watchdog Observer.

    One recursive watch is scheduled per root. Events are delivered from
    the observer thread through a queue and consumed by ``events()``.
    """

    def __init__(self, observer_factory=Observer):
        self._observer_factory = observer_factory
        self._observer = None
        self._queue: "queue.Queue" = queue.Queue()
        self._handler = _QueueingHandler(self._queue)
        self._lock = threading.Lock()
        self._closed = False

    def start(self, roots: List[Path]) -> None:
        """
        Schedule recursive watches and start the observer.

        Raises:
            WatchError: If a root cannot be watched
        """
        with self._lock:
            if self._observer is not None:
                return
            observer = self._observer_factory()
            try:
                for root in roots:
                    observer.schedule(self._handler, str(root), recursive=True)
                    logger.debug(f"Scheduled watch on {root}")
                observer.start()
            except OSError as e:
                raise WatchError(f"Failed to watch {roots}: {e}") from e
            self._observer = observer

    def reschedule(self, roots: List[Path]) -> None:
        """
        Drop every scheduled watch and watch the given roots instead.

        Raises:
            WatchError: If a root cannot be watched
        """
        with self._lock:
            if self._observer is None:
                return
            try:
                self._observer.unschedule_all()
                for root in roots:
                    self._observer.schedule(self._handler, str(root), recursive=True)
                    logger.debug(f"Rescheduled watch on {root}")
            except OSError as e:
                raise WatchError(f"Failed to watch {roots}: {e}") from e

    def events(self) -> Iterator[FileEvent]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=10)
        self._queue.put(_CLOSED)
