"""
Dual-channel watch scheduler

Static resources are deployed as soon as their event arrives. Compiled
artifacts are collected in a debounced batch so a burst of class files from
one compile lands together. Both channels share mapping lookup and path
resolution; they differ only in timing.
"""
import queue
import shutil
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ...core.constants import (
    COMPILED_EXTENSION,
    SOURCE_EXTENSION,
    DEFAULT_BYPASS_PATTERNS,
)
from ...core.exceptions import WatchError
from ...core.interfaces import EventSource, ServerController
from ...core.logging import get_logger
from ...core.telemetry import Telemetry, get_telemetry
from ...core.utils import collapse_nested_roots, is_within, literal_prefix
from ..mapping.compiler import find_matching_mapping
from ..layout.models import LayoutKind
from ..mapping.models import CompiledMapping, DeploySnapshot
from .batch import DebouncedBatch, TimerFactory
from .filters import compile_bypass_patterns, is_bypassed, is_hidden_or_transient
from .models import EventKind, FileEvent, Route
from .probes import SourceRescanProbe

logger = get_logger(__name__)

_STOP = object()


def plan_watch_roots(snapshot: DeploySnapshot) -> Tuple[List[Path], List[Path]]:
    """
    Directories to observe for a snapshot.

    Missing directories are skipped with a warning; nested roots are
    collapsed into their parent.

    Returns:
        (static roots, compiled roots)
    """
    workspace = snapshot.workspace_root

    static_candidates = list(snapshot.layout.web_resource_roots)
    if snapshot.layout.kind in (LayoutKind.MAVEN, LayoutKind.GRADLE):
        static_candidates.append("src/main/resources")
    # Source roots are watched for edits that precede a compile
    static_candidates.extend(snapshot.layout.source_roots)
    for compiled in snapshot.local_mappings:
        pattern = compiled.mapping.source_pattern
        if pattern.endswith(COMPILED_EXTENSION):
            continue
        prefix = literal_prefix(pattern)
        if prefix:
            static_candidates.append(prefix)

    def existing(candidates: List[str], channel: str) -> List[Path]:
        roots = []
        for candidate in candidates:
            root = workspace / candidate
            if root.is_dir():
                roots.append(root)
            else:
                logger.warning(f"Skipping {channel} watch on {candidate}: directory does not exist")
        return roots

    compiled_roots = existing([snapshot.compiled_output_root], "compiled")
    static_roots = [
        root for root in existing(static_candidates, "static")
        if not any(is_within(root, compiled_root) for compiled_root in compiled_roots)
    ]
    return collapse_nested_roots(static_roots), collapse_nested_roots(compiled_roots)


class WatchScheduler:
    """
    Routes filesystem events to the static or compiled-artifact channel.

    The static channel runs on its own worker thread once started; before
    start() events are dispatched on the caller's thread. The compiled
    channel drains on the batch timer's thread.
    """

    def __init__(
        self,
        snapshot: DeploySnapshot,
        bypass_patterns: Optional[str] = DEFAULT_BYPASS_PATTERNS,
        reload_on_sync: bool = False,
        server: Optional[ServerController] = None,
        telemetry: Optional[Telemetry] = None,
        timer_factory: Optional[TimerFactory] = None,
        on_deployed: Optional[Callable[[Path, Path], None]] = None,
    ):
        """
        Initialize scheduler.

        Args:
            snapshot: Activation snapshot; must carry a webapp root
            bypass_patterns: Comma-separated file name markers to ignore
            reload_on_sync: Ask the server to reload after reload-triggering copies
            server: Server controller used for reloads
            telemetry: Event sink (default global telemetry)
            timer_factory: Timer factory for the batch and probes
            on_deployed: Callback after each copy (source, destination)
        """
        self._snapshot = snapshot
        self._bypass = compile_bypass_patterns(bypass_patterns)
        self.reload_on_sync = reload_on_sync
        self.server = server
        self.telemetry = telemetry or get_telemetry()
        self.on_deployed = on_deployed

        self._batch = DebouncedBatch(
            snapshot.config.debounce_window,
            self._execute_batch,
            timer_factory=timer_factory,
        )
        self._probe = SourceRescanProbe(self._enqueue_compiled, timer_factory=timer_factory)

        self._static_queue: "queue.Queue" = queue.Queue()
        self._static_thread: Optional[threading.Thread] = None
        self._consumer_thread: Optional[threading.Thread] = None
        self._source: Optional[EventSource] = None
        self._roots: List[Path] = []

    # ============================================================
    # Snapshot
    # ============================================================

    @property
    def snapshot(self) -> DeploySnapshot:
        return self._snapshot

    def update_snapshot(self, snapshot: DeploySnapshot) -> None:
        """
        Swap in a freshly computed snapshot.

        A running event source is pointed at the new snapshot's watch roots
        when they differ from the current ones.
        """
        self._snapshot = snapshot
        self._batch.window = snapshot.config.debounce_window

        if self._source is None:
            return
        roots = self._plan_roots(snapshot)
        if roots == self._roots:
            return
        logger.info(f"Watch roots changed: {', '.join(str(root) for root in roots)}")
        try:
            self._source.reschedule(roots)
        except WatchError as e:
            logger.warning(f"Keeping previous watch roots: {e}")
            return
        self._roots = roots

    @property
    def pending_count(self) -> int:
        return self._batch.pending_count

    # ============================================================
    # Routing
    # ============================================================

    def accepts(self, path: Path) -> bool:
        """Reject bypassed and hidden/transient files"""
        if is_hidden_or_transient(path):
            logger.debug(f"Ignoring hidden or transient file: {path}")
            return False
        if is_bypassed(path, self._bypass):
            logger.debug(f"Bypassing file: {path.name}")
            return False
        return True

    def classify(self, path: Path, snapshot: Optional[DeploySnapshot] = None) -> Route:
        """Choose the channel for a path"""
        snapshot = snapshot or self._snapshot
        extension = path.suffix.lower()
        if extension == COMPILED_EXTENSION and is_within(path, snapshot.compiled_output_dir):
            return Route.COMPILED
        if extension == SOURCE_EXTENSION:
            return Route.SOURCE
        return Route.STATIC

    def handle_event(self, event: FileEvent) -> Optional[Route]:
        """
        Accept and route one event.

        Returns:
            The route taken, or None if the event was rejected
        """
        if not self.accepts(event.path):
            return None

        snapshot = self._snapshot
        route = self.classify(event.path, snapshot)

        if route == Route.SOURCE:
            if event.kind != EventKind.DELETE:
                self._probe.schedule(event.path, snapshot.compiled_output_dir)
        elif route == Route.COMPILED:
            self._batch.add(event)
        elif self._static_thread is not None:
            self._static_queue.put(event)
        else:
            self.deploy_file(event, route)
        return route

    def _enqueue_compiled(self, files: List[Path]) -> None:
        for file in files:
            if self.accepts(file):
                self._batch.add(FileEvent(file, EventKind.CHANGE))

    # ============================================================
    # Deployment
    # ============================================================

    def deploy_file(self, event: FileEvent, route: Route = Route.STATIC) -> Optional[Tuple[Path, CompiledMapping]]:
        """
        Copy one file to its mapped destination.

        Delete events and files that vanished before the copy are skipped.

        Returns:
            (destination, mapping) when a copy happened, else None
        """
        if event.kind == EventKind.DELETE:
            logger.debug(f"Delete event for {event.path}: destination left in place")
            return None

        snapshot = self._snapshot
        if snapshot.webapp_root is None:
            logger.debug(f"No webapp root; not deploying {event.path}")
            return None

        resolver = snapshot.resolver()
        relative = resolver.relative_path(event.path)
        compiled = find_matching_mapping(snapshot.compiled, relative)
        if compiled is None:
            logger.debug(f"No mapping for {relative}")
            return None

        if not event.path.is_file():
            logger.debug(f"Source vanished before copy: {relative}")
            return None

        destination = resolver.resolve(compiled, event.path, snapshot.webapp_root)
        try:
            shutil.copy2(event.path, destination)
        except FileNotFoundError:
            logger.debug(f"Source vanished during copy: {relative}")
            return None
        except OSError as e:
            logger.warning(f"Failed to deploy {relative}: {e}")
            return None

        logger.info(f"Deployed {relative} -> {destination}")
        self.telemetry.record_event("mapping.matched", {
            "source": str(event.path),
            "destination": str(destination),
            "origin": compiled.mapping.origin.value,
            "channel": route.value,
        })
        if self.on_deployed:
            self.on_deployed(event.path, destination)

        if route == Route.STATIC and compiled.mapping.triggers_reload:
            self._request_reload()
        return destination, compiled

    def _execute_batch(self, events: List[FileEvent]) -> None:
        deployed = 0
        needs_reload = False
        for event in events:
            result = self.deploy_file(event, Route.COMPILED)
            if result is None:
                continue
            deployed += 1
            needs_reload = needs_reload or result[1].mapping.triggers_reload

        logger.info(f"Batch executed: {deployed}/{len(events)} files deployed")
        self.telemetry.record_event("batch.executed", {"files": len(events), "deployed": deployed})
        self.telemetry.record_metric("batch.size", float(len(events)))

        if needs_reload:
            self._request_reload()

    def _request_reload(self) -> None:
        if not self.reload_on_sync or self.server is None:
            return
        try:
            self.server.reload()
        except Exception as e:
            logger.warning(f"Server reload failed: {e}")

    # ============================================================
    # Lifecycle
    # ============================================================

    def _plan_roots(self, snapshot: DeploySnapshot) -> List[Path]:
        static_roots, compiled_roots = plan_watch_roots(snapshot)
        for root in static_roots:
            logger.debug(f"Static resources root: {root}")
        for root in compiled_roots:
            logger.debug(f"Compiled output root: {root}")
        return collapse_nested_roots(static_roots + compiled_roots)

    def _static_worker(self) -> None:
        while True:
            item = self._static_queue.get()
            if item is _STOP:
                break
            try:
                self.deploy_file(item, Route.STATIC)
            except Exception:
                logger.exception(f"Static deploy failed for {item}")

    def _consume(self, source: EventSource) -> None:
        for event in source.events():
            try:
                self.handle_event(event)
            except Exception:
                logger.exception(f"Failed to handle {event}")

    def start(self, source: Optional[EventSource] = None) -> None:
        """
        Start the static worker and, if given, consume an event source.

        Args:
            source: Event source to start on the planned watch roots
        """
        if self._static_thread is None:
            self._static_thread = threading.Thread(
                target=self._static_worker, name="deploysync-static", daemon=True
            )
            self._static_thread.start()

        if source is not None:
            roots = self._plan_roots(self._snapshot)
            for root in roots:
                logger.info(f"Watching {root}")
            source.start(roots)
            self._source = source
            self._roots = roots
            self._consumer_thread = threading.Thread(
                target=self._consume, args=(source,), name="deploysync-events", daemon=True
            )
            self._consumer_thread.start()

    def flush(self) -> int:
        """Drain the compiled batch on the calling thread"""
        return self._batch.flush()

    def stop(self, flush: bool = False) -> None:
        """
        Stop watching.

        Args:
            flush: Drain pending compiled events instead of dropping them
        """
        if self._source is not None:
            self._source.close()
            self._source = None
            self._roots = []
        if self._consumer_thread is not None:
            self._consumer_thread.join(timeout=5)
            self._consumer_thread = None

        self._probe.cancel_all()
        if flush:
            self._batch.flush()
        else:
            dropped = self._batch.cancel()
            if dropped:
                logger.debug(f"Dropped {dropped} pending compiled events")

        if self._static_thread is not None:
            self._static_queue.put(_STOP)
            self._static_thread.join(timeout=5)
            self._static_thread = None
