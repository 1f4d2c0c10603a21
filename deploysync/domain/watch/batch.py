"""
Debounced event batch for the compiled-artifact channel
"""
import threading
from typing import Any, Callable, Dict, List, Optional

from ...core.logging import get_logger
from .models import FileEvent

logger = get_logger(__name__)


# Returns an unstarted timer exposing start() and cancel()
TimerFactory = Callable[[float, Callable[[], None]], Any]


def daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    """threading.Timer that does not keep the interpreter alive"""
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class DebouncedBatch:
    """
    Pending set of events drained after a quiet period.

    Every add re-arms a single timer, cancelling the previous one. When the
    timer fires with no newer event, the whole set is taken atomically and
    handed to ``on_drain``. Drains never overlap.
    """

    def __init__(
        self,
        window: float,
        on_drain: Callable[[List[FileEvent]], None],
        timer_factory: Optional[TimerFactory] = None,
    ):
        """
        Initialize batch.

        Args:
            window: Quiet period in seconds
            on_drain: Called with the drained events, in arrival order
            timer_factory: Creates unstarted timers (default daemon threading.Timer)
        """
        self.window = window
        self._on_drain = on_drain
        self._timer_factory = timer_factory or daemon_timer
        self._pending: Dict[FileEvent, None] = {}
        self._timer: Optional[Any] = None
        self._generation = 0
        self._lock = threading.Lock()
        self._drain_lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def add(self, event: FileEvent) -> None:
        """Add an event and re-arm the timer"""
        with self._lock:
            self._pending[event] = None
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._timer = self._timer_factory(self.window, lambda: self._fire(generation))
            self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A cancelled timer can still fire if it was already running
            if generation != self._generation:
                return
            events = self._take()
        self._drain(events)

    def _take(self) -> List[FileEvent]:
        events = list(self._pending)
        self._pending.clear()
        self._timer = None
        return events

    def _drain(self, events: List[FileEvent]) -> None:
        if not events:
            return
        with self._drain_lock:
            try:
                self._on_drain(events)
            except Exception:
                logger.exception(f"Batch of {len(events)} events failed")

    def flush(self) -> int:
        """
        Drain pending events now, on the calling thread.

        Returns:
            Number of events drained
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            events = self._take()
        self._drain(events)
        return len(events)

    def cancel(self) -> int:
        """
        Drop pending events without draining them.

        Returns:
            Number of events dropped
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            return len(self._take())
