"""
Telemetry and structured event collection
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Callable, List

from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class Metric:
    """Single metric value"""
    name: str
    value: float
    timestamp: float = field(default_factory=time.time)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Event:
    """Event record"""
    name: str
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


EventListener = Callable[[Event], None]


class Telemetry:
    """
    Telemetry collector.

    Watch channels and the build executor record from their own threads,
    so every mutation happens under a lock. Subscribers are called outside
    the lock, in registration order.
    """

    def __init__(self, max_events: int = 1000):
        self._metrics: List[Metric] = []
        self._events: List[Event] = []
        self._listeners: List[EventListener] = []
        self._max_events = max_events
        self._lock = threading.Lock()

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a metric"""
        with self._lock:
            self._metrics.append(Metric(name=name, value=value, tags=tags or {}))
            del self._metrics[:-self._max_events]

    def record_event(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record an event and notify subscribers"""
        event = Event(name=name, metadata=metadata or {})
        with self._lock:
            self._events.append(event)
            del self._events[:-self._max_events]
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Telemetry listener failed for event {name}")

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Register an event listener.

        Returns:
            Callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def get_metrics(self) -> List[Metric]:
        """Get all recorded metrics"""
        with self._lock:
            return self._metrics.copy()

    def get_events(self, name: Optional[str] = None) -> List[Event]:
        """Get recorded events, optionally filtered by name"""
        with self._lock:
            events = self._events.copy()
        if name is None:
            return events
        return [event for event in events if event.name == name]

    def clear(self) -> None:
        """Clear all metrics and events"""
        with self._lock:
            self._metrics.clear()
            self._events.clear()


# Global telemetry instance
_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Get global telemetry instance"""
    return _telemetry
