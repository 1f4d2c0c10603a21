"""
Watch domain module
"""
from .models import EventKind, FileEvent, Route
from .filters import compile_bypass_patterns, is_bypassed, is_hidden_or_transient
from .batch import DebouncedBatch, daemon_timer
from .probes import SourceRescanProbe, find_compiled_classes, comprehensive_scan, read_package
from .scheduler import WatchScheduler, plan_watch_roots

__all__ = [
    "EventKind",
    "FileEvent",
    "Route",
    "compile_bypass_patterns",
    "is_bypassed",
    "is_hidden_or_transient",
    "DebouncedBatch",
    "daemon_timer",
    "SourceRescanProbe",
    "find_compiled_classes",
    "comprehensive_scan",
    "read_package",
    "WatchScheduler",
    "plan_watch_roots",
]
