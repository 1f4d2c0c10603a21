"""
Filesystem watch infrastructure
"""
from .observer import WatchdogEventStream

__all__ = ["WatchdogEventStream"]
