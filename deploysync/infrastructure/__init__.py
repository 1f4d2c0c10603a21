"""
Infrastructure layer - concrete implementations of core interfaces
"""
from .process import CommandServerController, SubprocessRunner
from .watch import WatchdogEventStream

__all__ = ["CommandServerController", "SubprocessRunner", "WatchdogEventStream"]
