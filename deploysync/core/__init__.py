"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import (
    CommandResult,
    CommandRunner,
    ServerController,
    DeployConfigSource,
    EventSource,
    PromptProvider,
)
from .telemetry import Telemetry, get_telemetry
from .utils import Platform, current_platform, to_posix, relative_posix, is_within

__all__ = [
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "CommandResult",
    "CommandRunner",
    "ServerController",
    "DeployConfigSource",
    "EventSource",
    "PromptProvider",
    "Telemetry",
    "get_telemetry",
    "Platform",
    "current_platform",
    "to_posix",
    "relative_posix",
    "is_within",
]
