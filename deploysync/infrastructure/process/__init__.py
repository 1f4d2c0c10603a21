"""
Process infrastructure
"""
from .runner import SubprocessRunner
from .server import CommandServerController, default_kill_commands

__all__ = ["SubprocessRunner", "CommandServerController", "default_kill_commands"]
