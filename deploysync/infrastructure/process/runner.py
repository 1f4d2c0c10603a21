"""
Subprocess-based command runner
"""
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from ...core.exceptions import ExternalToolError
from ...core.interfaces import CommandResult, CommandRunner
from ...core.logging import get_logger

logger = get_logger(__name__)


class SubprocessRunner(CommandRunner):
    """Runs commands with subprocess, capturing text output"""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run a command to completion.

        Args:
            args: Command and arguments
            cwd: Working directory
            timeout: Seconds before the command is killed

        Returns:
            CommandResult with captured output

        Raises:
            ExternalToolError: If the executable is missing or the command times out
        """
        args = [str(arg) for arg in args]
        logger.debug(f"Running: {' '.join(args)}")
        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                encoding=self.encoding,
                errors="replace",
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(f"Executable not found: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(f"{args[0]} timed out after {timeout}s") from e

        return CommandResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
