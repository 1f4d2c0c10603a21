"""
Command-driven server controller
"""
from pathlib import Path
from typing import List, Optional

from ...core.constants import DEFAULT_PROCESS_PATTERN
from ...core.exceptions import ExternalToolError
from ...core.interfaces import CommandRunner, ServerController
from ...core.logging import get_logger
from ...core.telemetry import Telemetry, get_telemetry
from ...core.utils import Platform, current_platform

logger = get_logger(__name__)


def default_kill_commands(platform: Platform, process_pattern: str) -> List[List[str]]:
    """Forced-termination commands for a platform"""
    if platform == Platform.WINDOWS:
        return [["taskkill", "/F", "/IM", "java.exe"]]
    if platform == Platform.POSIX:
        return [["pkill", "-f", process_pattern]]
    raise ValueError(f"Unsupported platform: {platform}")


class CommandServerController(ServerController):
    """
    Server controller that shells out to configured commands.

    Without a reload or stop command those signals are only logged; the
    server lifecycle stays with whatever started it.
    """

    def __init__(
        self,
        runner: CommandRunner,
        reload_command: Optional[List[str]] = None,
        stop_command: Optional[List[str]] = None,
        kill_command: Optional[List[str]] = None,
        process_pattern: str = DEFAULT_PROCESS_PATTERN,
        platform: Optional[Platform] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        self.runner = runner
        self.reload_command = reload_command
        self.stop_command = stop_command
        self.kill_command = kill_command
        self.process_pattern = process_pattern
        self.platform = platform or current_platform()
        self.telemetry = telemetry or get_telemetry()

    def _run(self, args: List[str], action: str, allowed_codes: tuple = (0,)) -> bool:
        try:
            result = self.runner.run(args, timeout=60)
        except ExternalToolError as e:
            logger.warning(f"Server {action} command failed: {e}")
            return False
        if result.returncode not in allowed_codes:
            logger.warning(f"Server {action} command exited with code {result.returncode}: {result.output.strip()}")
            return False
        return True

    def ensure_stopped(self) -> None:
        if not self.stop_command:
            logger.debug("No stop command configured")
            return
        logger.info("Stopping server before full deploy")
        self._run(self.stop_command, "stop")

    def reload(self) -> None:
        if not self.reload_command:
            logger.info("Reload requested (no reload command configured)")
            return
        if self._run(self.reload_command, "reload"):
            logger.info("Server reload requested")

    def notify_deployed(self, artifact_path: Path) -> None:
        logger.info(f"Deployed artifact: {artifact_path}")
        self.telemetry.record_event("server.deployed", {"artifact": str(artifact_path)})

    def kill(self) -> bool:
        """
        Forcibly terminate processes that may lock deployed files.

        Exit code 1 means nothing matched and counts as success.
        """
        commands = [self.kill_command] if self.kill_command else default_kill_commands(
            self.platform, self.process_pattern
        )
        killed = True
        for command in commands:
            logger.warning(f"Killing processes: {' '.join(command)}")
            killed = self._run(command, "kill", allowed_codes=(0, 1, 128)) and killed
        return killed
