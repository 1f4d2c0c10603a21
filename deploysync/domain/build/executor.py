"""
Build pipeline executor
"""
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ...core.constants import MAX_BUSY_RETRIES
from ...core.exceptions import BuildError, BuildFailedError, ExternalToolError, ResourceBusyError
from ...core.interfaces import ServerController
from ...core.logging import get_logger
from ...core.telemetry import Telemetry, get_telemetry
from .fs_sync import is_busy_error
from .models import BuildContext, BuildResult, BuildState, BuildStrategy
from .strategies import BuildRunner, create_runner

logger = get_logger(__name__)


class BuildExecutor:
    """
    Runs one full deploy at a time.

    A deploy requested while another is running is ignored. Locked files
    are retried after asking the server controller to kill whatever holds
    them; any other failure ends the invocation.
    """

    def __init__(
        self,
        server: ServerController,
        telemetry: Optional[Telemetry] = None,
        max_retries: int = MAX_BUSY_RETRIES,
        runners: Optional[Dict[BuildStrategy, BuildRunner]] = None,
        on_state: Optional[Callable[[BuildState], None]] = None,
    ):
        """
        Initialize executor.

        Args:
            server: Server controller collaborator
            telemetry: Event sink (default global telemetry)
            max_retries: Busy retries allowed per invocation
            runners: Strategy runner overrides
            on_state: Callback on every state transition
        """
        self.server = server
        self.telemetry = telemetry or get_telemetry()
        self.max_retries = max_retries
        self._runners = dict(runners or {})
        self.on_state = on_state
        self._busy = threading.Lock()
        self._state = BuildState.IDLE

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def _set_state(self, state: BuildState) -> None:
        self._state = state
        if self.on_state:
            self.on_state(state)

    def runner_for(self, strategy: BuildStrategy) -> BuildRunner:
        if strategy not in self._runners:
            self._runners[strategy] = create_runner(strategy)
        return self._runners[strategy]

    def deploy(self, strategy: BuildStrategy, context: BuildContext) -> BuildResult:
        """
        Run a full deploy.

        Args:
            strategy: Build strategy to use
            context: Build context

        Returns:
            BuildResult; ``skipped`` is set when another deploy was running

        Raises:
            BuildFailedError: If the build fails or stays locked after all retries
        """
        if not self._busy.acquire(blocking=False):
            logger.warning("A deploy is already running; ignoring this request")
            self.telemetry.record_event("build.skipped", {"strategy": strategy.value, "reason": "busy"})
            return BuildResult(strategy=strategy, state=self._state, skipped=True)

        try:
            return self._run(strategy, context)
        finally:
            self._busy.release()

    def _run(self, strategy: BuildStrategy, context: BuildContext) -> BuildResult:
        runner = self.runner_for(strategy)
        started = time.monotonic()
        attempts = 0
        kills = 0

        self._set_state(BuildState.RUNNING)
        logger.info(f"Deploying {context.artifact_name} with the {strategy.value} strategy")
        self._call_server("ensure_stopped", self.server.ensure_stopped)

        while True:
            attempts += 1
            try:
                artifact = runner.run(context)
                break
            except (BuildError, OSError) as e:
                if not (isinstance(e, ResourceBusyError) or is_busy_error(e)):
                    diagnostics = e.diagnostics if isinstance(e, ExternalToolError) else []
                    self._fail(strategy, attempts, str(e), diagnostics or [str(e)], e)
                if kills >= self.max_retries:
                    self._fail(
                        strategy,
                        attempts,
                        f"Files still locked after {kills} retries",
                        [str(e)],
                        e,
                    )
                kills += 1
                logger.warning(f"Resource busy ({e}); killing locking processes, retry {kills}/{self.max_retries}")
                self._kill()
            except Exception as e:
                logger.exception("Unexpected build error")
                self._fail(strategy, attempts, f"Unexpected build error: {e}", [str(e)], e)

        if not context.target_dir.exists():
            self._fail(strategy, attempts, f"Target directory missing after build: {context.target_dir}", [], None)

        duration = time.monotonic() - started
        self._set_state(BuildState.SUCCEEDED)
        logger.info(f"Deploy succeeded in {duration:.1f}s ({attempts} attempt(s))")
        self.telemetry.record_event("build.succeeded", {
            "strategy": strategy.value,
            "attempts": attempts,
            "artifact": str(artifact),
        })
        self.telemetry.record_metric("build.duration", duration, {"strategy": strategy.value})

        self._call_server("notify_deployed", lambda: self.server.notify_deployed(Path(artifact)))
        self._call_server("reload", self.server.reload)
        self._set_state(BuildState.RELOAD_REQUESTED)

        return BuildResult(
            strategy=strategy,
            state=BuildState.RELOAD_REQUESTED,
            attempts=attempts,
            kill_attempts=kills,
            duration=duration,
            artifact_path=Path(artifact),
        )

    def _kill(self) -> None:
        try:
            self.server.kill()
        except Exception as e:
            logger.warning(f"Kill attempt failed: {e}")

    def _call_server(self, action: str, call: Callable[[], None]) -> None:
        try:
            call()
        except Exception as e:
            logger.warning(f"Server {action} failed: {e}")

    def _fail(
        self,
        strategy: BuildStrategy,
        attempts: int,
        message: str,
        diagnostics: List[str],
        cause: Optional[BaseException],
    ) -> None:
        self._set_state(BuildState.FAILED)
        logger.error(f"Deploy failed: {message}")
        for line in diagnostics:
            logger.error(f"  {line}")
        self.telemetry.record_event("build.failed", {
            "strategy": strategy.value,
            "diagnostics": "\n".join(diagnostics),
        })
        raise BuildFailedError(message, strategy.value, attempts, diagnostics) from cause
