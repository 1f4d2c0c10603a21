"""
Deploy synchronization service - activation, watching and full deploys
"""
import re
import threading
from pathlib import Path
from typing import Callable, Optional

from ...core.constants import COMPILED_EXTENSION, DEFAULT_COMPILE_ENCODING
from ...core.exceptions import ConfigError
from ...core.interfaces import (
    CommandRunner,
    DeployConfigSource,
    EventSource,
    PromptProvider,
    ServerController,
)
from ...core.logging import get_logger
from ...core.telemetry import Telemetry, get_telemetry
from ...core.utils import literal_prefix
from ..build import BuildContext, BuildExecutor, BuildResult, BuildState, resolve_strategy
from ..layout import detect
from ..mapping import DeployConfig, DeploySnapshot, compile_config, normalize_local_source
from ..watch import WatchScheduler
from ..watch.batch import TimerFactory
from .models import EngineSettings

logger = get_logger(__name__)

_ENCODING = re.compile(r"^[\w.\-]+$")


def resolve_encoding(value: Optional[str]) -> str:
    """Compiler encoding, falling back to UTF-8 for unsafe values"""
    if value and _ENCODING.match(value):
        return value
    logger.warning(f"Invalid compile encoding {value!r}; using {DEFAULT_COMPILE_ENCODING}")
    return DEFAULT_COMPILE_ENCODING


def compiled_output_override(config: DeployConfig) -> Optional[str]:
    """
    Output root named by a local mapping over compiled classes.

    The first enabled local override whose source targets class files
    replaces the layout's compiled output root.
    """
    for mapping in config.local_overrides:
        if not mapping.enabled:
            continue
        source = normalize_local_source(mapping.source_pattern)
        if source.endswith(COMPILED_EXTENSION):
            root = literal_prefix(source)
            if root:
                return root
    return None


class DeploySyncService:
    """
    Deploy synchronization service.

    Owns the activation snapshot and hands it to the watch scheduler and the
    build executor. A configuration reload builds a new snapshot and swaps
    the reference; nothing is mutated in place.
    """

    def __init__(
        self,
        workspace_root: Path,
        settings: EngineSettings,
        config_source: DeployConfigSource,
        server: ServerController,
        runner: CommandRunner,
        telemetry: Optional[Telemetry] = None,
        prompt: Optional[PromptProvider] = None,
        timer_factory: Optional[TimerFactory] = None,
        on_deployed: Optional[Callable[[Path, Path], None]] = None,
        on_build_state: Optional[Callable[[BuildState], None]] = None,
    ):
        """
        Initialize service.

        Args:
            workspace_root: Workspace root directory
            settings: Engine settings
            config_source: Loads the deploy configuration for a layout
            server: Server controller collaborator
            runner: External command runner
            telemetry: Event sink (default global telemetry)
            prompt: Prompt provider for ambiguous build strategies
            timer_factory: Timer factory for watch debouncing and probes
            on_deployed: Callback after each incremental copy (source, destination)
            on_build_state: Callback on build state transitions
        """
        self.workspace_root = Path(workspace_root).resolve()
        self.settings = settings
        self.config_source = config_source
        self.server = server
        self.runner = runner
        self.telemetry = telemetry or get_telemetry()
        self.prompt = prompt
        self.timer_factory = timer_factory
        self.on_deployed = on_deployed

        self.executor = BuildExecutor(server, telemetry=self.telemetry, on_state=on_build_state)
        self._snapshot: Optional[DeploySnapshot] = None
        self._scheduler: Optional[WatchScheduler] = None
        self._activation_lock = threading.Lock()

    # ============================================================
    # Activation
    # ============================================================

    @property
    def snapshot(self) -> DeploySnapshot:
        """Current snapshot, activating on first use"""
        snapshot = self._snapshot
        if snapshot is None:
            snapshot = self.activate()
        return snapshot

    def target_dir(self, artifact_name: str) -> Optional[Path]:
        """Deployed application directory, if it can be determined"""
        target = self.settings.resolve_path(self.settings.target_dir, self.workspace_root)
        if target is not None:
            return target
        server_home = self.settings.resolve_path(self.settings.server_home, self.workspace_root)
        if server_home is not None:
            return server_home / "webapps" / artifact_name
        return None

    def _build_snapshot(self) -> DeploySnapshot:
        layout = detect(self.workspace_root)
        config = self.config_source.load(self.workspace_root, layout)
        output_root = compiled_output_override(config) or layout.compiled_output_root
        if output_root != layout.compiled_output_root:
            logger.info(f"Compiled output root overridden by local mapping: {output_root}")

        compiled = compile_config(config)
        for entry in compiled:
            if not entry.valid:
                logger.warning(f"Mapping '{entry.mapping.source_pattern}' never matches: {entry.error}")
                self.telemetry.record_event("pattern.degraded", {
                    "pattern": entry.mapping.source_pattern,
                    "reason": entry.error,
                })

        return DeploySnapshot(
            workspace_root=self.workspace_root,
            layout=layout,
            config=config,
            compiled=tuple(compiled),
            compiled_output_root=output_root,
            webapp_root=self.target_dir(config.artifact_name),
        )

    def activate(self) -> DeploySnapshot:
        """
        Detect the layout, load configuration and compile mappings.

        Returns:
            The newly published snapshot
        """
        with self._activation_lock:
            snapshot = self._build_snapshot()
            self._snapshot = snapshot
            if self._scheduler is not None:
                self._scheduler.update_snapshot(snapshot)

        logger.info(
            f"Activated {snapshot.layout.kind.value} project '{snapshot.config.artifact_name}' "
            f"with {len(snapshot.compiled)} mappings ({snapshot.config.tier.value})"
        )
        return snapshot

    def reload_configuration(self) -> DeploySnapshot:
        """Recompute the snapshot after a configuration change"""
        logger.info("Configuration changed; reloading mappings")
        return self.activate()

    # ============================================================
    # Watching
    # ============================================================

    @property
    def scheduler(self) -> Optional[WatchScheduler]:
        return self._scheduler

    def start_watching(self, source: Optional[EventSource] = None) -> WatchScheduler:
        """
        Start both watch channels.

        Raises:
            ConfigError: If no target directory is configured
        """
        snapshot = self.snapshot
        if snapshot.webapp_root is None:
            raise ConfigError("No target directory: set target_dir or server_home")
        if self._scheduler is not None:
            return self._scheduler

        self._scheduler = WatchScheduler(
            snapshot,
            bypass_patterns=self.settings.bypass_patterns,
            reload_on_sync=self.settings.reload_on_sync,
            server=self.server,
            telemetry=self.telemetry,
            timer_factory=self.timer_factory,
            on_deployed=self.on_deployed,
        )
        self._scheduler.start(source)
        return self._scheduler

    def stop_watching(self, flush: bool = True) -> None:
        """Stop both watch channels"""
        if self._scheduler is None:
            return
        self._scheduler.stop(flush=flush)
        self._scheduler = None

    # ============================================================
    # Full deploy
    # ============================================================

    def deploy(self, strategy: Optional[str] = None) -> BuildResult:
        """
        Run a full deploy.

        Args:
            strategy: 'auto', 'local', 'maven' or 'gradle' (default: configured)

        Returns:
            BuildResult of the run

        Raises:
            ConfigError: If no target directory is configured or the strategy is unknown
            BuildFailedError: If the build fails
        """
        snapshot = self.snapshot
        if snapshot.webapp_root is None:
            raise ConfigError("No target directory: set target_dir or server_home")

        build_strategy = resolve_strategy(
            self.workspace_root,
            requested=strategy or self.settings.build_strategy,
            preferred=self.settings.build_strategy,
            prompt=self.prompt,
        )
        context = BuildContext(
            snapshot=snapshot,
            target_dir=snapshot.webapp_root,
            runner=self.runner,
            server_home=self.settings.resolve_path(self.settings.server_home, self.workspace_root),
            java_home=self.settings.resolve_path(self.settings.java_home, self.workspace_root),
            encoding=resolve_encoding(self.settings.encoding),
            timeout=self.settings.build_timeout,
        )
        return self.executor.deploy(build_strategy, context)
