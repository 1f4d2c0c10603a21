"""
Shared wiring for CLI commands
"""
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ...core.telemetry import get_telemetry
from ...domain.build import BuildState
from ...domain.engine import DeploySyncService, EngineSettings
from ...infrastructure.process import CommandServerController, SubprocessRunner
from ..config import ConfigLoader, WorkspaceConfigSource
from .prompts import RichPromptProvider


def resolve_workspace(workspace: str) -> Path:
    return Path(workspace).expanduser().resolve()


def load_settings(
    workspace_root: Path,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> EngineSettings:
    """
    Load settings for a workspace with CLI overrides applied.

    Raises:
        ConfigError: If the configuration is unreadable or invalid
    """
    path = Path(config_path).expanduser() if config_path else None
    return ConfigLoader().load_settings(workspace_root, config_path=path, cli_overrides=overrides)


def create_service(
    workspace_root: Path,
    settings: EngineSettings,
    prompt: Optional[RichPromptProvider] = None,
    on_deployed: Optional[Callable[[Path, Path], None]] = None,
    on_build_state: Optional[Callable[[BuildState], None]] = None,
) -> DeploySyncService:
    """Build a service wired to subprocess-backed collaborators"""
    runner = SubprocessRunner()
    telemetry = get_telemetry()
    server = CommandServerController(
        runner,
        reload_command=settings.reload_command,
        stop_command=settings.stop_command,
        kill_command=settings.kill_command,
        process_pattern=settings.process_pattern,
        telemetry=telemetry,
    )
    return DeploySyncService(
        workspace_root,
        settings,
        config_source=WorkspaceConfigSource(settings),
        server=server,
        runner=runner,
        telemetry=telemetry,
        prompt=prompt or RichPromptProvider(),
        on_deployed=on_deployed,
        on_build_state=on_build_state,
    )
