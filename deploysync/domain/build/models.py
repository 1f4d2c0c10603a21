"""
Build domain models
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import DEFAULT_COMPILE_ENCODING, DEFAULT_BUILD_TIMEOUT
from ...core.interfaces import CommandRunner
from ..mapping.models import DeploySnapshot


class BuildStrategy(str, Enum):
    """Closed set of build strategies"""
    LOCAL = "local"
    MAVEN = "maven"
    GRADLE = "gradle"


class BuildState(str, Enum):
    """Executor state machine"""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RELOAD_REQUESTED = "reload_requested"


@dataclass
class BuildContext:
    """Everything a strategy needs for one run"""
    snapshot: DeploySnapshot
    target_dir: Path
    runner: CommandRunner
    server_home: Optional[Path] = None
    java_home: Optional[Path] = None
    encoding: str = DEFAULT_COMPILE_ENCODING
    timeout: float = DEFAULT_BUILD_TIMEOUT

    @property
    def workspace_root(self) -> Path:
        return self.snapshot.workspace_root

    @property
    def artifact_name(self) -> str:
        return self.snapshot.config.artifact_name


@dataclass
class BuildResult:
    """Outcome of a deploy invocation"""
    strategy: BuildStrategy
    state: BuildState
    attempts: int = 0
    kill_attempts: int = 0
    duration: float = 0.0
    artifact_path: Optional[Path] = None
    skipped: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state in (BuildState.SUCCEEDED, BuildState.RELOAD_REQUESTED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "strategy": self.strategy.value,
            "state": self.state.value,
            "attempts": self.attempts,
            "kill_attempts": self.kill_attempts,
            "duration": self.duration,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
            "skipped": self.skipped,
        }
