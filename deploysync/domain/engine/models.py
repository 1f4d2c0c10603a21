"""
Engine domain models
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

from ...core.constants import (
    DEFAULT_MAPPING_FILE,
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_BYPASS_PATTERNS,
    DEFAULT_BUILD_STRATEGY,
    DEFAULT_COMPILE_ENCODING,
    DEFAULT_BUILD_TIMEOUT,
    DEFAULT_PROCESS_PATTERN,
)

STRATEGY_CHOICES = ("auto", "local", "maven", "gradle")


def _command(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.split()
    return [str(part) for part in value]


@dataclass
class EngineSettings:
    """
    Settings consumed by the engine.

    Constructed once per activation from merged TOML/env/CLI values.
    """
    target_dir: Optional[str] = None
    server_home: Optional[str] = None
    java_home: Optional[str] = None
    mapping_file: str = DEFAULT_MAPPING_FILE
    log_level: str = "INFO"
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    bypass_patterns: str = DEFAULT_BYPASS_PATTERNS
    reload_on_sync: bool = False
    build_strategy: str = DEFAULT_BUILD_STRATEGY
    encoding: str = DEFAULT_COMPILE_ENCODING
    build_timeout: int = DEFAULT_BUILD_TIMEOUT
    reload_command: Optional[List[str]] = None
    stop_command: Optional[List[str]] = None
    kill_command: Optional[List[str]] = None
    process_pattern: str = DEFAULT_PROCESS_PATTERN
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def debounce_window(self) -> float:
        """Debounce window in seconds"""
        return self.debounce_ms / 1000.0

    def validate(self) -> None:
        """Validate settings"""
        from ...core.exceptions import ConfigError

        if isinstance(self.debounce_ms, bool) or not isinstance(self.debounce_ms, int):
            raise ConfigError(f"Invalid debounce_ms: {self.debounce_ms!r}, must be an integer")
        if self.debounce_ms < 0:
            raise ConfigError(f"Invalid debounce_ms: {self.debounce_ms}, must not be negative")
        if self.build_strategy not in STRATEGY_CHOICES:
            raise ConfigError(
                f"Invalid build strategy: {self.build_strategy}, must be one of {', '.join(STRATEGY_CHOICES)}"
            )
        if isinstance(self.build_timeout, bool) or not isinstance(self.build_timeout, int) or self.build_timeout <= 0:
            raise ConfigError(f"Invalid build timeout: {self.build_timeout!r}, must be a positive integer")
        for name in ("reload_command", "stop_command", "kill_command"):
            value = getattr(self, name)
            if value is not None and not value:
                raise ConfigError(f"Invalid {name}: command must not be empty")

    def resolve_path(self, value: Optional[str], root: Path) -> Optional[Path]:
        """Expand a configured path; relative paths are taken from root"""
        if not value:
            return None
        path = Path(value).expanduser()
        return path if path.is_absolute() else root / path

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the nested TOML shape"""
        return {
            "target_dir": self.target_dir,
            "server_home": self.server_home,
            "java_home": self.java_home,
            "mapping_file": self.mapping_file,
            "log_level": self.log_level,
            "watch": {
                "debounce_ms": self.debounce_ms,
                "bypass_patterns": self.bypass_patterns,
                "reload_on_sync": self.reload_on_sync,
            },
            "build": {
                "strategy": self.build_strategy,
                "encoding": self.encoding,
                "timeout": self.build_timeout,
            },
            "server": {
                "reload_command": self.reload_command,
                "stop_command": self.stop_command,
                "kill_command": self.kill_command,
                "process_pattern": self.process_pattern,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineSettings":
        """Create from a merged configuration dictionary"""
        watch = data.get("watch", {})
        build = data.get("build", {})
        server = data.get("server", {})
        known = {"target_dir", "server_home", "java_home", "mapping_file", "log_level", "watch", "build", "server"}

        return cls(
            target_dir=data.get("target_dir"),
            server_home=data.get("server_home"),
            java_home=data.get("java_home"),
            mapping_file=data.get("mapping_file", DEFAULT_MAPPING_FILE),
            log_level=data.get("log_level", "INFO"),
            debounce_ms=watch.get("debounce_ms", DEFAULT_DEBOUNCE_MS),
            bypass_patterns=watch.get("bypass_patterns", DEFAULT_BYPASS_PATTERNS),
            reload_on_sync=bool(watch.get("reload_on_sync", False)),
            build_strategy=str(build.get("strategy", DEFAULT_BUILD_STRATEGY)).lower(),
            encoding=str(build.get("encoding", DEFAULT_COMPILE_ENCODING)),
            build_timeout=build.get("timeout", DEFAULT_BUILD_TIMEOUT),
            reload_command=_command(server.get("reload_command")),
            stop_command=_command(server.get("stop_command")),
            kill_command=_command(server.get("kill_command")),
            process_pattern=str(server.get("process_pattern", DEFAULT_PROCESS_PATTERN)),
            extra={key: value for key, value in data.items() if key not in known},
        )
