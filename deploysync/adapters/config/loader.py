"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import DEFAULT_SETTINGS_FILE, ENV_PREFIX
from ...core.exceptions import ConfigError
from ...domain.engine.models import EngineSettings


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self):
        self._env_prefix = ENV_PREFIX

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        env_mappings = {
            f"{self._env_prefix}TARGET_DIR": "target_dir",
            f"{self._env_prefix}SERVER_HOME": "server_home",
            f"{self._env_prefix}JAVA_HOME": "java_home",
            f"{self._env_prefix}MAPPING_FILE": "mapping_file",
            f"{self._env_prefix}DEBOUNCE_MS": "watch.debounce_ms",
            f"{self._env_prefix}BYPASS_PATTERNS": "watch.bypass_patterns",
            f"{self._env_prefix}BUILD_STRATEGY": "build.strategy",
            f"{self._env_prefix}ENCODING": "build.encoding",
            f"{self._env_prefix}BUILD_TIMEOUT": "build.timeout",
            f"{self._env_prefix}PROCESS_PATTERN": "server.process_pattern",
        }
        # Values that must stay strings even when they look numeric
        raw_keys = {"target_dir", "server_home", "java_home", "mapping_file", "watch.bypass_patterns"}

        for env_key, config_key in env_mappings.items():
            value = os.getenv(env_key)
            if not value:
                continue
            converted = value if config_key in raw_keys else self._convert_value(value)
            if "." in config_key:
                section, key = config_key.split(".", 1)
                config.setdefault(section, {})[key] = converted
            else:
                config[config_key] = converted

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries; None values in override are skipped at every level"""
        result = base.copy()

        for key, value in override.items():
            if value is None:
                continue
            if isinstance(value, dict):
                nested = result.get(key)
                merged = self._deep_merge(nested if isinstance(nested, dict) else {}, value)
                if merged or isinstance(nested, dict):
                    result[key] = merged
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides (None values are ignored)
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        if toml_path:
            configs.append(self.load_toml(toml_path))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        if cli_overrides:
            configs.append(cli_overrides)

        return self.merge_configs(*configs)

    def load_settings(
        self,
        workspace_root: Path,
        config_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> EngineSettings:
        """
        Load and validate engine settings for a workspace.

        An explicit config path must exist; the default deploysync.toml in
        the workspace root is optional.

        Raises:
            ConfigError: If the file is unreadable or a value is invalid
        """
        toml_path = config_path
        if toml_path is None:
            default_path = Path(workspace_root) / DEFAULT_SETTINGS_FILE
            toml_path = default_path if default_path.is_file() else None

        data = self.load(toml_path=toml_path, cli_overrides=cli_overrides, use_env=use_env)
        settings = EngineSettings.from_dict(data)
        settings.validate()
        return settings
