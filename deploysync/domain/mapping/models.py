"""
Mapping domain models
"""
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from ..layout.models import LayoutKind, ProjectLayout


class MappingOrigin(str, Enum):
    """Where a mapping came from"""
    SMART = "smart"
    LOCAL = "local"


class ConfigTier(str, Enum):
    """Which configuration tier supplied the mapping set"""
    DESCRIPTOR = "descriptor"
    MAPPING_FILE = "mapping_file"
    DEFAULTS = "defaults"


def _normalize_extensions(values: Optional[Any]) -> Optional[Tuple[str, ...]]:
    """Lower-case, dot-prefixed, order-preserving, deduplicated"""
    if values is None:
        return None
    result = []
    for value in values:
        ext = str(value).strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        if ext not in result:
            result.append(ext)
    return tuple(result)


@dataclass(frozen=True)
class Mapping:
    """
    Declarative copy rule.

    source_pattern is a workspace-relative glob; destination_template is
    relative to the webapp root and may contain one {relative} placeholder.
    """
    source_pattern: str
    destination_template: str
    triggers_reload: bool = False
    include_extensions: Optional[Tuple[str, ...]] = None
    exclude_extensions: Optional[Tuple[str, ...]] = None
    description: str = ""
    origin: MappingOrigin = MappingOrigin.SMART
    enabled: bool = True

    def __post_init__(self):
        object.__setattr__(self, "include_extensions", _normalize_extensions(self.include_extensions))
        object.__setattr__(self, "exclude_extensions", _normalize_extensions(self.exclude_extensions))

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used for override precedence"""
        return (self.source_pattern, self.destination_template)

    def accepts_extension(self, extension: str) -> bool:
        """Apply include/exclude extension filters"""
        ext = extension.lower()
        if self.include_extensions is not None and ext not in self.include_extensions:
            return False
        if self.exclude_extensions and ext in self.exclude_extensions:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the mapping-file shape"""
        data: Dict[str, Any] = {
            "source": self.source_pattern,
            "destination": self.destination_template,
            "description": self.description,
            "enabled": self.enabled,
            "needsReload": self.triggers_reload,
        }
        if self.include_extensions is not None:
            data["extensions"] = list(self.include_extensions)
        if self.exclude_extensions is not None:
            data["excludeExtensions"] = list(self.exclude_extensions)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], origin: MappingOrigin = MappingOrigin.SMART) -> "Mapping":
        """Create from the mapping-file shape"""
        return cls(
            source_pattern=str(data["source"]),
            destination_template=str(data.get("destination", "")),
            triggers_reload=bool(data.get("needsReload", False)),
            include_extensions=data.get("extensions"),
            exclude_extensions=data.get("excludeExtensions"),
            description=str(data.get("description", "")),
            origin=origin,
            enabled=bool(data.get("enabled", True)),
        )


@dataclass(frozen=True)
class CompiledMapping:
    """
    A mapping with its glob translated into an anchored matcher.

    A degraded mapping has a never-matching matcher and carries the reason
    in ``error``; callers decide how to report it.
    """
    mapping: Mapping
    matcher: re.Pattern
    raw_pattern_segments: Tuple[str, ...]
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error is None

    def matches(self, relative_path: str) -> bool:
        """Match a workspace-relative, forward-slash path"""
        return self.matcher.match(relative_path) is not None


@dataclass(frozen=True)
class DeployConfig:
    """Deploy configuration for one activation"""
    project_type: LayoutKind
    artifact_name: str
    mappings: Tuple[Mapping, ...] = ()
    local_overrides: Tuple[Mapping, ...] = ()
    debounce_window: float = 0.3
    tier: ConfigTier = ConfigTier.DEFAULTS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the mapping-file shape"""
        return {
            "projectType": self.project_type.value,
            "webappName": self.artifact_name,
            "mappings": [mapping.to_dict() for mapping in self.mappings],
            "localDeploy": {
                "mappings": [mapping.to_dict() for mapping in self.local_overrides],
            },
        }


@dataclass(frozen=True)
class DeploySnapshot:
    """
    Everything one activation derived from the workspace.

    Built wholesale and replaced by reference; readers take the reference
    once and never see a partially updated mapping set.
    """
    workspace_root: Path
    layout: ProjectLayout
    config: DeployConfig
    compiled: Tuple[CompiledMapping, ...]
    compiled_output_root: str
    webapp_root: Optional[Path] = None

    def resolver(self) -> "PathResolver":
        """Path resolver bound to this snapshot's roots"""
        from .resolver import PathResolver
        return PathResolver(self.workspace_root, self.compiled_output_root)

    @property
    def compiled_output_dir(self) -> Path:
        return self.workspace_root / self.compiled_output_root

    @property
    def local_mappings(self) -> Tuple[CompiledMapping, ...]:
        return tuple(c for c in self.compiled if c.mapping.origin == MappingOrigin.LOCAL)
