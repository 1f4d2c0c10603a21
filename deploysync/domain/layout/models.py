"""
Project layout domain models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class LayoutKind(str, Enum):
    """Known project shapes, in detection precedence order"""
    MAVEN = "maven"
    GRADLE = "gradle"
    ECLIPSE = "eclipse"
    PLAIN = "plain"


@dataclass(frozen=True)
class ProjectLayout:
    """
    Inferred project shape.

    All roots are workspace-relative, forward-slash separated.
    Immutable once computed; a new activation computes a new one.
    """
    kind: LayoutKind
    compiled_output_root: str
    source_roots: Tuple[str, ...]
    web_resource_roots: Tuple[str, ...]
    artifact_name: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "kind": self.kind.value,
            "compiled_output_root": self.compiled_output_root,
            "source_roots": list(self.source_roots),
            "web_resource_roots": list(self.web_resource_roots),
            "artifact_name": self.artifact_name,
        }


@dataclass(frozen=True)
class MavenResource:
    """A <resource> declaration from pom.xml"""
    directory: str
    target_path: str
    includes: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MavenDescriptor:
    """Build settings read from pom.xml, with Maven's literal defaults"""
    artifact_id: Optional[str] = None
    final_name: Optional[str] = None
    packaging: str = "jar"
    output_directory: str = "target/classes"
    resources: Tuple[MavenResource, ...] = field(default_factory=tuple)
    war_source_directory: str = "src/main/webapp"

    def artifact_name(self, fallback: str) -> str:
        """finalName, then artifactId, then the given fallback"""
        return self.final_name or self.artifact_id or fallback


@dataclass(frozen=True)
class EclipseClasspath:
    """Entries read from an Eclipse .classpath file"""
    output: str = "bin"
    sources: Tuple[str, ...] = ("src",)
