"""
Build descriptor parsing (pom.xml, settings.gradle, .classpath)
"""
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ...core.exceptions import DescriptorError
from ...core.constants import CLASSES_DESTINATION
from ...core.utils import to_posix
from .models import MavenDescriptor, MavenResource, EclipseClasspath

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_ROOT_PROJECT_NAME = re.compile(r"""rootProject\.name\s*=\s*['"]([^'"]+)['"]""")


# ============================================================
# XML helpers
# ============================================================

def _local(tag: str) -> str:
    """Strip the '{namespace}' prefix ElementTree puts on tags"""
    return tag.rsplit("}", 1)[-1]


def _child(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if element is None:
        return None
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _children(element: Optional[ET.Element], name: str) -> List[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _text(element: Optional[ET.Element], name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def _parse_xml(path: Path) -> ET.Element:
    try:
        return ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        raise DescriptorError(f"Failed to parse {path.name}: {e}") from e


# ============================================================
# Maven
# ============================================================

def _interpolate(value: Optional[str], properties: Dict[str, str]) -> Optional[str]:
    """
    Substitute ${...} references; unresolved references yield None.
    """
    if value is None:
        return None

    unresolved = False

    def substitute(match: re.Match) -> str:
        nonlocal unresolved
        key = match.group(1)
        if key in properties:
            return properties[key]
        unresolved = True
        return match.group(0)

    result = _PLACEHOLDER.sub(substitute, value)
    return None if unresolved else result


def _normalize_dir(value: Optional[str], default: str) -> str:
    if not value:
        return default
    text = to_posix(value).strip()
    while text.startswith("./"):
        text = text[2:]
    text = text.strip("/")
    return text or default


def _find_war_plugin(build: Optional[ET.Element]) -> Optional[ET.Element]:
    plugins = _child(build, "plugins")
    for plugin in _children(plugins, "plugin"):
        if _text(plugin, "artifactId") == "maven-war-plugin":
            return _child(plugin, "configuration")
    return None


def parse_pom(path: Path) -> MavenDescriptor:
    """
    Parse a Maven pom.xml.

    Only the project's own coordinates are read; a <parent> block never
    supplies the artifactId.

    Args:
        path: Path to pom.xml

    Returns:
        MavenDescriptor with defaults filled in for absent elements

    Raises:
        DescriptorError: If the file cannot be read or is not well-formed XML
    """
    project = _parse_xml(path)
    if _local(project.tag) != "project":
        raise DescriptorError(f"{path.name} has no <project> root element")

    artifact_id = _text(project, "artifactId")
    version = _text(project, "version") or _text(_child(project, "parent"), "version")

    properties: Dict[str, str] = {
        "project.build.directory": "target",
        "project.basedir": ".",
        "basedir": ".",
    }
    declared = _child(project, "properties")
    for prop in declared if declared is not None else []:
        if prop.text is not None:
            properties[_local(prop.tag)] = prop.text.strip()
    if artifact_id:
        properties["project.artifactId"] = artifact_id
        properties["artifactId"] = artifact_id
    if version:
        properties["project.version"] = version
        properties["version"] = version

    build = _child(project, "build")
    final_name = _interpolate(_text(build, "finalName"), properties)
    output_directory = _normalize_dir(
        _interpolate(_text(build, "outputDirectory"), properties),
        "target/classes",
    )

    resources = []
    for resource in _children(_child(build, "resources"), "resource"):
        directory = _interpolate(_text(resource, "directory"), properties)
        if not directory:
            continue
        resources.append(MavenResource(
            directory=_normalize_dir(directory, "src/main/resources"),
            target_path=_normalize_dir(
                _interpolate(_text(resource, "targetPath"), properties),
                CLASSES_DESTINATION,
            ),
            includes=tuple(_pattern_list(_child(resource, "includes"), "include")),
            excludes=tuple(_pattern_list(_child(resource, "excludes"), "exclude")),
        ))

    war_config = _find_war_plugin(build)
    war_source = _normalize_dir(
        _interpolate(_text(war_config, "warSourceDirectory"), properties),
        "src/main/webapp",
    )

    return MavenDescriptor(
        artifact_id=artifact_id,
        final_name=final_name,
        packaging=_text(project, "packaging") or "jar",
        output_directory=output_directory,
        resources=tuple(resources) or (
            MavenResource(directory="src/main/resources", target_path=CLASSES_DESTINATION),
        ),
        war_source_directory=war_source,
    )


def _pattern_list(element: Optional[ET.Element], name: str) -> Iterable[str]:
    for child in _children(element, name):
        if child.text and child.text.strip():
            yield to_posix(child.text.strip())


# ============================================================
# Gradle
# ============================================================

def read_gradle_project_name(root: Path) -> Optional[str]:
    """
    Read rootProject.name from settings.gradle or settings.gradle.kts.

    Returns:
        Project name, or None if not declared
    """
    for name in ("settings.gradle", "settings.gradle.kts"):
        settings = root / name
        if not settings.is_file():
            continue
        try:
            content = settings.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DescriptorError(f"Failed to read {name}: {e}") from e
        match = _ROOT_PROJECT_NAME.search(content)
        if match:
            return match.group(1)
    return None


# ============================================================
# Eclipse
# ============================================================

def parse_eclipse_classpath(path: Path) -> EclipseClasspath:
    """
    Parse an Eclipse .classpath file.

    Raises:
        DescriptorError: If the file is not well-formed XML
    """
    root = _parse_xml(path)
    output = None
    sources = []
    for entry in root.iter():
        if _local(entry.tag) != "classpathentry":
            continue
        kind = entry.get("kind")
        entry_path = entry.get("path")
        if not entry_path:
            continue
        if kind == "output" and output is None:
            output = _normalize_dir(entry_path, "bin")
        elif kind == "src" and not entry_path.startswith("/"):
            sources.append(_normalize_dir(entry_path, "src"))

    return EclipseClasspath(
        output=output or "bin",
        sources=tuple(sources) or ("src",),
    )
