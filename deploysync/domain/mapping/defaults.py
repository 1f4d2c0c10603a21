"""
Generated mappings: layout defaults and Maven descriptor mappings
"""
import re
from typing import List, Optional, Sequence, Tuple

from ...core.constants import (
    CLASSES_DESTINATION,
    COMPILED_EXTENSION,
    SOURCE_EXTENSION,
    RELATIVE_PLACEHOLDER,
)
from ..layout.models import LayoutKind, ProjectLayout, MavenDescriptor, MavenResource
from .models import Mapping

_CODE_EXTENSIONS = (COMPILED_EXTENSION, SOURCE_EXTENSION)
_EXTENSION_GLOB = re.compile(r"^(?:\*\*/)?\*(\.[A-Za-z0-9_\-]+)$")


def _classes_mapping(output_root: str) -> Mapping:
    return Mapping(
        source_pattern=f"{output_root}/**/*{COMPILED_EXTENSION}",
        destination_template=f"{CLASSES_DESTINATION}/{RELATIVE_PLACEHOLDER}",
        triggers_reload=True,
        include_extensions=(COMPILED_EXTENSION,),
        description="Compiled classes",
    )


def _web_mapping(web_root: str) -> Mapping:
    return Mapping(
        source_pattern=f"{web_root}/**/*",
        destination_template=RELATIVE_PLACEHOLDER,
        exclude_extensions=_CODE_EXTENSIONS,
        description="Web resources",
    )


def _resource_mapping(
    directory: str,
    target_path: str = CLASSES_DESTINATION,
    include_extensions: Optional[Sequence[str]] = None,
    exclude_extensions: Sequence[str] = (),
) -> Mapping:
    excludes = list(_CODE_EXTENSIONS)
    for ext in exclude_extensions:
        if ext not in excludes:
            excludes.append(ext)
    return Mapping(
        source_pattern=f"{directory}/**/*",
        destination_template=f"{target_path}/{RELATIVE_PLACEHOLDER}",
        include_extensions=include_extensions,
        exclude_extensions=excludes,
        description="Resources",
    )


def default_mappings(layout: ProjectLayout) -> Tuple[Mapping, ...]:
    """
    Conventional mappings for a layout kind.

    Args:
        layout: Detected project layout

    Returns:
        Mappings with origin SMART, in precedence order
    """
    if layout.kind == LayoutKind.MAVEN:
        return (
            _classes_mapping("target/classes"),
            _web_mapping("src/main/webapp"),
            _resource_mapping("src/main/resources"),
        )
    if layout.kind == LayoutKind.GRADLE:
        return (
            _classes_mapping("build/classes/java/main"),
            _web_mapping("src/main/webapp"),
            _resource_mapping("src/main/resources"),
        )
    # Eclipse and plain projects
    mappings = [_classes_mapping(layout.compiled_output_root)]
    mappings.extend(_web_mapping(root) for root in layout.web_resource_roots)
    return tuple(mappings)


def _extension_filters(patterns: Sequence[str]) -> Optional[List[str]]:
    """
    Reduce Maven include/exclude globs to extension sets.

    Only '*.ext' and '**/*.ext' shapes are understood; anything else makes
    the filter unrepresentable and it is ignored.
    """
    extensions = []
    for pattern in patterns:
        match = _EXTENSION_GLOB.match(pattern)
        if not match:
            return None
        extensions.append(match.group(1))
    return extensions or None


def _maven_resource_mapping(resource: MavenResource) -> Mapping:
    return _resource_mapping(
        resource.directory,
        target_path=resource.target_path,
        include_extensions=_extension_filters(resource.includes),
        exclude_extensions=_extension_filters(resource.excludes) or (),
    )


def descriptor_mappings(descriptor: MavenDescriptor) -> Tuple[Mapping, ...]:
    """
    Mappings derived from a parsed pom.xml.

    Args:
        descriptor: Parsed Maven descriptor

    Returns:
        Mappings with origin SMART, in precedence order
    """
    mappings = [_classes_mapping(descriptor.output_directory)]
    mappings.extend(_maven_resource_mapping(resource) for resource in descriptor.resources)
    mappings.append(_web_mapping(descriptor.war_source_directory))
    return tuple(mappings)
