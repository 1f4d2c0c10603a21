"""
Project layout detection
"""
from pathlib import Path
from typing import Tuple

from ...core.exceptions import DescriptorError
from ...core.logging import get_logger
from .models import LayoutKind, ProjectLayout
from .descriptors import parse_pom, read_gradle_project_name, parse_eclipse_classpath

logger = get_logger(__name__)

GRADLE_DESCRIPTORS = ("build.gradle", "build.gradle.kts")


def _existing_or_all(root: Path, candidates: Tuple[str, ...]) -> Tuple[str, ...]:
    """Candidates that exist under root; all of them when none exist"""
    existing = tuple(name for name in candidates if (root / name).is_dir())
    return existing or candidates


def has_maven_descriptor(root: Path) -> bool:
    return (root / "pom.xml").is_file()


def has_gradle_descriptor(root: Path) -> bool:
    return any((root / name).is_file() for name in GRADLE_DESCRIPTORS)


def detect(root: Path) -> ProjectLayout:
    """
    Classify a workspace into a known layout.

    Precedence: Maven > Gradle > Eclipse > Plain. Unreadable descriptors
    fall back to the layout's conventional defaults; this function never
    raises for a missing or broken project and never writes to disk.

    Args:
        root: Workspace root directory

    Returns:
        Detected ProjectLayout
    """
    root = Path(root)
    fallback_name = root.resolve().name or "ROOT"

    if has_maven_descriptor(root):
        try:
            descriptor = parse_pom(root / "pom.xml")
        except DescriptorError as e:
            logger.warning(f"{e}; using Maven defaults")
            return ProjectLayout(
                kind=LayoutKind.MAVEN,
                compiled_output_root="target/classes",
                source_roots=("src/main/java",),
                web_resource_roots=("src/main/webapp",),
                artifact_name=fallback_name,
            )
        return ProjectLayout(
            kind=LayoutKind.MAVEN,
            compiled_output_root=descriptor.output_directory,
            source_roots=("src/main/java",),
            web_resource_roots=(descriptor.war_source_directory,),
            artifact_name=descriptor.artifact_name(fallback_name),
        )

    if has_gradle_descriptor(root):
        try:
            name = read_gradle_project_name(root)
        except DescriptorError as e:
            logger.warning(f"{e}; using directory name")
            name = None
        return ProjectLayout(
            kind=LayoutKind.GRADLE,
            compiled_output_root="build/classes/java/main",
            source_roots=("src/main/java",),
            web_resource_roots=("src/main/webapp",),
            artifact_name=name or fallback_name,
        )

    if (root / ".classpath").is_file():
        try:
            classpath = parse_eclipse_classpath(root / ".classpath")
            output, sources = classpath.output, classpath.sources
        except DescriptorError as e:
            logger.warning(f"{e}; using Eclipse defaults")
            output, sources = "bin", ("src",)
        web_roots = tuple(name for name in ("WebContent", "web") if (root / name).is_dir())
        return ProjectLayout(
            kind=LayoutKind.ECLIPSE,
            compiled_output_root=output,
            source_roots=sources,
            web_resource_roots=web_roots or ("WebContent",),
            artifact_name=fallback_name,
        )

    return ProjectLayout(
        kind=LayoutKind.PLAIN,
        compiled_output_root="bin",
        source_roots=("src",),
        web_resource_roots=_existing_or_all(root, ("web", "webapp")),
        artifact_name=fallback_name,
    )


def looks_deployable(root: Path) -> bool:
    """
    Heuristic check that the workspace is a Java web project.

    True when a build descriptor exists or a WEB-INF directory is found
    under one of the usual web roots.
    """
    root = Path(root)
    if has_maven_descriptor(root) or has_gradle_descriptor(root):
        return True
    for web_root in ("src/main/webapp", "WebContent", "web", "webapp"):
        if (root / web_root / "WEB-INF").is_dir():
            return True
    return False
