"""
Project layout domain module
"""
from .models import LayoutKind, ProjectLayout, MavenDescriptor, MavenResource, EclipseClasspath
from .descriptors import parse_pom, read_gradle_project_name, parse_eclipse_classpath
from .detector import detect, looks_deployable, has_maven_descriptor, has_gradle_descriptor

__all__ = [
    "LayoutKind",
    "ProjectLayout",
    "MavenDescriptor",
    "MavenResource",
    "EclipseClasspath",
    "parse_pom",
    "read_gradle_project_name",
    "parse_eclipse_classpath",
    "detect",
    "looks_deployable",
    "has_maven_descriptor",
    "has_gradle_descriptor",
]
