"""
Destination path resolution for matched files
"""
import posixpath
from pathlib import Path
from typing import Optional

from ...core.constants import COMPILED_EXTENSION, RELATIVE_PLACEHOLDER
from ...core.utils import to_posix, relative_posix
from .models import CompiledMapping


def _strip_prefix(path: str, prefix: str) -> Optional[str]:
    """Remainder of path below a directory prefix, or None"""
    if not prefix:
        return path
    if path == prefix:
        return ""
    if path.startswith(prefix + "/"):
        return path[len(prefix) + 1:]
    return None


def extract_relative_portion(
    source_pattern: str,
    relative_path: str,
    compiled_output_root: Optional[str] = None,
) -> str:
    """
    Part of a matched path that the mapping's wildcard covers.

    Strategies, first success wins:
    1. '**/*' patterns: everything after the literal prefix before '**'
    2. '**/' patterns with a literal suffix: same, from the prefix on
    3. one-level '*' patterns: everything after the pattern's directory
    4. class files under the compiled output root: the package path
    5. the base name

    Args:
        source_pattern: Mapping source glob
        relative_path: Workspace-relative path of the file
        compiled_output_root: Workspace-relative output root, if known

    Returns:
        Forward-slash relative portion
    """
    pattern = to_posix(source_pattern)
    path = to_posix(relative_path)

    if "**/" in pattern:
        prefix = pattern[:pattern.index("**")].rstrip("/")
        remainder = _strip_prefix(path, prefix)
        if remainder:
            return remainder
    elif "*" in pattern:
        base = posixpath.dirname(pattern)
        if base and base != ".":
            remainder = _strip_prefix(path, base)
            if remainder:
                return remainder

    if compiled_output_root and path.endswith(COMPILED_EXTENSION):
        remainder = _strip_prefix(path, to_posix(compiled_output_root).strip("/"))
        if remainder:
            return remainder

    return posixpath.basename(path)


def render_destination(template: str, relative_portion: str) -> str:
    """
    Fill a destination template.

    The first {relative} is substituted; a template without one is treated
    as a directory the relative portion is joined onto.
    """
    template = to_posix(template)
    if RELATIVE_PLACEHOLDER in template:
        rendered = template.replace(RELATIVE_PLACEHOLDER, relative_portion, 1)
    else:
        rendered = posixpath.join(template, relative_portion) if template else relative_portion
    return rendered.lstrip("/")


class PathResolver:
    """
    Computes absolute destinations for matched source files.

    Resolution creates the destination's parent directories, so it has
    filesystem side effects even when no copy follows.
    """

    def __init__(self, workspace_root: Path, compiled_output_root: Optional[str] = None):
        """
        Initialize resolver.

        Args:
            workspace_root: Workspace root directory
            compiled_output_root: Workspace-relative compiled output root
        """
        self.workspace_root = Path(workspace_root)
        self.compiled_output_root = compiled_output_root

    def relative_path(self, absolute_source: Path) -> str:
        """Workspace-relative forward-slash path; base name when outside"""
        relative = relative_posix(absolute_source, self.workspace_root)
        if relative is None:
            return Path(absolute_source).name
        return relative

    def resolve(self, compiled: CompiledMapping, absolute_source: Path, webapp_root: Path) -> Path:
        """
        Resolve the destination of a matched file and prepare its directory.

        Args:
            compiled: Mapping the file matched
            absolute_source: Absolute path of the source file
            webapp_root: Deployed application directory

        Returns:
            Absolute destination path
        """
        portion = extract_relative_portion(
            compiled.mapping.source_pattern,
            self.relative_path(absolute_source),
            self.compiled_output_root,
        )
        destination = Path(webapp_root) / render_destination(compiled.mapping.destination_template, portion)
        destination.parent.mkdir(parents=True, exist_ok=True)
        return destination
