"""
Path and platform helpers
"""
import os
import sys
from enum import Enum
from pathlib import Path, PurePath
from typing import Iterable, List, Optional, Union

PathLike = Union[str, PurePath]


class Platform(str, Enum):
    """Supported host platforms"""
    WINDOWS = "windows"
    POSIX = "posix"


def current_platform() -> Platform:
    """Detect the host platform"""
    if sys.platform.startswith("win"):
        return Platform.WINDOWS
    return Platform.POSIX


def to_posix(path: PathLike) -> str:
    """Normalize a path string to forward slashes"""
    text = str(path)
    if os.sep != "/":
        text = text.replace(os.sep, "/")
    return text.replace("\\", "/")


def relative_posix(path: PathLike, root: PathLike) -> Optional[str]:
    """
    Express a path relative to root with forward slashes.

    Returns:
        Relative path, or None when path is not under root
    """
    try:
        return to_posix(Path(path).relative_to(Path(root)))
    except ValueError:
        return None


def is_within(path: PathLike, root: PathLike) -> bool:
    """Check whether path equals root or lives below it"""
    return relative_posix(path, root) is not None


def collapse_nested_roots(roots: Iterable[Path]) -> List[Path]:
    """
    Drop roots contained in another root, keeping first-seen order.

    A recursive watch on a parent already reports events for its children.
    """
    unique: List[Path] = []
    for root in roots:
        if root not in unique:
            unique.append(root)

    return [
        root for root in unique
        if not any(other != root and is_within(root, other) for other in unique)
    ]


def literal_prefix(pattern: str) -> str:
    """
    Literal directory prefix of a glob pattern.

    'target/classes/**/*.class' -> 'target/classes'
    'conf/*.xml' -> 'conf'
    'web.xml' -> ''
    """
    segments = []
    for segment in to_posix(pattern).split("/"):
        if any(ch in segment for ch in "*?["):
            break
        segments.append(segment)
    else:
        # No wildcard at all: the last segment names a file
        segments = segments[:-1]
    return "/".join(segment for segment in segments if segment)
