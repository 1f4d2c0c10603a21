"""
Event acceptance filters
"""
import re
from pathlib import Path
from typing import List, Optional, Sequence

from ...core.constants import DEFAULT_BYPASS_PATTERNS, TRANSIENT_SUFFIXES, IGNORED_DIR_NAMES


def compile_bypass_patterns(raw: Optional[str] = DEFAULT_BYPASS_PATTERNS) -> List[re.Pattern]:
    """
    Compile comma-separated bypass markers.

    Each marker is a literal, case-insensitive substring of the file name.
    """
    patterns = []
    for marker in (raw or "").split(","):
        marker = marker.strip()
        if marker:
            patterns.append(re.compile(re.escape(marker), re.IGNORECASE))
    return patterns


def is_bypassed(path: Path, patterns: Sequence[re.Pattern]) -> bool:
    """Check the base name against bypass markers"""
    name = Path(path).name
    return any(pattern.search(name) for pattern in patterns)


def is_hidden_or_transient(path: Path) -> bool:
    """Hidden files, editor/compiler temporaries and VCS metadata"""
    path = Path(path)
    name = path.name
    if name.startswith("."):
        return True
    if name.lower().endswith(TRANSIENT_SUFFIXES):
        return True
    return any(part in IGNORED_DIR_NAMES for part in path.parts)
