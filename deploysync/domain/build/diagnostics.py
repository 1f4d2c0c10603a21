"""
Build output diagnostics extraction
"""
from typing import Iterable, List

from ...core.constants import BUSY_MARKERS, MAVEN_NOISE_MARKERS, GRADLE_NOISE_MARKERS


def _dedupe(lines: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for line in lines:
        if line and line not in seen:
            seen.add(line)
            result.append(line)
    return result


def _noisy(line: str, markers: Iterable[str]) -> bool:
    return any(marker in line for marker in markers)


def mentions_busy(text: str) -> bool:
    """Whether tool output reports a locked file"""
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in BUSY_MARKERS)


def extract_maven_diagnostics(output: str) -> List[str]:
    """
    [ERROR] lines of a Maven run without the tool's generic advice.

    Returns:
        Deduplicated lines in order of appearance, tag removed
    """
    lines = []
    for line in output.splitlines():
        if "[ERROR]" not in line or _noisy(line, MAVEN_NOISE_MARKERS):
            continue
        lines.append(line.replace("[ERROR]", "").strip())
    return _dedupe(lines)


def extract_gradle_diagnostics(output: str) -> List[str]:
    """
    Failure description and compiler errors of a Gradle run.

    Returns:
        Deduplicated lines in order of appearance
    """
    lines = []
    in_failure = False
    for raw in output.splitlines():
        line = raw.strip()
        if line.startswith("* What went wrong:"):
            in_failure = True
            continue
        if line.startswith("* "):
            in_failure = False
            continue
        if _noisy(line, GRADLE_NOISE_MARKERS):
            continue
        if in_failure:
            lines.append(line.lstrip("> ").strip())
        elif line.startswith("e: ") or "error:" in line:
            lines.append(line)
    return _dedupe(lines)


def extract_compiler_diagnostics(output: str) -> List[str]:
    """Non-empty javac output lines, deduplicated"""
    return _dedupe(line.rstrip() for line in output.splitlines() if line.strip())
