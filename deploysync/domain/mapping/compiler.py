"""
Pattern compiler: glob translation and mapping precedence

This module reports problems through return values only; callers own
logging.
"""
import os
import posixpath
import re
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ...core.constants import RELATIVE_PLACEHOLDER
from .models import CompiledMapping, DeployConfig, Mapping, MappingOrigin

NEVER_MATCH = re.compile(r"(?!)")

_TOKEN = re.compile(r"\*\*/|\*\*|\*|\?|/")
_DRIVE = re.compile(r"^[A-Za-z]:")


# ============================================================
# Glob translation
# ============================================================

def _separator_classes(windows: bool) -> Tuple[str, str]:
    """(separator, non-separator) regex classes for the host convention"""
    if windows:
        return r"[\\/]", r"[^\\/]"
    return "/", "[^/]"


def pattern_problem(pattern: str) -> Optional[str]:
    """
    Describe why a pattern cannot be compiled.

    Returns:
        Reason string, or None for a well-formed pattern
    """
    if not pattern or not pattern.strip():
        return "empty pattern"
    if "\x00" in pattern:
        return "pattern contains a NUL character"
    if "***" in pattern:
        return "wildcard run longer than '**'"
    if pattern.startswith("/") or _DRIVE.match(pattern):
        return "pattern must be relative to the workspace"
    if ".." in pattern.split("/"):
        return "pattern must not leave the workspace"
    return None


def glob_to_regex(pattern: str, windows: Optional[bool] = None) -> str:
    """
    Translate a glob into anchored regex source.

    Literal text is escaped before wildcards are substituted:
    '**/' matches zero or more whole directories, '**' any run including
    separators, '*' any run within one segment, '?' one non-separator
    character. Every '/' becomes the host separator class.

    Args:
        pattern: Forward-slash glob pattern
        windows: Separator convention; defaults to the host's

    Returns:
        Regex source of the form '^...$'
    """
    if windows is None:
        windows = os.name == "nt"
    sep, not_sep = _separator_classes(windows)

    parts = ["^"]
    position = 0
    for token in _TOKEN.finditer(pattern):
        parts.append(re.escape(pattern[position:token.start()]))
        text = token.group(0)
        if text == "**/":
            parts.append(f"(?:.*{sep})?")
        elif text == "**":
            parts.append(".*")
        elif text == "*":
            parts.append(f"{not_sep}*")
        elif text == "?":
            parts.append(not_sep)
        else:
            parts.append(sep)
        position = token.end()
    parts.append(re.escape(pattern[position:]))
    parts.append("$")
    return "".join(parts)


def compile_mapping(mapping: Mapping, windows: Optional[bool] = None) -> CompiledMapping:
    """
    Compile one mapping.

    A malformed pattern yields a never-matching matcher and a populated
    ``error``; this function does not raise for bad input.
    """
    pattern = mapping.source_pattern.replace("\\", "/")
    segments = tuple(pattern.split("/"))

    problem = pattern_problem(pattern)
    if problem is not None:
        return CompiledMapping(mapping=mapping, matcher=NEVER_MATCH, raw_pattern_segments=segments, error=problem)

    try:
        matcher = re.compile(glob_to_regex(pattern, windows))
    except re.error as e:
        return CompiledMapping(mapping=mapping, matcher=NEVER_MATCH, raw_pattern_segments=segments, error=str(e))

    return CompiledMapping(mapping=mapping, matcher=matcher, raw_pattern_segments=segments)


# ============================================================
# Local override normalization
# ============================================================

def normalize_local_source(source: str) -> str:
    """
    Canonical source pattern for a local override.

    'conf' -> 'conf/**/*'; wildcard patterns and file names with an
    extension are kept; an empty source means the whole workspace.
    """
    normalized = (source or "").replace("\\", "/").lstrip("/")
    if re.search(r"[*?]", normalized):
        return normalized

    normalized = normalized.rstrip("/")
    if not normalized:
        return "**/*"
    if posixpath.splitext(normalized)[1]:
        return normalized
    return f"{normalized}/**/*"


def normalize_local_destination(destination: str) -> str:
    """
    Canonical destination template for a local override.

    'WEB-INF/classes/conf' -> 'WEB-INF/classes/conf/{relative}'
    """
    normalized = (destination or "").replace("\\", "/").lstrip("/")
    if RELATIVE_PLACEHOLDER in normalized:
        return normalized
    normalized = normalized.rstrip("/")
    if not normalized:
        return RELATIVE_PLACEHOLDER
    return f"{normalized}/{RELATIVE_PLACEHOLDER}"


def canonical_local_mapping(mapping: Mapping) -> Mapping:
    """Convert a raw local override into the canonical mapping shape"""
    source = normalize_local_source(mapping.source_pattern)
    destination = normalize_local_destination(mapping.destination_template)
    return replace(
        mapping,
        source_pattern=source,
        destination_template=destination,
        origin=MappingOrigin.LOCAL,
        description=mapping.description or f"Local deploy mapping ({source} -> {destination})",
    )


# ============================================================
# Combination
# ============================================================

def combine_mappings(
    local_overrides: Sequence[Mapping],
    generated: Sequence[Mapping],
) -> Tuple[List[Mapping], List[Mapping]]:
    """
    Merge local overrides ahead of generated mappings.

    A generated mapping whose (source, destination) key was already
    inserted is dropped, so local overrides win. Disabled entries never
    take part.

    Returns:
        (combined mappings, generated mappings that were shadowed)
    """
    combined: List[Mapping] = []
    shadowed: List[Mapping] = []
    seen = set()

    for raw in local_overrides:
        if not raw.enabled:
            continue
        mapping = canonical_local_mapping(raw)
        if mapping.key in seen:
            continue
        seen.add(mapping.key)
        combined.append(mapping)

    for mapping in generated:
        if not mapping.enabled:
            continue
        if mapping.key in seen:
            shadowed.append(mapping)
            continue
        seen.add(mapping.key)
        combined.append(mapping)

    return combined, shadowed


def compile_config(config: DeployConfig, windows: Optional[bool] = None) -> List[CompiledMapping]:
    """
    Compile a deploy configuration into matchers, in precedence order.

    Compiling the same configuration twice yields identical matcher source.

    Args:
        config: Deploy configuration
        windows: Separator convention; defaults to the host's

    Returns:
        Compiled mappings, local overrides first
    """
    combined, _ = combine_mappings(config.local_overrides, config.mappings)
    return [compile_mapping(mapping, windows) for mapping in combined]


# ============================================================
# Matching
# ============================================================

def find_matching_mapping(
    compiled: Sequence[CompiledMapping],
    relative_path: str,
) -> Optional[CompiledMapping]:
    """
    First compiled mapping whose matcher and extension filters accept a path.

    Args:
        compiled: Compiled mappings in precedence order
        relative_path: Workspace-relative path with forward slashes

    Returns:
        Matching mapping, or None
    """
    extension = posixpath.splitext(relative_path)[1]
    for candidate in compiled:
        if not candidate.matches(relative_path):
            continue
        if not candidate.mapping.accepts_extension(extension):
            continue
        return candidate
    return None
