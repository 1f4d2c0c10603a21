"""
Mapping domain module
"""
from .models import Mapping, MappingOrigin, CompiledMapping, DeployConfig, ConfigTier, DeploySnapshot
from .defaults import default_mappings, descriptor_mappings
from .compiler import (
    NEVER_MATCH,
    glob_to_regex,
    pattern_problem,
    compile_mapping,
    compile_config,
    combine_mappings,
    canonical_local_mapping,
    normalize_local_source,
    normalize_local_destination,
    find_matching_mapping,
)
from .resolver import PathResolver, extract_relative_portion, render_destination

__all__ = [
    "Mapping",
    "MappingOrigin",
    "CompiledMapping",
    "DeployConfig",
    "ConfigTier",
    "DeploySnapshot",
    "default_mappings",
    "descriptor_mappings",
    "NEVER_MATCH",
    "glob_to_regex",
    "pattern_problem",
    "compile_mapping",
    "compile_config",
    "combine_mappings",
    "canonical_local_mapping",
    "normalize_local_source",
    "normalize_local_destination",
    "find_matching_mapping",
    "PathResolver",
    "extract_relative_portion",
    "render_destination",
]
