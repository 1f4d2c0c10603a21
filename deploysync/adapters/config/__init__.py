"""
Configuration adapters
"""
from .loader import ConfigLoader
from .mapping_file import MappingFile, load_mapping_file, parse_mapping_data, build_template, write_template
from .deploy_config import WorkspaceConfigSource

__all__ = [
    "ConfigLoader",
    "MappingFile",
    "load_mapping_file",
    "parse_mapping_data",
    "build_template",
    "write_template",
    "WorkspaceConfigSource",
]
