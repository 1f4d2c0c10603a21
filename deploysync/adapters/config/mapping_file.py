"""
Workspace mapping file (JSON) parsing and template generation
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

from ...core.exceptions import ConfigError
from ...core.logging import get_logger
from ...domain.layout.models import LayoutKind, ProjectLayout
from ...domain.mapping.models import Mapping, MappingOrigin

logger = get_logger(__name__)


@dataclass
class MappingFile:
    """Contents of the workspace mapping file"""
    project_type: Optional[str] = None
    webapp_name: Optional[str] = None
    mappings: List[Mapping] = field(default_factory=list)
    local_overrides: List[Mapping] = field(default_factory=list)


def _parse_entries(entries: Any, origin: MappingOrigin, where: str) -> List[Mapping]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigError(f"{where} must be a list")

    mappings = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"{where}[{index}] must be an object")
        if "source" not in entry:
            raise ConfigError(f"{where}[{index}] is missing 'source'")
        for key in ("extensions", "excludeExtensions"):
            if key in entry and not isinstance(entry[key], list):
                raise ConfigError(f"{where}[{index}].{key} must be a list")
        mappings.append(Mapping.from_dict(entry, origin=origin))
    return mappings


def parse_mapping_data(data: Any) -> MappingFile:
    """
    Validate and convert decoded mapping-file JSON.

    Raises:
        ConfigError: If the structure is not as expected
    """
    if not isinstance(data, dict):
        raise ConfigError("Mapping file must contain a JSON object")

    local_deploy = data.get("localDeploy")
    if local_deploy is None:
        local_deploy = {}
    if not isinstance(local_deploy, dict):
        raise ConfigError("localDeploy must be an object")

    return MappingFile(
        project_type=data.get("projectType"),
        webapp_name=data.get("webappName") or None,
        mappings=_parse_entries(data.get("mappings"), MappingOrigin.SMART, "mappings"),
        local_overrides=_parse_entries(local_deploy.get("mappings"), MappingOrigin.LOCAL, "localDeploy.mappings"),
    )


def load_mapping_file(path: Path) -> MappingFile:
    """
    Load the mapping file; a missing file is an empty one.

    Raises:
        ConfigError: If the file is unreadable or malformed
    """
    if not path.is_file():
        return MappingFile()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read mapping file {path}: {e}") from e
    return parse_mapping_data(data)


def example_local_mapping() -> Mapping:
    """Disabled sample override shipped in templates for plain projects"""
    return Mapping(
        source_pattern="conf",
        destination_template="WEB-INF/classes/conf",
        triggers_reload=True,
        description="Example: copy conf/ into WEB-INF/classes/conf",
        origin=MappingOrigin.LOCAL,
        enabled=False,
    )


def build_template(layout: ProjectLayout) -> Dict[str, Any]:
    """Mapping-file template for a detected layout"""
    local = []
    if layout.kind in (LayoutKind.PLAIN, LayoutKind.ECLIPSE):
        local.append(example_local_mapping().to_dict())
    return {
        "projectType": layout.kind.value,
        "webappName": layout.artifact_name,
        "mappings": [],
        "localDeploy": {"mappings": local},
    }


def write_template(path: Path, layout: ProjectLayout, force: bool = False) -> bool:
    """
    Write a mapping-file template.

    Returns:
        True if written, False if a file already existed and force was not set
    """
    if path.exists() and not force:
        logger.info(f"Mapping file already exists: {path}")
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(build_template(layout), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info(f"Wrote mapping file template: {path}")
    return True
