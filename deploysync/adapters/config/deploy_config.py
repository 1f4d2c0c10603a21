"""
Tiered deploy configuration: descriptor > mapping file > layout defaults
"""
from pathlib import Path

from ...core.exceptions import DescriptorError
from ...core.interfaces import DeployConfigSource
from ...core.logging import get_logger
from ...domain.engine.models import EngineSettings
from ...domain.layout import LayoutKind, ProjectLayout, parse_pom
from ...domain.mapping import ConfigTier, DeployConfig, default_mappings, descriptor_mappings
from .mapping_file import load_mapping_file

logger = get_logger(__name__)


class WorkspaceConfigSource(DeployConfigSource):
    """
    Loads DeployConfig from the workspace.

    Smart mappings come from the first tier that yields any: the parsed
    pom.xml, the mapping file's ``mappings`` list, then layout defaults.
    Local overrides always come from the mapping file.
    """

    def __init__(self, settings: EngineSettings):
        self.settings = settings

    def mapping_file_path(self, root: Path) -> Path:
        return self.settings.resolve_path(self.settings.mapping_file, root)

    def load(self, root: Path, layout: ProjectLayout) -> DeployConfig:
        """
        Build the deploy configuration.

        Raises:
            ConfigError: If the mapping file exists but is malformed
        """
        mapping_file = load_mapping_file(self.mapping_file_path(root))
        artifact_name = layout.artifact_name

        mappings = ()
        tier = ConfigTier.DEFAULTS
        if layout.kind == LayoutKind.MAVEN:
            try:
                descriptor = parse_pom(root / "pom.xml")
                mappings = descriptor_mappings(descriptor)
                artifact_name = descriptor.artifact_name(artifact_name)
                tier = ConfigTier.DESCRIPTOR
            except DescriptorError as e:
                logger.warning(f"{e}; falling back to other mapping sources")

        if not mappings and mapping_file.mappings:
            mappings = tuple(mapping_file.mappings)
            tier = ConfigTier.MAPPING_FILE

        if not mappings:
            mappings = default_mappings(layout)
            tier = ConfigTier.DEFAULTS

        if mapping_file.webapp_name and tier != ConfigTier.DESCRIPTOR:
            artifact_name = mapping_file.webapp_name

        logger.debug(f"Loaded {len(mappings)} {tier.value} mappings, {len(mapping_file.local_overrides)} local")

        return DeployConfig(
            project_type=layout.kind,
            artifact_name=artifact_name,
            mappings=tuple(mappings),
            local_overrides=tuple(mapping_file.local_overrides),
            debounce_window=self.settings.debounce_window,
            tier=tier,
        )
