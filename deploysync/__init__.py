"""
DeploySync - incremental deploy synchronizer for Java web projects
"""

__version__ = "0.1.0"

from .core.exceptions import DeploySyncError
from .domain.engine import DeploySyncService, EngineSettings

__all__ = ["__version__", "DeploySyncError", "DeploySyncService", "EngineSettings"]
