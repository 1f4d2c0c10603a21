"""
Engine domain module
"""
from .models import EngineSettings, STRATEGY_CHOICES
from .service import DeploySyncService, compiled_output_override, resolve_encoding

__all__ = [
    "EngineSettings",
    "STRATEGY_CHOICES",
    "DeploySyncService",
    "compiled_output_override",
    "resolve_encoding",
]
