"""
Watch domain models
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class EventKind(str, Enum):
    """Filesystem change kinds"""
    CREATE = "create"
    CHANGE = "change"
    DELETE = "delete"


class Route(str, Enum):
    """Where an accepted event is handled"""
    STATIC = "static"
    COMPILED = "compiled"
    SOURCE = "source"


@dataclass(frozen=True)
class FileEvent:
    """A single filesystem change"""
    path: Path
    kind: EventKind

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.path}"
