"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an external command"""
    args: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def output(self) -> str:
        """Combined stdout and stderr"""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


class CommandRunner(ABC):
    """External command execution interface"""

    @abstractmethod
    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Run a command to completion and capture its output"""
        pass


class ServerController(ABC):
    """
    Host server collaborator.

    The engine never manages the server lifecycle itself; it only signals
    around full deploys and asks for a forced kill when files stay locked.
    """

    @abstractmethod
    def ensure_stopped(self) -> None:
        """Make sure the server does not hold the target before a full build"""
        pass

    @abstractmethod
    def reload(self) -> None:
        """Ask the server to reload the deployed application"""
        pass

    @abstractmethod
    def notify_deployed(self, artifact_path: Path) -> None:
        """Tell the server a new artifact is in place"""
        pass

    @abstractmethod
    def kill(self) -> bool:
        """Forcibly terminate processes that may hold file locks"""
        pass


class DeployConfigSource(ABC):
    """Loads the deploy configuration for a detected layout"""

    @abstractmethod
    def load(self, root: Path, layout: Any) -> Any:
        """Return the DeployConfig for a workspace"""
        pass


class EventSource(ABC):
    """Typed stream of filesystem events"""

    @abstractmethod
    def start(self, roots: List[Path]) -> None:
        """Begin observing the given roots"""
        pass

    @abstractmethod
    def reschedule(self, roots: List[Path]) -> None:
        """Replace the observed roots of a started source"""
        pass

    @abstractmethod
    def events(self) -> Iterator[Any]:
        """Yield FileEvent items until the source is closed"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop observing and end the event stream"""
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def choose(self, message: str, choices: List[str], default: str) -> str:
        """Ask the user to pick one of several choices"""
        pass
