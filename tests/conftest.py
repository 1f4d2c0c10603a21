"""
Shared fixtures: workspace builders and fake collaborators
"""
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

from deploysync.core.interfaces import CommandResult, CommandRunner, ServerController
from deploysync.core.telemetry import Telemetry
from deploysync.adapters.config import WorkspaceConfigSource
from deploysync.domain.engine import DeploySyncService, EngineSettings


POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.example</groupId>
  <artifactId>shop</artifactId>
  <version>1.0</version>
  <packaging>war</packaging>
</project>
"""

ECLIPSE_CLASSPATH = """<?xml version="1.0" encoding="UTF-8"?>
<classpath>
  <classpathentry kind="src" path="src/java"/>
  <classpathentry kind="con" path="org.eclipse.jdt.launching.JRE_CONTAINER"/>
  <classpathentry kind="output" path="build/classes"/>
</classpath>
"""


def write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class WorkspaceBuilder:
    """Creates sample Java web workspaces under a temporary directory"""

    def __init__(self, base: Path):
        self.base = base

    def maven(self, name: str = "shop", pom: str = POM) -> Path:
        root = self.base / name
        write(root / "pom.xml", pom)
        write(root / "src/main/java/com/example/Foo.java", "package com.example;\npublic class Foo {}\n")
        write(root / "src/main/webapp/index.html", "<html></html>")
        write(root / "src/main/webapp/WEB-INF/web.xml", "<web-app/>")
        write(root / "src/main/resources/app.properties", "name=shop\n")
        (root / "target/classes/com/example").mkdir(parents=True)
        return root

    def gradle(self, name: str = "inventory-dir", project_name: Optional[str] = "inventory") -> Path:
        root = self.base / name
        write(root / "build.gradle", "plugins { id 'war' }\n")
        if project_name:
            write(root / "settings.gradle", f"rootProject.name = '{project_name}'\n")
        write(root / "src/main/java/com/example/Bar.java", "package com.example;\npublic class Bar {}\n")
        write(root / "src/main/webapp/index.jsp", "<%= 1 %>")
        (root / "build/classes/java/main").mkdir(parents=True)
        return root

    def eclipse(self, name: str = "legacy") -> Path:
        root = self.base / name
        write(root / ".classpath", ECLIPSE_CLASSPATH)
        write(root / "src/java/com/example/Baz.java", "package com.example;\npublic class Baz {}\n")
        write(root / "WebContent/index.html", "<html></html>")
        (root / "build/classes").mkdir(parents=True)
        return root

    def plain(self, name: str = "plain", web_root: str = "web") -> Path:
        root = self.base / name
        write(root / "src/com/example/Qux.java", "package com.example;\npublic class Qux {}\n")
        write(root / web_root / "index.html", "<html></html>")
        (root / "bin").mkdir(parents=True)
        return root


@pytest.fixture
def workspaces(tmp_path: Path) -> WorkspaceBuilder:
    return WorkspaceBuilder(tmp_path.resolve())


@pytest.fixture
def webapp_root(tmp_path: Path) -> Path:
    return tmp_path.resolve() / "tomcat" / "webapps" / "shop"


# ============================================================
# Fake collaborators
# ============================================================

class FakeRunner(CommandRunner):
    """
    Records commands and answers them from a handler.

    The handler receives (args, cwd) and returns a CommandResult; without one
    every command succeeds with no output.
    """

    def __init__(self, handler: Optional[Callable[[List[str], Optional[Path]], CommandResult]] = None):
        self.handler = handler
        self.calls: List[List[str]] = []

    def run(self, args: Sequence[str], cwd: Optional[Path] = None, timeout: Optional[float] = None) -> CommandResult:
        args = [str(arg) for arg in args]
        self.calls.append(args)
        if self.handler is not None:
            return self.handler(args, cwd)
        return CommandResult(args=tuple(args), returncode=0)


class RecordingServer(ServerController):
    """Server controller that records every call"""

    def __init__(self):
        self.calls: List[str] = []
        self.deployed: List[Path] = []

    def ensure_stopped(self) -> None:
        self.calls.append("ensure_stopped")

    def reload(self) -> None:
        self.calls.append("reload")

    def notify_deployed(self, artifact_path: Path) -> None:
        self.calls.append("notify_deployed")
        self.deployed.append(artifact_path)

    def kill(self) -> bool:
        self.calls.append("kill")
        return True


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def server() -> RecordingServer:
    return RecordingServer()


@pytest.fixture
def telemetry() -> Telemetry:
    return Telemetry()


# ============================================================
# Manual timers
# ============================================================

class ManualTimer:
    def __init__(self, clock: "ManualClock", interval: float, function: Callable[[], None]):
        self.clock = clock
        self.interval = interval
        self.function = function
        self.deadline: Optional[float] = None
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.deadline = self.clock.now + self.interval
        self.clock.timers.append(self)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Timer factory whose timers only fire when the clock is advanced"""

    def __init__(self):
        self.now = 0.0
        self.timers: List[ManualTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> ManualTimer:
        return ManualTimer(self, interval, function)

    @property
    def armed(self) -> List[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (timer for timer in self.armed if timer.deadline <= target + 1e-9),
                key=lambda timer: timer.deadline,
            )
            if not due:
                break
            timer = due[0]
            self.now = timer.deadline
            timer.fired = True
            timer.function()
        self.now = target


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


# ============================================================
# Engine wiring
# ============================================================

@pytest.fixture
def make_service(runner, server, telemetry, clock):
    """Build a DeploySyncService over fake collaborators"""

    def factory(root: Path, target: Optional[Path] = None, **settings) -> DeploySyncService:
        engine_settings = EngineSettings(target_dir=str(target) if target else None, **settings)
        engine_settings.validate()
        return DeploySyncService(
            root,
            engine_settings,
            config_source=WorkspaceConfigSource(engine_settings),
            server=server,
            runner=runner,
            telemetry=telemetry,
            timer_factory=clock,
        )

    return factory
