"""
Tests for the dual-channel watch scheduler
"""
import json
import logging
from pathlib import Path
from typing import Iterator, List

import pytest

from deploysync.core.exceptions import WatchError
from deploysync.core.interfaces import EventSource
from deploysync.domain.watch import (
    EventKind,
    FileEvent,
    Route,
    WatchScheduler,
    compile_bypass_patterns,
    is_bypassed,
    is_hidden_or_transient,
    plan_watch_roots,
)

from conftest import write


@pytest.fixture
def maven_root(workspaces):
    return workspaces.maven()


@pytest.fixture
def snapshot(make_service, maven_root, webapp_root):
    return make_service(maven_root, webapp_root).activate()


@pytest.fixture
def make_scheduler(snapshot, server, telemetry, clock):
    created = []

    def factory(**kwargs) -> WatchScheduler:
        scheduler = WatchScheduler(
            kwargs.pop("snapshot", snapshot),
            server=server,
            telemetry=telemetry,
            timer_factory=clock,
            **kwargs,
        )
        created.append(scheduler)
        return scheduler

    yield factory
    for scheduler in created:
        scheduler.stop()


class ListEventSource(EventSource):
    """Replays a fixed list of events"""

    def __init__(self, events: List[FileEvent]):
        self._events = events
        self.roots: List[Path] = []
        self.rescheduled: List[List[Path]] = []
        self.closed = False

    def start(self, roots: List[Path]) -> None:
        self.roots = list(roots)

    def reschedule(self, roots: List[Path]) -> None:
        self.roots = list(roots)
        self.rescheduled.append(list(roots))

    def events(self) -> Iterator[FileEvent]:
        yield from self._events

    def close(self) -> None:
        self.closed = True


# ============================================================
# Filters
# ============================================================

@pytest.mark.parametrize("name", ["index - Copy.html", "site副本.css", "logo コピー.png", "файл копия.txt"])
def test_default_bypass_markers(name):
    assert is_bypassed(Path(name), compile_bypass_patterns())


def test_bypass_markers_are_literal_and_trimmed():
    patterns = compile_bypass_patterns(" backup , , a.b ")

    assert is_bypassed(Path("site.BACKUP.css"), patterns)
    assert is_bypassed(Path("a.b.txt"), patterns)
    assert not is_bypassed(Path("axb.txt"), patterns)


@pytest.mark.parametrize("path", [".DS_Store", "index.html~", "Foo.class.tmp", "out.TEMP", "web/.git/config", "a/.svn/entries"])
def test_hidden_and_transient_files(path):
    assert is_hidden_or_transient(Path(path))


def test_regular_files_are_not_hidden():
    assert not is_hidden_or_transient(Path("web/css/site.css"))


# ============================================================
# Static channel
# ============================================================

def test_static_file_is_copied_immediately(make_scheduler, maven_root, webapp_root, telemetry):
    source = write(maven_root / "src/main/webapp/css/site.css", "body {}")

    route = make_scheduler().handle_event(FileEvent(source, EventKind.CREATE))

    assert route == Route.STATIC
    assert (webapp_root / "css/site.css").read_text() == "body {}"
    matched = telemetry.get_events("mapping.matched")
    assert matched[0].metadata["channel"] == "static"
    assert matched[0].metadata["origin"] == "smart"


def test_resource_file_goes_to_web_inf_classes(make_scheduler, maven_root, webapp_root):
    source = maven_root / "src/main/resources/app.properties"

    make_scheduler().handle_event(FileEvent(source, EventKind.CHANGE))

    assert (webapp_root / "WEB-INF/classes/app.properties").is_file()


def test_bypassed_and_hidden_files_are_rejected(make_scheduler, maven_root, webapp_root):
    scheduler = make_scheduler(bypass_patterns="copy,backup")
    copy = write(maven_root / "src/main/webapp/index - Copy.html")
    backup = write(maven_root / "src/main/webapp/site.backup.css")
    hidden = write(maven_root / "src/main/webapp/.hidden.html")

    for path in (copy, backup, hidden):
        assert scheduler.handle_event(FileEvent(path, EventKind.CREATE)) is None

    assert not webapp_root.exists()


def test_delete_event_leaves_destination_in_place(make_scheduler, maven_root, webapp_root):
    scheduler = make_scheduler()
    source = maven_root / "src/main/webapp/index.html"
    scheduler.handle_event(FileEvent(source, EventKind.CREATE))
    source.unlink()

    scheduler.handle_event(FileEvent(source, EventKind.DELETE))

    assert (webapp_root / "index.html").is_file()


def test_missing_and_unmatched_sources_are_skipped(make_scheduler, maven_root, webapp_root, telemetry):
    scheduler = make_scheduler()

    assert scheduler.deploy_file(FileEvent(maven_root / "src/main/webapp/gone.html", EventKind.CHANGE)) is None
    assert scheduler.deploy_file(FileEvent(write(maven_root / "README.md"), EventKind.CHANGE)) is None
    assert telemetry.get_events("mapping.matched") == []


def test_static_worker_thread_processes_queued_events(make_scheduler, maven_root, webapp_root):
    scheduler = make_scheduler()
    scheduler.start()
    source = write(maven_root / "src/main/webapp/app.js", "1")

    scheduler.handle_event(FileEvent(source, EventKind.CREATE))
    scheduler.stop()

    assert (webapp_root / "app.js").read_text() == "1"


def test_event_source_is_consumed(make_scheduler, maven_root, webapp_root):
    scheduler = make_scheduler()
    source = write(maven_root / "src/main/webapp/page.html", "page")
    events = ListEventSource([FileEvent(source, EventKind.CREATE)])

    scheduler.start(events)
    scheduler.stop()

    assert events.closed
    assert maven_root / "src/main/webapp" in events.roots
    assert maven_root / "target/classes" in events.roots
    assert (webapp_root / "page.html").read_text() == "page"


class FailingRescheduleSource(ListEventSource):
    def reschedule(self, roots: List[Path]) -> None:
        raise WatchError("inotify watch limit reached")


def test_snapshot_update_moves_watch_roots(make_scheduler, make_service, workspaces, maven_root, webapp_root):
    scheduler = make_scheduler()
    events = ListEventSource([])
    scheduler.start(events)
    gradle_root = workspaces.gradle()

    scheduler.update_snapshot(make_service(gradle_root, webapp_root).activate())

    assert len(events.rescheduled) == 1
    assert gradle_root / "build/classes/java/main" in events.roots
    assert maven_root / "target/classes" not in events.roots


def test_failed_reschedule_keeps_previous_roots(make_scheduler, make_service, workspaces, maven_root, webapp_root):
    scheduler = make_scheduler()
    events = FailingRescheduleSource([])
    scheduler.start(events)
    updated = make_service(workspaces.gradle(), webapp_root).activate()

    scheduler.update_snapshot(updated)

    assert scheduler.snapshot is updated
    assert maven_root / "target/classes" in events.roots


# ============================================================
# Compiled channel
# ============================================================

def write_classes(root: Path, *names: str) -> List[Path]:
    return [write(root / "target/classes/com/example" / name, name) for name in names]


def test_compiled_classes_are_batched(make_scheduler, maven_root, webapp_root, telemetry, clock):
    scheduler = make_scheduler()
    files = write_classes(maven_root, "Foo.class", "Foo$1.class")

    routes = [scheduler.handle_event(FileEvent(path, EventKind.CHANGE)) for path in files]

    assert routes == [Route.COMPILED, Route.COMPILED]
    assert scheduler.pending_count == 2
    assert not (webapp_root / "WEB-INF/classes/com/example/Foo.class").exists()

    clock.advance(0.3)

    assert (webapp_root / "WEB-INF/classes/com/example/Foo.class").is_file()
    assert (webapp_root / "WEB-INF/classes/com/example/Foo$1.class").is_file()
    executed = telemetry.get_events("batch.executed")
    assert len(executed) == 1
    assert executed[0].metadata == {"files": 2, "deployed": 2}
    assert [metric.value for metric in telemetry.get_metrics() if metric.name == "batch.size"] == [2.0]


def test_reload_requested_after_reloading_batch(make_scheduler, maven_root, server, clock):
    scheduler = make_scheduler(reload_on_sync=True)
    for path in write_classes(maven_root, "Foo.class"):
        scheduler.handle_event(FileEvent(path, EventKind.CREATE))

    clock.advance(0.3)

    assert server.calls == ["reload"]


def test_no_reload_unless_enabled(make_scheduler, maven_root, server, clock):
    scheduler = make_scheduler()
    for path in write_classes(maven_root, "Foo.class"):
        scheduler.handle_event(FileEvent(path, EventKind.CREATE))

    clock.advance(0.3)

    assert server.calls == []


def test_stop_without_flush_drops_pending(make_scheduler, maven_root, webapp_root, clock):
    scheduler = make_scheduler()
    for path in write_classes(maven_root, "Foo.class"):
        scheduler.handle_event(FileEvent(path, EventKind.CREATE))

    scheduler.stop(flush=False)
    clock.advance(1)

    assert not (webapp_root / "WEB-INF/classes/com/example/Foo.class").exists()


def test_stop_with_flush_drains_pending(make_scheduler, maven_root, webapp_root):
    scheduler = make_scheduler()
    for path in write_classes(maven_root, "Foo.class"):
        scheduler.handle_event(FileEvent(path, EventKind.CREATE))

    scheduler.stop(flush=True)

    assert (webapp_root / "WEB-INF/classes/com/example/Foo.class").is_file()


# ============================================================
# Source-edit probes
# ============================================================

def test_source_edit_probes_output_root(make_scheduler, maven_root, webapp_root, clock):
    scheduler = make_scheduler()
    source = maven_root / "src/main/java/com/example/Foo.java"

    assert scheduler.handle_event(FileEvent(source, EventKind.CHANGE)) == Route.SOURCE
    write_classes(maven_root, "Foo.class", "Foo$Inner.class")

    clock.advance(0.5)
    assert scheduler.pending_count == 2

    clock.advance(0.3)
    assert (webapp_root / "WEB-INF/classes/com/example/Foo$Inner.class").is_file()


def test_stale_class_does_not_end_the_rescan_series(make_scheduler, maven_root, webapp_root, clock):
    scheduler = make_scheduler()
    source = maven_root / "src/main/java/com/example/Foo.java"
    write_classes(maven_root, "Foo.class")

    scheduler.handle_event(FileEvent(source, EventKind.CHANGE))
    clock.advance(0.8)
    assert (webapp_root / "WEB-INF/classes/com/example/Foo.class").read_text() == "Foo.class"

    write(maven_root / "target/classes/com/example/Foo.class", "recompiled")
    write_classes(maven_root, "Foo$Inner.class")
    clock.advance(0.6)

    assert (webapp_root / "WEB-INF/classes/com/example/Foo.class").read_text() == "recompiled"
    assert (webapp_root / "WEB-INF/classes/com/example/Foo$Inner.class").is_file()


def test_exhausted_probes_are_silent(make_scheduler, maven_root, webapp_root, telemetry, clock):
    scheduler = make_scheduler()
    source = maven_root / "src/main/java/com/example/Foo.java"

    scheduler.handle_event(FileEvent(source, EventKind.CHANGE))
    clock.advance(5)

    assert scheduler.pending_count == 0
    assert telemetry.get_events("batch.executed") == []


def test_deleted_source_schedules_nothing(make_scheduler, maven_root, clock):
    scheduler = make_scheduler()

    scheduler.handle_event(FileEvent(maven_root / "src/main/java/com/example/Foo.java", EventKind.DELETE))

    assert clock.armed == []


# ============================================================
# Watch roots
# ============================================================

def test_plan_watch_roots_for_maven(snapshot, maven_root):
    static_roots, compiled_roots = plan_watch_roots(snapshot)

    assert static_roots == [
        maven_root / "src/main/webapp",
        maven_root / "src/main/resources",
        maven_root / "src/main/java",
    ]
    assert compiled_roots == [maven_root / "target/classes"]


def test_missing_roots_are_skipped_with_warning(make_service, workspaces, webapp_root, caplog):
    root = workspaces.maven()
    (root / "src/main/resources/app.properties").unlink()
    (root / "src/main/resources").rmdir()
    snapshot = make_service(root, webapp_root).activate()

    with caplog.at_level(logging.WARNING):
        static_roots, _ = plan_watch_roots(snapshot)

    assert root / "src/main/resources" not in static_roots
    assert "src/main/resources" in caplog.text


def test_local_mapping_roots_are_watched(make_service, workspaces, webapp_root):
    root = workspaces.maven()
    write(root / "conf/db.properties", "url=jdbc")
    write(root / ".deploysync/mappings.json", json.dumps({
        "localDeploy": {"mappings": [{"source": "conf", "destination": "WEB-INF/classes/conf"}]},
    }))
    snapshot = make_service(root, webapp_root).activate()

    static_roots, _ = plan_watch_roots(snapshot)

    assert root / "conf" in static_roots
