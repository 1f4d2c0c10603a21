"""
Output-root probes after a source edit

A source change does not tell us when an external compiler finishes, so the
output root is probed several times at increasing delays and once more with
a wider net. Found class files are fed into the compiled-artifact batch.
"""
import re
import threading
import time
from functools import partial
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ...core.constants import (
    COMPILED_EXTENSION,
    RESCAN_PROBE_DELAYS,
    COMPREHENSIVE_SCAN_DELAY,
    PACKAGE_CLASS_WINDOW,
    DEPENDENT_CLASS_WINDOW,
)
from ...core.logging import get_logger
from .batch import TimerFactory, daemon_timer

logger = get_logger(__name__)

_PACKAGE_DECLARATION = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)


def _recent(files: Iterable[Path], window: float, now: float) -> List[Path]:
    threshold = now - window
    recent = []
    for file in files:
        try:
            if file.stat().st_mtime > threshold:
                recent.append(file)
        except OSError:
            continue
    return recent


def _unique_sorted(files: Iterable[Path]) -> List[Path]:
    return sorted(set(files))


def read_package(source_file: Path) -> Optional[str]:
    """Package declared by a Java source file, as a relative directory"""
    try:
        content = source_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Cannot read {source_file}: {e}")
        return None
    match = _PACKAGE_DECLARATION.search(content)
    if not match:
        return None
    return match.group(1).replace(".", "/")


def find_compiled_classes(output_root: Path, class_name: str, now: Optional[float] = None) -> List[Path]:
    """
    Class files produced for one source class.

    Includes the class itself, its nested and anonymous classes, and
    classes in the same directory that were modified recently.
    """
    if not output_root.is_dir():
        return []
    now = time.time() if now is None else now

    direct = list(output_root.rglob(f"{class_name}{COMPILED_EXTENSION}"))
    direct.extend(output_root.rglob(f"{class_name}$*{COMPILED_EXTENSION}"))
    if not direct:
        return []

    matches = set(direct)
    main_classes = [path for path in direct if path.name == f"{class_name}{COMPILED_EXTENSION}"]
    if main_classes:
        package_dir = sorted(main_classes)[0].parent
        matches.update(_recent(package_dir.glob(f"*{COMPILED_EXTENSION}"), PACKAGE_CLASS_WINDOW, now))
    return _unique_sorted(matches)


def comprehensive_scan(
    output_root: Path,
    class_name: str,
    source_file: Optional[Path] = None,
    now: Optional[float] = None,
) -> List[Path]:
    """
    Wide scan for classes that may have been recompiled with a source.

    Adds name-containing classes, recent classes in the declared package and
    any class modified within the dependent-class window.
    """
    if not output_root.is_dir():
        return []
    now = time.time() if now is None else now

    matches = set(find_compiled_classes(output_root, class_name, now))
    matches.update(output_root.rglob(f"*{class_name}*{COMPILED_EXTENSION}"))

    package = read_package(source_file) if source_file is not None else None
    if package:
        package_dir = output_root / package
        if package_dir.is_dir():
            matches.update(_recent(package_dir.glob(f"*{COMPILED_EXTENSION}"), PACKAGE_CLASS_WINDOW, now))

    matches.update(_recent(output_root.rglob(f"*{COMPILED_EXTENSION}"), DEPENDENT_CLASS_WINDOW, now))
    return _unique_sorted(matches)


class _ProbeRun:
    """Timers and outcome of one source edit"""

    def __init__(self):
        self.timers: List = []


class SourceRescanProbe:
    """
    Schedules probes of the compiled output root after a source edit.

    Every probe of a series runs even after an earlier one found classes,
    since the first hit may be a stale class from a previous compile. A new
    edit of the same source cancels the probes still pending for it.
    Exhausting every probe without a match is not an error.
    """

    def __init__(
        self,
        on_found: Callable[[List[Path]], None],
        timer_factory: Optional[TimerFactory] = None,
        delays: Sequence[float] = RESCAN_PROBE_DELAYS,
        comprehensive_delay: float = COMPREHENSIVE_SCAN_DELAY,
    ):
        self._on_found = on_found
        self._timer_factory = timer_factory or daemon_timer
        self._delays = tuple(delays)
        self._comprehensive_delay = comprehensive_delay
        self._runs: Dict[Path, _ProbeRun] = {}
        self._lock = threading.Lock()

    def schedule(self, source_file: Path, output_root: Path) -> None:
        """Schedule the probe series for one edited source file"""
        run = _ProbeRun()
        with self._lock:
            previous = self._runs.pop(source_file, None)
            if previous is not None:
                for timer in previous.timers:
                    timer.cancel()
            self._runs[source_file] = run

            for delay in self._delays:
                run.timers.append(self._timer_factory(
                    delay, partial(self._probe, run, source_file, output_root, False)
                ))
            run.timers.append(self._timer_factory(
                self._comprehensive_delay, partial(self._probe, run, source_file, output_root, True)
            ))
            for timer in run.timers:
                timer.start()

    def _probe(self, run: _ProbeRun, source_file: Path, output_root: Path, comprehensive: bool) -> None:
        class_name = source_file.stem
        with self._lock:
            if self._runs.get(source_file) is not run:
                return
            if comprehensive:
                del self._runs[source_file]

        try:
            if comprehensive:
                found = comprehensive_scan(output_root, class_name, source_file)
            else:
                found = find_compiled_classes(output_root, class_name)
        except OSError as e:
            logger.debug(f"Probe for {class_name} failed: {e}")
            return

        if not found:
            logger.debug(f"Probe for {class_name}: no compiled classes yet")
            return

        logger.debug(f"Probe for {class_name} found {len(found)} class files")
        self._on_found(found)

    def cancel_all(self) -> None:
        """Cancel every pending probe"""
        with self._lock:
            runs = list(self._runs.values())
            self._runs.clear()
        for run in runs:
            for timer in run.timers:
                timer.cancel()
