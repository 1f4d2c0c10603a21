"""
Build strategies: local compile, Maven, Gradle
"""
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from ...core.constants import (
    ARCHIVE_EXTENSION,
    CLASSES_DESTINATION,
    LIB_DESTINATION,
    PROTECTED_TARGET_DIRS,
    SOURCE_EXTENSION,
)
from ...core.exceptions import BuildError, ConfigError, ExternalToolError, ResourceBusyError
from ...core.interfaces import CommandResult, PromptProvider
from ...core.logging import get_logger
from ...core.utils import Platform, current_platform, literal_prefix
from ..layout.detector import has_maven_descriptor, has_gradle_descriptor
from .diagnostics import (
    extract_compiler_diagnostics,
    extract_gradle_diagnostics,
    extract_maven_diagnostics,
    mentions_busy,
)
from .fs_sync import busy_guard, install_archive, reconciling_sync, reset_directory
from .models import BuildContext, BuildStrategy

logger = get_logger(__name__)


# ============================================================
# Strategy selection
# ============================================================

def available_strategies(root: Path) -> List[BuildStrategy]:
    """Descriptor-backed strategies present in a workspace"""
    candidates = []
    if has_maven_descriptor(root):
        candidates.append(BuildStrategy.MAVEN)
    if has_gradle_descriptor(root):
        candidates.append(BuildStrategy.GRADLE)
    return candidates


def _parse_strategy(value: str) -> BuildStrategy:
    try:
        return BuildStrategy(value)
    except ValueError as e:
        choices = ", ".join(["auto"] + [s.value for s in BuildStrategy])
        raise ConfigError(f"Invalid build strategy: {value}, must be one of {choices}") from e


def resolve_strategy(
    root: Path,
    requested: Optional[str] = "auto",
    preferred: Optional[str] = "auto",
    prompt: Optional[PromptProvider] = None,
) -> BuildStrategy:
    """
    Decide which strategy a deploy uses.

    An explicit request wins. For 'auto' the configured preference is used
    when its descriptor exists; a single descriptor decides on its own;
    several are resolved by the prompt provider (Maven by default); none
    means a local build.

    Raises:
        ConfigError: If a strategy name is unknown
    """
    requested = (requested or "auto").lower()
    if requested != "auto":
        return _parse_strategy(requested)

    candidates = available_strategies(root)
    preferred = (preferred or "auto").lower()
    if preferred != "auto":
        preference = _parse_strategy(preferred)
        if preference == BuildStrategy.LOCAL or preference in candidates:
            return preference

    if not candidates:
        return BuildStrategy.LOCAL
    if len(candidates) == 1 or prompt is None:
        return candidates[0]

    choice = prompt.choose(
        "Multiple build descriptors found; choose a build strategy",
        [candidate.value for candidate in candidates],
        default=candidates[0].value,
    )
    return _parse_strategy(choice)


# ============================================================
# Helpers
# ============================================================

def tool_command(root: Path, wrapper_posix: str, wrapper_windows: str, executable: str) -> List[str]:
    """Prefer a project wrapper script, then the tool on PATH"""
    platform = current_platform()
    if platform == Platform.WINDOWS:
        wrapper = root / wrapper_windows
        if wrapper.is_file():
            return [str(wrapper)]
    elif platform == Platform.POSIX:
        wrapper = root / wrapper_posix
        if wrapper.is_file():
            if os.access(wrapper, os.X_OK):
                return [str(wrapper)]
            return ["sh", str(wrapper)]
    return [shutil.which(executable) or executable]


def locate_archive(directory: Path, artifact_name: str) -> Path:
    """
    Find the archive a build produced.

    Raises:
        BuildError: If the directory holds no archive
    """
    preferred = directory / f"{artifact_name}{ARCHIVE_EXTENSION}"
    if preferred.is_file():
        return preferred
    candidates = sorted(directory.glob(f"*{ARCHIVE_EXTENSION}")) if directory.is_dir() else []
    if not candidates:
        raise BuildError(f"No {ARCHIVE_EXTENSION} archive found in {directory}")
    return candidates[0]


def _check_result(result: CommandResult, tool: str, diagnostics: List[str]) -> None:
    if result.returncode == 0:
        return
    if mentions_busy(result.output):
        raise ResourceBusyError(f"{tool} reported a locked file")
    raise ExternalToolError(
        f"{tool} exited with code {result.returncode}",
        diagnostics=diagnostics,
        returncode=result.returncode,
    )


def _quote_argfile_entry(path: Path) -> str:
    text = str(path).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


class BuildRunner(ABC):
    """One way of producing the deployed application"""

    strategy: BuildStrategy

    @abstractmethod
    def run(self, context: BuildContext) -> Path:
        """
        Build and place the application in the target directory.

        Returns:
            Path of the deployed artifact

        Raises:
            ResourceBusyError: If a file stays locked
            ExternalToolError: If the compiler or build tool fails
            BuildError: If a precondition fails
        """
        pass


# ============================================================
# Local
# ============================================================

class LocalBuild(BuildRunner):
    """
    Compile sources directly and sync web resources.

    Steps: mirror the web root into the target (keeping classes/ and lib/),
    recreate WEB-INF/classes, compile every source in one javac call, copy
    local mappings, then mirror the project lib/ into WEB-INF/lib.
    """

    strategy = BuildStrategy.LOCAL

    def run(self, context: BuildContext) -> Path:
        root = context.workspace_root
        layout = context.snapshot.layout
        target = context.target_dir

        web_root = self.find_web_root(context)
        logger.info(f"Syncing {web_root} -> {target}")
        reconciling_sync(web_root, target, PROTECTED_TARGET_DIRS)

        classes_dir = target / CLASSES_DESTINATION
        reset_directory(classes_dir)

        sources = self.find_sources(root, layout.source_roots)
        if sources:
            logger.info(f"Compiling {len(sources)} source files")
            self.compile(context, sources, classes_dir, web_root)
        else:
            logger.info("No Java sources found; skipping compilation")

        copied = apply_local_overlay(context)
        if copied:
            logger.info(f"Copied {copied} files from local mappings")

        lib_dir = root / "lib"
        if lib_dir.is_dir():
            reconciling_sync(lib_dir, target / LIB_DESTINATION)

        return target

    def find_web_root(self, context: BuildContext) -> Path:
        for candidate in context.snapshot.layout.web_resource_roots:
            path = context.workspace_root / candidate
            if path.is_dir():
                return path
        roots = ", ".join(context.snapshot.layout.web_resource_roots)
        raise BuildError(f"No web resource directory found (looked for: {roots})")

    def find_sources(self, root: Path, source_roots: Sequence[str]) -> List[Path]:
        sources = set()
        for source_root in source_roots:
            directory = root / source_root
            if directory.is_dir():
                sources.update(directory.rglob(f"*{SOURCE_EXTENSION}"))
        return sorted(sources)

    def classpath(self, context: BuildContext, web_root: Path) -> str:
        """Server lib, project lib, web root WEB-INF/lib, target WEB-INF/lib"""
        candidates = []
        if context.server_home is not None:
            candidates.append(context.server_home / "lib")
        candidates.append(context.workspace_root / "lib")
        candidates.append(web_root / LIB_DESTINATION)
        candidates.append(context.target_dir / LIB_DESTINATION)
        entries = [str(directory / "*") for directory in candidates if directory.is_dir()]
        return os.pathsep.join(entries)

    def compiler(self, context: BuildContext) -> str:
        name = "javac.exe" if current_platform() == Platform.WINDOWS else "javac"
        if context.java_home is not None:
            return str(context.java_home / "bin" / name)
        return shutil.which("javac") or "javac"

    def compile(self, context: BuildContext, sources: List[Path], classes_dir: Path, web_root: Path) -> None:
        classpath = self.classpath(context, web_root)
        with tempfile.TemporaryDirectory(prefix="deploysync-") as tmp:
            args_file = Path(tmp) / "sources.txt"
            args_file.write_text(
                "\n".join(_quote_argfile_entry(source) for source in sources) + "\n",
                encoding="utf-8",
            )
            args = [self.compiler(context), "-encoding", context.encoding, "-d", str(classes_dir)]
            if classpath:
                args.extend(["-cp", classpath])
            args.append(f"@{args_file}")
            result = context.runner.run(args, cwd=context.workspace_root, timeout=context.timeout)

        _check_result(result, "javac", extract_compiler_diagnostics(result.output))


def apply_local_overlay(context: BuildContext) -> int:
    """
    Copy every workspace file matched by a local mapping into the target.

    Each destination is written once, by the first mapping that reaches it.

    Returns:
        Number of files copied
    """
    snapshot = context.snapshot
    resolver = snapshot.resolver()
    visited = set()
    copied = 0

    for compiled in snapshot.local_mappings:
        if not compiled.valid:
            continue
        base = context.workspace_root / literal_prefix(compiled.mapping.source_pattern)
        if not base.is_dir():
            continue
        for file in sorted(base.rglob("*")):
            if not file.is_file():
                continue
            relative = resolver.relative_path(file)
            if not compiled.matches(relative) or not compiled.mapping.accepts_extension(file.suffix):
                continue
            destination = resolver.resolve(compiled, file, context.target_dir)
            if destination in visited:
                continue
            visited.add(destination)
            with busy_guard(f"Copying {relative}"):
                shutil.copy2(file, destination)
            copied += 1
    return copied


# ============================================================
# Delegating builds
# ============================================================

class MavenBuild(BuildRunner):
    """Delegate to `mvn clean package` and install the war"""

    strategy = BuildStrategy.MAVEN

    def run(self, context: BuildContext) -> Path:
        root = context.workspace_root
        if not has_maven_descriptor(root):
            raise BuildError(f"pom.xml not found in {root}")

        args = tool_command(root, "mvnw", "mvnw.cmd", "mvn") + ["clean", "package"]
        logger.info(f"Running {' '.join(args)}")
        result = context.runner.run(args, cwd=root, timeout=context.timeout)
        _check_result(result, "Maven", extract_maven_diagnostics(result.output))

        archive = locate_archive(root / "target", context.artifact_name)
        logger.info(f"Installing {archive.name} into {context.target_dir}")
        return install_archive(archive, context.target_dir)


class GradleBuild(BuildRunner):
    """Delegate to `gradle war` and install the war"""

    strategy = BuildStrategy.GRADLE

    def run(self, context: BuildContext) -> Path:
        root = context.workspace_root
        if not has_gradle_descriptor(root):
            raise BuildError(f"build.gradle not found in {root}")

        args = tool_command(root, "gradlew", "gradlew.bat", "gradle")
        args += ["war", f"-PfinalName={context.artifact_name}"]
        logger.info(f"Running {' '.join(args)}")
        result = context.runner.run(args, cwd=root, timeout=context.timeout)
        _check_result(result, "Gradle", extract_gradle_diagnostics(result.output))

        archive = locate_archive(root / "build" / "libs", context.artifact_name)
        logger.info(f"Installing {archive.name} into {context.target_dir}")
        return install_archive(archive, context.target_dir)


def create_runner(strategy: BuildStrategy) -> BuildRunner:
    """Runner for a strategy"""
    if strategy == BuildStrategy.LOCAL:
        return LocalBuild()
    if strategy == BuildStrategy.MAVEN:
        return MavenBuild()
    if strategy == BuildStrategy.GRADLE:
        return GradleBuild()
    raise ValueError(f"Unknown build strategy: {strategy}")
