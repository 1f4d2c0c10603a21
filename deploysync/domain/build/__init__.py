"""
Build domain module
"""
from .models import BuildStrategy, BuildState, BuildContext, BuildResult
from .fs_sync import reconciling_sync, install_archive, reset_directory, is_busy_error, busy_guard
from .diagnostics import (
    extract_maven_diagnostics,
    extract_gradle_diagnostics,
    extract_compiler_diagnostics,
    mentions_busy,
)
from .strategies import (
    BuildRunner,
    LocalBuild,
    MavenBuild,
    GradleBuild,
    create_runner,
    resolve_strategy,
    available_strategies,
    apply_local_overlay,
    locate_archive,
)
from .executor import BuildExecutor

__all__ = [
    "BuildStrategy",
    "BuildState",
    "BuildContext",
    "BuildResult",
    "reconciling_sync",
    "install_archive",
    "reset_directory",
    "is_busy_error",
    "busy_guard",
    "extract_maven_diagnostics",
    "extract_gradle_diagnostics",
    "extract_compiler_diagnostics",
    "mentions_busy",
    "BuildRunner",
    "LocalBuild",
    "MavenBuild",
    "GradleBuild",
    "create_runner",
    "resolve_strategy",
    "available_strategies",
    "apply_local_overlay",
    "locate_archive",
    "BuildExecutor",
]
