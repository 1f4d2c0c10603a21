"""
Deploy CLI command
"""
import typer
from typing import Optional

from ...core.exceptions import BuildError, BuildFailedError, ConfigError
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...domain.build import BuildState
from ...domain.engine import STRATEGY_CHOICES
from .context import create_service, load_settings, resolve_workspace

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

_STATE_MESSAGES = {
    BuildState.RUNNING: "[cyan]▶[/cyan] Building...",
    BuildState.SUCCEEDED: "[green]✓[/green] Build succeeded",
    BuildState.RELOAD_REQUESTED: "[cyan]ℹ[/cyan] Server reload requested",
}


def register_deploy_command(app: typer.Typer) -> None:
    """Register deploy command directly on the main app"""
    app.command(name="deploy")(deploy_run)


def _print_state(state: BuildState) -> None:
    message = _STATE_MESSAGES.get(state)
    if message:
        stdout_console.print(message)


def deploy_run(
    workspace: str = typer.Argument(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file (TOML)"),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", "-s", help=f"Build strategy ({', '.join(STRATEGY_CHOICES)})"
    ),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Deployed application directory"),
):
    """
    Build the project and replace the deployed application

    Examples:
        deploysync deploy --target /opt/tomcat/webapps/shop
        deploysync deploy --strategy maven
    """
    try:
        root = resolve_workspace(workspace)
        settings = load_settings(root, config, {
            "target_dir": target,
            "build": {"strategy": strategy.lower() if strategy else None},
        })
        service = create_service(root, settings, on_build_state=_print_state)
        result = service.deploy()
    except BuildFailedError as e:
        stderr_console.print(f"[red]Build Error:[/red] {e}")
        for line in e.diagnostics:
            stderr_console.print(f"  [red]•[/red] {line}")
        raise typer.Exit(1)
    except BuildError as e:
        stderr_console.print(f"[red]Build Error:[/red] {e}")
        raise typer.Exit(1)
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Failed to deploy")
        stderr_console.print(f"[red]Error:[/red] Failed to deploy: {e}")
        raise typer.Exit(1)

    if result.skipped:
        stdout_console.print("[yellow]⊘[/yellow] A build is already running; skipped")
        return

    stdout_console.print(
        f"[green]✓[/green] Deployed with [cyan]{result.strategy.value}[/cyan] "
        f"in {result.duration:.1f}s ({result.attempts} attempt{'s' if result.attempts != 1 else ''})"
    )
    if result.artifact_path:
        stdout_console.print(f"  Artifact: [cyan]{result.artifact_path}[/cyan]")
