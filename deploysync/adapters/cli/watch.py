"""
Watch CLI command
"""
import time
import typer
from pathlib import Path
from typing import Optional

from ...core.exceptions import ConfigError, DeploySyncError, WatchError
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.telemetry import Event
from ...infrastructure.watch import WatchdogEventStream
from .context import create_service, load_settings, resolve_workspace

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

POLL_INTERVAL = 0.5


def register_watch_command(app: typer.Typer) -> None:
    """Register watch command directly on the main app"""
    app.command(name="watch")(watch_run)


def _print_batch(event: Event) -> None:
    if event.name == "batch.executed":
        stdout_console.print(
            f"[cyan]ℹ[/cyan] Batch: {event.metadata['deployed']}/{event.metadata['files']} compiled files deployed"
        )


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def watch_run(
    workspace: str = typer.Argument(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file (TOML)"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Deployed application directory"),
    debounce_ms: Optional[int] = typer.Option(None, "--debounce-ms", help="Compiled-output debounce window"),
):
    """
    Watch the workspace and copy changes into the deployed application

    Static resources are copied immediately; compiled classes are batched.
    Editing the mapping file reloads the mappings. Stop with Ctrl+C.

    Examples:
        deploysync watch --target /opt/tomcat/webapps/shop
        deploysync watch --debounce-ms 500
    """
    try:
        root = resolve_workspace(workspace)
        settings = load_settings(root, config, {
            "target_dir": target,
            "watch": {"debounce_ms": debounce_ms},
        })

        def on_deployed(source: Path, destination: Path) -> None:
            stdout_console.print(f"[green]✓[/green] {source.name} → [cyan]{destination}[/cyan]")

        service = create_service(root, settings, on_deployed=on_deployed)
        snapshot = service.activate()
        service.start_watching(WatchdogEventStream())
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except WatchError as e:
        stderr_console.print(f"[red]Watch Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Failed to start watching")
        stderr_console.print(f"[red]Error:[/red] Failed to start watching: {e}")
        raise typer.Exit(1)

    stdout_console.print(
        f"[green]✓[/green] Watching [cyan]{snapshot.layout.kind.value}[/cyan] project "
        f"'{snapshot.config.artifact_name}' → [cyan]{snapshot.webapp_root}[/cyan]"
    )
    stdout_console.print("  Press [yellow]Ctrl+C[/yellow] to stop")

    unsubscribe = service.telemetry.subscribe(_print_batch)
    mapping_path = service.config_source.mapping_file_path(root)
    mapping_mtime = _mtime(mapping_path)
    try:
        while True:
            time.sleep(POLL_INTERVAL)
            current = _mtime(mapping_path)
            if current != mapping_mtime:
                mapping_mtime = current
                try:
                    service.reload_configuration()
                    stdout_console.print("[cyan]ℹ[/cyan] Mapping file changed; mappings reloaded")
                except DeploySyncError as e:
                    stderr_console.print(f"[red]Config Error:[/red] {e} (keeping previous mappings)")
    except KeyboardInterrupt:
        stdout_console.print("\n[yellow]Stopping watch...[/yellow]")
    finally:
        service.stop_watching(flush=True)
        unsubscribe()
