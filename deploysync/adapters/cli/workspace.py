"""
Workspace inspection CLI commands: detect, mappings, init
"""
import typer
from typing import Optional

from rich.table import Table

from ...core.exceptions import ConfigError, DeploySyncError
from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...domain.layout import detect, looks_deployable
from ..config import WorkspaceConfigSource, write_template
from .context import create_service, load_settings, resolve_workspace

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()


def register_inspect_commands(app: typer.Typer) -> None:
    """Register inspection commands on the main app"""
    app.command(name="detect")(detect_layout)
    app.command(name="mappings")(show_mappings)
    app.command(name="init")(init_mapping_file)


def detect_layout(
    workspace: str = typer.Argument(".", help="Workspace root"),
):
    """
    Show the detected project layout

    Examples:
        deploysync detect
        deploysync detect ~/projects/shop
    """
    root = resolve_workspace(workspace)
    if not root.is_dir():
        stderr_console.print(f"[red]Error:[/red] Workspace not found: {workspace}")
        raise typer.Exit(1)

    layout = detect(root)

    table = Table(title=f"Project Layout: {root.name}", show_header=True, header_style="bold cyan")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Kind", layout.kind.value)
    table.add_row("Artifact", layout.artifact_name)
    table.add_row("Compiled output", layout.compiled_output_root)
    table.add_row("Source roots", ", ".join(layout.source_roots))
    table.add_row("Web roots", ", ".join(layout.web_resource_roots))
    table.add_row("Deployable", "yes" if looks_deployable(root) else "[yellow]no WEB-INF or build descriptor found[/yellow]")
    stdout_console.print(table)


def show_mappings(
    workspace: str = typer.Argument(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file (TOML)"),
):
    """
    Show compiled mappings in precedence order

    Local overrides come first, then smart mappings.
    """
    try:
        root = resolve_workspace(workspace)
        settings = load_settings(root, config)
        snapshot = create_service(root, settings).activate()
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except DeploySyncError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(
        title=f"Mappings: {snapshot.config.artifact_name} ({snapshot.config.tier.value})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("#", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Destination", style="green")
    table.add_column("Origin", style="magenta")
    table.add_column("Reload", style="yellow")
    table.add_column("Regex", style="dim")

    for index, compiled in enumerate(snapshot.compiled, 1):
        mapping = compiled.mapping
        regex = compiled.matcher.pattern if compiled.valid else f"[red]never matches: {compiled.error}[/red]"
        table.add_row(
            str(index),
            mapping.source_pattern,
            mapping.destination_template,
            mapping.origin.value,
            "yes" if mapping.triggers_reload else "no",
            regex,
        )

    stdout_console.print(table)
    stdout_console.print(f"[dim]Compiled output root: {snapshot.compiled_output_root}[/dim]")


def init_mapping_file(
    workspace: str = typer.Argument(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file (TOML)"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing mapping file"),
):
    """
    Write a mapping file template for the detected layout

    Examples:
        deploysync init
        deploysync init --force
    """
    try:
        root = resolve_workspace(workspace)
        settings = load_settings(root, config)
        path = WorkspaceConfigSource(settings).mapping_file_path(root)
        written = write_template(path, detect(root), force=force)
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        stderr_console.print(f"[red]Error:[/red] Failed to write mapping file: {e}")
        raise typer.Exit(1)

    if written:
        stdout_console.print(f"[green]✓[/green] Wrote mapping file: [cyan]{path}[/cyan]")
    else:
        stdout_console.print(f"[yellow]⊘[/yellow] Mapping file already exists: {path} (use --force to overwrite)")
