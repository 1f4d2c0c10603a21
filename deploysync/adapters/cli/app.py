"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging, get_logger
from .deploy import register_deploy_command
from .workspace import register_inspect_commands
from .watch import register_watch_command

logger = get_logger(__name__)

# Create main app
app = typer.Typer(
    name="deploysync",
    add_completion=False,
    help="Incremental deploy synchronizer for Java web projects",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_inspect_commands(app)
register_watch_command(app)
register_deploy_command(app)


@app.callback()
def main(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    DeploySync - keep a deployed Java web application in step with the workspace

    Use subcommands to perform different operations:
    - detect / mappings / init: inspect the workspace
    - watch: copy changes as they happen
    - deploy: full build and replace
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
