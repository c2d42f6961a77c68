"""
Planboard CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer
from rich.console import Console

from planboard import __version__
from planboard.cli import analytics, board, deps, document
from planboard.core.config import load_config, load_env_files

# Help panel names for command grouping
PANEL_DOCUMENT = "Documents"
PANEL_PLANNING = "Planning"
PANEL_REPORTS = "Reports"

app = typer.Typer(
    name="planboard",
    help="Keep a project planning document consistent and report on it",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Planboard - project planning document engine.

    Works on the JSON project document shared by the timeline, board,
    backlog, time log, retrospective and milestone views.

    Examples:
        planboard migrate plan.json      # Upgrade to the current schema
        planboard check plan.json        # Report consistency problems
        planboard board plan.json        # Tasks per board column
        planboard burndown plan.json sprint_abc
    """
    # Precedence: OS env > project .env > user .env
    load_env_files()

    level = "DEBUG" if debug else load_config().logging.level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.obj = {"debug": debug}


app.command(name="migrate", rich_help_panel=PANEL_DOCUMENT)(document.migrate)
app.command(name="check", rich_help_panel=PANEL_DOCUMENT)(document.check)

app.command(name="board", rich_help_panel=PANEL_PLANNING)(board.board)
app.add_typer(deps.app, name="deps", rich_help_panel=PANEL_PLANNING)

app.command(name="burndown", rich_help_panel=PANEL_REPORTS)(analytics.burndown)
app.command(name="velocity", rich_help_panel=PANEL_REPORTS)(analytics.velocity)
app.command(name="milestones", rich_help_panel=PANEL_REPORTS)(analytics.milestones)


@app.command()
def version() -> None:
    """Show planboard version and exit."""
    console.print(f"planboard version {__version__}")
    raise typer.Exit(0)


__all__ = ["app"]
