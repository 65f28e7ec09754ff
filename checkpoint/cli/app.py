"""Main Typer application — imports and registers all CLI commands.

Entry point: ``checkpoint`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer

from checkpoint import __version__
from checkpoint.cli.commands.check import check_cmd
from checkpoint.cli.commands.clean import clean_cmd
from checkpoint.cli.commands.commit import commit_cmd
from checkpoint.cli.commands.init import init_cmd
from checkpoint.cli.commands.lint import lint_cmd
from checkpoint.cli.commands.project import project_cmd
from checkpoint.cli.commands.search import search_cmd
from checkpoint.cli.commands.start import start_cmd
from checkpoint.cli.commands.summary import summary_cmd
from checkpoint.config import config

app = typer.Typer(
    name="checkpoint",
    help="Append-only checkpoint ledger and commit workflow.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="init", help="Create the ledger with its identity header.")(init_cmd)
app.command(name="check", help="Start a checkpoint: generate the draft and diff.")(check_cmd)
app.command(name="commit", help="Validate the draft, append it, and git commit.")(commit_cmd)
app.command(name="clean", help="Abort the checkpoint in progress.")(clean_cmd)
app.command(name="start", help="Show checkpoint status and next steps.")(start_cmd)
app.command(name="lint", help="Check the draft for mistakes before committing.")(lint_cmd)
app.command(name="summary", help="Summarize checkpoint history and next steps.")(summary_cmd)
app.command(name="search", help="Search past changes and next steps.")(search_cmd)
app.command(name="project", help="Look up a project by project_id.")(project_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"checkpoint {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log debug output to stderr."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Configure logging once per invocation."""
    level = logging.DEBUG if verbose else config.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
