"""Shared helpers for checkpoint CLI commands.

Wires commands to a ``CheckpointLifecycle`` and renders fail-closed error
reports: the condition, the on-disk artifact state, and the next command.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from checkpoint.config import config
from checkpoint.core.lifecycle import CheckpointLifecycle
from checkpoint.core.vcs import GitCLI, VersionControl
from checkpoint.errors import CheckpointError, PartialCommitError, ValidationFailedError
from checkpoint.models.entry import NextStep

console = Console()
err_console = Console(stderr=True)

# Replaced in tests to run commands against a fake VCS.
vcs_factory: Callable[[], VersionControl] = GitCLI

PATH_ARGUMENT = typer.Argument(
    Path("."),
    help="Project directory (defaults to the current directory).",
    show_default=False,
)


def lifecycle_for(path: Path) -> CheckpointLifecycle:
    """Build the lifecycle controller for a project directory."""
    return CheckpointLifecycle(path, vcs_factory(), cfg=config)


# ---------------------------------------------------------------------------
# Next steps
# ---------------------------------------------------------------------------

_PRIORITY_GROUPS: list[tuple[str, str]] = [
    ("high", "[red]high[/red]"),
    ("med", "[yellow]med[/yellow]"),
    ("low", "[green]low[/green]"),
    ("", "[dim]-[/dim]"),
]


def group_next_steps(steps: list[NextStep]) -> list[tuple[str, NextStep]]:
    """Order next steps high, med, low, then unprioritized, with a label each."""
    ordered: list[tuple[str, NextStep]] = []
    for key, label in _PRIORITY_GROUPS:
        for step in steps:
            priority = (step.priority or "").strip().lower()
            if priority not in ("high", "med", "low"):
                priority = ""
            if priority == key:
                ordered.append((label, step))
    return ordered


# ---------------------------------------------------------------------------
# Artifact state
# ---------------------------------------------------------------------------


def _presence(path: Path) -> str:
    return "[yellow]present[/yellow]" if path.exists() else "[dim]absent[/dim]"


def artifact_state_lines(lifecycle: CheckpointLifecycle) -> list[str]:
    """Describe which sentinels exist and whether the ledger exists."""
    lines = [
        f"  lock   {escape(lifecycle.lock_path.name)}: {_presence(lifecycle.lock_path)}",
        f"  draft  {escape(lifecycle.draft_path.name)}: {_presence(lifecycle.draft_path)}",
        f"  diff   {escape(lifecycle.diff_path.name)}: {_presence(lifecycle.diff_path)}",
    ]
    ledger = lifecycle.ledger
    if ledger.exists():
        try:
            records = f"{ledger.count_entries()} record(s)"
        except CheckpointError:
            records = "unreadable"
        lines.append(f"  ledger {escape(ledger.path.name)}: present, {records}")
    else:
        lines.append(f"  ledger {escape(ledger.path.name)}: [dim]absent[/dim]")
    return lines


# ---------------------------------------------------------------------------
# Failure reporting
# ---------------------------------------------------------------------------


def fail(exc: CheckpointError, lifecycle: CheckpointLifecycle | None = None) -> None:
    """Print a fail-closed report to stderr and exit with status 1."""
    if isinstance(exc, ValidationFailedError):
        err_console.print("[bold red]error:[/bold red] validation failed")
        for violation in exc.violations:
            err_console.print(f"  - {escape(violation)}")
    else:
        err_console.print(f"[bold red]error:[/bold red] {escape(str(exc))}")

    if isinstance(exc, PartialCommitError):
        err_console.print(f"[yellow]failed phase:[/yellow] {exc.phase}")
        if exc.commit_id:
            err_console.print(f"[yellow]commit:[/yellow] {exc.commit_id}")

    if lifecycle is not None:
        err_console.print("[bold]state:[/bold]")
        for line in artifact_state_lines(lifecycle):
            err_console.print(line)

    if exc.hint:
        err_console.print(f"[bold]next:[/bold] {escape(exc.hint)}")
    raise typer.Exit(code=1)
