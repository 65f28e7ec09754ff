"""``checkpoint commit`` — validate the draft, append, commit, backfill."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from checkpoint.cli._common import PATH_ARGUMENT, console, fail, lifecycle_for
from checkpoint.errors import CheckpointError


def commit_cmd(
    path: Path = PATH_ARGUMENT,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show the commit message and staged files without committing.",
    ),
    changelog_only: bool = typer.Option(
        False,
        "--changelog-only",
        help="Stage only the ledger instead of all changes.",
    ),
) -> None:
    """Append the draft to the ledger and commit it."""
    lifecycle = lifecycle_for(path)
    try:
        result = lifecycle.finalize(dry_run=dry_run, changelog_only=changelog_only)
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    if result.dry_run:
        console.print("[dry-run] Would commit with message:", markup=False)
        console.print(result.message, markup=False, soft_wrap=True)
        console.print()
        console.print("[dry-run] Files that would be staged:", markup=False)
        for name in result.staged:
            console.print(f"  - {name}", markup=False)
        return

    console.print("[green]✓[/green] Checkpoint committed")
    console.print(f"[bold]Commit:[/bold]  {result.commit_id}")
    console.print(f"[bold]Ledger:[/bold]  {escape(str(result.ledger_path))}")
    console.print(f"[bold]Changes:[/bold] {result.changes}")
    console.print(result.message, markup=False, soft_wrap=True)
