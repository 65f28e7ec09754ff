"""``checkpoint start`` — read-only project status.

Shows whether a checkpoint is in progress, the ledger size, and the next
steps carried forward from the most recent checkpoint, grouped by
priority.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape
from rich.table import Table

from checkpoint.cli._common import (
    PATH_ARGUMENT,
    artifact_state_lines,
    console,
    fail,
    group_next_steps,
    lifecycle_for,
)
from checkpoint.errors import CheckpointError, NotARepositoryError


def start_cmd(path: Path = PATH_ARGUMENT) -> None:
    """Show checkpoint status and next steps for PATH."""
    lifecycle = lifecycle_for(path)
    try:
        status = lifecycle.status()
        if not status.is_repository:
            raise NotARepositoryError(
                f"{lifecycle.project_path} is not a git repository",
                hint=f"Run 'git init' in {lifecycle.project_path}, then retry.",
            )
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    console.print(f"[bold]Project:[/bold] {escape(str(status.project_path))}")
    if status.in_progress:
        console.print("[bold yellow]Checkpoint in progress[/bold yellow]")
        if status.lock_info:
            console.print(escape(status.lock_info))
        for line in artifact_state_lines(lifecycle):
            console.print(line)
        console.print(
            f"Next: edit the draft and run 'checkpoint commit {escape(str(status.project_path))}' "
            f"or discard it with 'checkpoint clean {escape(str(status.project_path))}'"
        )
    else:
        console.print("[green]Ready[/green] for a new checkpoint")

    if status.ledger_exists:
        console.print(f"[bold]Checkpoints:[/bold] {status.checkpoint_count}")
    else:
        console.print("[dim]No ledger yet; run 'checkpoint init' or 'checkpoint check'.[/dim]")
    console.print(f"[bold]Working tree changes:[/bold] {status.working_tree_changes}")

    if not status.next_steps:
        console.print("[dim]No next steps recorded.[/dim]")
        return

    table = Table(title="Next Steps")
    table.add_column("Priority", justify="center")
    table.add_column("Summary")
    table.add_column("Scope", style="cyan")
    for label, step in group_next_steps(status.next_steps):
        table.add_row(label, escape(step.summary), escape(step.scope or ""))
    console.print(table)

    if not status.in_progress:
        console.print(f"Next: run 'checkpoint check {escape(str(status.project_path))}'")
