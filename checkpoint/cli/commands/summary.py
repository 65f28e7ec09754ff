"""``checkpoint summary`` — project overview from the ledger.

Shows the checkpoint count, the most recent checkpoints, working tree
state, and the next steps from the latest record.  ``--json`` prints the
same data as a JSON document.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from checkpoint.cli._common import (
    PATH_ARGUMENT,
    console,
    fail,
    group_next_steps,
    lifecycle_for,
)
from checkpoint.core.history import DEFAULT_RECENT, summarize
from checkpoint.errors import CheckpointError
from checkpoint.models.history import ProjectSummary


def _overview(summary: ProjectSummary) -> Panel:
    lines = [
        f"[bold]Project:[/bold] {escape(str(summary.project_path))}",
        f"[bold]Project id:[/bold] {escape(summary.project_id or '-')}",
        f"[bold]Checkpoints:[/bold] {summary.checkpoint_count}",
    ]
    if summary.last_checkpoint_timestamp:
        lines.append(
            f"[bold]Last checkpoint:[/bold] {escape(summary.last_checkpoint_timestamp)}"
        )
    lines.append("")
    if not summary.is_repository:
        lines.append("[yellow]Not a git repository[/yellow]")
    elif summary.working_tree_clean:
        lines.append("[green]Working tree clean[/green]")
    else:
        lines.append(
            f"[yellow]{summary.working_tree_changes} uncommitted change(s)[/yellow]"
        )
    if summary.in_progress:
        lines.append("[bold yellow]Checkpoint in progress[/bold yellow]")
    return Panel(
        "\n".join(lines),
        title="[bold]Project Summary[/bold]",
        border_style="yellow" if summary.in_progress else "green",
    )


def summary_cmd(
    path: Path = PATH_ARGUMENT,
    recent: int = typer.Option(
        DEFAULT_RECENT, "--recent", "-n", min=0, help="How many recent checkpoints to show."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """Summarize the checkpoint history of PATH."""
    lifecycle = lifecycle_for(path)
    try:
        summary = summarize(lifecycle, limit=recent)
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    if as_json:
        console.print_json(summary.model_dump_json())
        return

    console.print(_overview(summary))

    if summary.recent:
        table = Table(title="Recent Activity")
        table.add_column("#", justify="right")
        table.add_column("Timestamp", style="dim")
        table.add_column("Summary")
        table.add_column("Commit", style="cyan")
        for digest in summary.recent:
            label = escape(digest.summary)
            if digest.change_count > 1:
                label += f" [dim](+{digest.change_count - 1} more)[/dim]"
            table.add_row(
                str(digest.position),
                escape(digest.timestamp),
                label,
                escape(digest.commit_id[:8]) or "[dim]-[/dim]",
            )
        console.print(table)
    else:
        console.print("[dim]No checkpoints recorded yet.[/dim]")

    if summary.next_steps:
        table = Table(title="Next Steps")
        table.add_column("Priority", justify="center")
        table.add_column("Summary")
        table.add_column("Scope", style="cyan")
        for label, step in group_next_steps(summary.next_steps):
            table.add_row(label, escape(step.summary), escape(step.scope or ""))
        console.print(table)
