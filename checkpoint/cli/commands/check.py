"""``checkpoint check`` — start a checkpoint.

Creates the lock, diff and draft sentinels.  Fails if a checkpoint is
already in progress.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from checkpoint.cli._common import PATH_ARGUMENT, console, fail, lifecycle_for
from checkpoint.errors import CheckpointError


def check_cmd(path: Path = PATH_ARGUMENT) -> None:
    """Generate the draft and diff context for a new checkpoint."""
    lifecycle = lifecycle_for(path)
    try:
        result = lifecycle.prepare()
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    console.print(
        Panel(
            "\n".join([
                "[bold green]Checkpoint input generated[/bold green]",
                "",
                f"[bold]Draft:[/bold] {escape(str(result.draft_path))}",
                f"[bold]Diff:[/bold]  {escape(str(result.diff_path))}",
                f"[bold]Files changed:[/bold] {result.files_changed}",
                f"[bold]Carried next steps:[/bold] {result.carried_next_steps}",
            ]),
            title="[bold]checkpoint[/bold]",
            border_style="green",
        )
    )
    console.print(
        f"Next: fill in changes[] in the draft, then run: "
        f"checkpoint commit {escape(str(lifecycle.project_path))}"
    )
