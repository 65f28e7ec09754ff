"""``checkpoint clean`` — abort the checkpoint in progress.

Deletes the lock, draft and diff sentinels.  Never touches the ledger.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from checkpoint.cli._common import PATH_ARGUMENT, console, fail, lifecycle_for
from checkpoint.errors import CheckpointError


def clean_cmd(path: Path = PATH_ARGUMENT) -> None:
    """Remove checkpoint sentinel files to restart."""
    lifecycle = lifecycle_for(path)
    try:
        removed = lifecycle.abort()
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    if not removed:
        console.print("Nothing to clean")
        return
    for sentinel in removed:
        console.print(f"[green]✓[/green] Removed {escape(sentinel.name)}")
