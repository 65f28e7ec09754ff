"""``checkpoint init`` — create the ledger with its identity header.

Idempotent: an existing ledger with a header is left byte-identical, and a
legacy ledger without one gets a header prepended.  Sentinel names are
added to the project's .gitignore.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from checkpoint import __version__
from checkpoint.cli._common import PATH_ARGUMENT, console, fail, lifecycle_for
from checkpoint.errors import CheckpointError


def init_cmd(path: Path = PATH_ARGUMENT) -> None:
    """Initialize the checkpoint ledger in PATH."""
    lifecycle = lifecycle_for(path)
    existed = lifecycle.ledger.exists()
    try:
        meta = lifecycle.ledger.initialize(__version__)
        ignored = lifecycle.ensure_gitignore()
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    verb = "Ledger ready" if existed else "Ledger created"
    console.print(f"[green]✓[/green] {verb}: {escape(str(lifecycle.ledger.path))}")
    if ignored:
        console.print("[green]✓[/green] Updated .gitignore with checkpoint sentinels")
    console.print(f"[bold]Project ID:[/bold] {meta.project_id}")
    console.print(f"[bold]Path hash:[/bold]  {meta.path_hash}")
