"""``checkpoint search`` — find past changes and next steps by text.

Scans every record's ``changes`` and ``next_steps`` for QUERY
(case-insensitive).  ``--scope`` narrows to items whose scope matches and
``--recent N`` to the last N records.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from checkpoint.cli._common import (
    PATH_ARGUMENT,
    console,
    err_console,
    fail,
    lifecycle_for,
)
from checkpoint.core.history import search_ledger
from checkpoint.errors import CheckpointError


def search_cmd(
    query: str = typer.Argument(..., help="Text to look for."),
    path: Path = PATH_ARGUMENT,
    scope: str | None = typer.Option(
        None, "--scope", "-s", help="Only items whose scope contains this."
    ),
    recent: int = typer.Option(
        0, "--recent", "-n", min=0, help="Only the last N checkpoints (0 = all)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print matches as JSON."),
) -> None:
    """Search the checkpoint history of PATH for QUERY."""
    if not query.strip():
        err_console.print(
            "[bold red]error:[/bold red] search query required\n"
            "[bold]next:[/bold] pass the text to look for, e.g. 'checkpoint search login'"
        )
        raise typer.Exit(code=1)

    lifecycle = lifecycle_for(path)
    try:
        result = search_ledger(lifecycle.ledger, query, scope=scope, recent=recent)
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    if as_json:
        console.print_json(result.model_dump_json())
        return

    if not result.matches:
        console.print(f"No matches found in {result.records_searched} checkpoint(s).")
        return

    table = Table(title=f"{len(result.matches)} match(es) for '{escape(query)}'")
    table.add_column("#", justify="right")
    table.add_column("Section")
    table.add_column("Kind", justify="center")
    table.add_column("Summary")
    table.add_column("Scope", style="cyan")
    table.add_column("Commit", style="cyan")
    for match in result.matches:
        table.add_row(
            str(match.position),
            match.section,
            escape(match.kind) or "[dim]-[/dim]",
            escape(match.summary),
            escape(match.scope or ""),
            escape(match.commit_id[:8]) or "[dim]-[/dim]",
        )
    console.print(table)
