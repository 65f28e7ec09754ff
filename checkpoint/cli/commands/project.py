"""``checkpoint project`` — look up a project by its ledger identity.

Scans the discovery roots for ledgers and prints the matching project as
JSON.  Exits non-zero for ``not_found`` and ``duplicate_identity``, and
with a fail-closed report when the resolved ledger cannot be read.
"""

from __future__ import annotations

import typer

from checkpoint.cli._common import console, err_console, fail
from checkpoint.config import config, resolve_roots
from checkpoint.discovery import ProjectQueryService, ProjectResolver
from checkpoint.errors import CheckpointError


def project_cmd(
    project_id: str = typer.Argument(..., help="The project_id from a ledger header."),
    root: list[str] = typer.Option(
        [],
        "--root",
        "-r",
        help="Directory to scan (repeatable). Defaults to CHECKPOINT_ROOTS or the global config.",
    ),
) -> None:
    """Resolve PROJECT_ID to a project directory and summarize its ledger."""
    roots = resolve_roots(root, config)
    if not roots:
        err_console.print(
            "[bold red]error:[/bold red] no discovery roots configured\n"
            "[bold]next:[/bold] pass --root DIR, set CHECKPOINT_ROOTS, or add "
            f"\"roots\" to {config.global_config_path}"
        )
        raise typer.Exit(code=1)

    service = ProjectQueryService(ProjectResolver(roots, config.ledger_file_name))
    try:
        result = service.query(project_id)
    except CheckpointError as exc:
        fail(exc)
    console.print_json(result.model_dump_json(exclude_none=True))
    if result.status != "ok":
        raise typer.Exit(code=1)
