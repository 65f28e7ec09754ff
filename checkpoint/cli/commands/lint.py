"""``checkpoint lint`` — check the draft before committing.

Reports validation violations (which would block ``commit``) and advisory
warnings.  Only a missing or unparseable draft is a failure.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from checkpoint.cli._common import PATH_ARGUMENT, console, fail, lifecycle_for
from checkpoint.errors import CheckpointError


def lint_cmd(path: Path = PATH_ARGUMENT) -> None:
    """Lint the checkpoint draft for obvious mistakes."""
    lifecycle = lifecycle_for(path)
    try:
        report = lifecycle.lint()
    except CheckpointError as exc:
        fail(exc, lifecycle)
        return

    if report.violations:
        console.print("[bold red]Validation errors (commit will be refused):[/bold red]")
        for violation in report.violations:
            console.print(f"  - {escape(violation)}")
        console.print()

    if not report.warnings:
        if not report.violations:
            console.print("[green]✓[/green] No lint issues found")
        console.print(f"Changes: {report.changes}")
        if report.next_steps:
            console.print(f"Next steps: {report.next_steps}")
        return

    console.print("[bold yellow]Lint issues found:[/bold yellow]")
    for warning in report.warnings:
        console.print(f"  - {escape(warning)}")
    console.print(f"\nTotal issues: {len(report.warnings)}")
    console.print(
        "[dim]These are suggestions; you can still commit if they are intentional.[/dim]"
    )
