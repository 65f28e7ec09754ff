"""Checkpoint CLI — Typer-based command-line interface.

Provides the ``checkpoint`` command with subcommands for the
check → edit → commit workflow, ledger initialization, status, lint,
and project lookup.

All output uses Rich for formatted terminal display.
"""
