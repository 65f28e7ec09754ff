"""Lifecycle state machine models — states, transitions, and results."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from checkpoint.models.entry import NextStep


class LifecycleState(str, Enum):
    """States of one checkpoint cycle.

    Only IDLE and AWAITING_INPUT are observable on disk; the others exist
    while a single invocation is running.
    """

    IDLE = "idle"
    PREPARING = "preparing"
    AWAITING_INPUT = "awaiting_input"
    FINALIZING = "finalizing"
    ABORTING = "aborting"


# Valid state transitions, enforced by CheckpointLifecycle._transition.
VALID_TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    LifecycleState.IDLE: {LifecycleState.PREPARING},
    LifecycleState.PREPARING: {LifecycleState.AWAITING_INPUT, LifecycleState.IDLE},
    LifecycleState.AWAITING_INPUT: {LifecycleState.FINALIZING, LifecycleState.ABORTING},
    LifecycleState.FINALIZING: {
        LifecycleState.IDLE,
        LifecycleState.AWAITING_INPUT,  # validation failed or dry run
        LifecycleState.ABORTING,
    },
    LifecycleState.ABORTING: {LifecycleState.IDLE},
}


class LifecycleStatus(BaseModel):
    """Read-only snapshot of a project's checkpoint state ("start")."""

    model_config = ConfigDict(frozen=True)

    project_path: Path
    state: LifecycleState
    is_repository: bool
    lock_exists: bool
    draft_exists: bool
    diff_exists: bool
    lock_info: str = ""
    ledger_exists: bool = False
    checkpoint_count: int = 0
    working_tree_changes: int = 0
    next_steps: list[NextStep] = []

    @property
    def in_progress(self) -> bool:
        return self.state == LifecycleState.AWAITING_INPUT


class PrepareResult(BaseModel):
    """Outcome of ``check``."""

    model_config = ConfigDict(frozen=True)

    draft_path: Path
    diff_path: Path
    lock_path: Path
    carried_next_steps: int = 0
    files_changed: int = 0


class CommitResult(BaseModel):
    """Outcome of ``commit`` (or of a dry run)."""

    model_config = ConfigDict(frozen=True)

    message: str
    ledger_path: Path
    staged: list[str]
    dry_run: bool = False
    commit_id: str = ""
    changes: int = 0


class LintReport(BaseModel):
    """Validation violations and advisory warnings for the current draft."""

    model_config = ConfigDict(frozen=True)

    draft_path: Path
    violations: list[str] = []
    warnings: list[str] = []
    changes: int = 0
    next_steps: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.violations
