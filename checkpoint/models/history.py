"""Read-only ledger history models — summaries and search matches."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict

from checkpoint.models.entry import NextStep


class CheckpointDigest(BaseModel):
    """One line of recent activity: a record reduced to its first change."""

    model_config = ConfigDict(frozen=True)

    position: int  # 1-based record position in append order
    timestamp: str = ""
    commit_id: str = ""
    summary: str = ""
    change_count: int = 0


class ProjectSummary(BaseModel):
    """Outcome of ``summary``: ledger totals, recent activity and git state."""

    model_config = ConfigDict(frozen=True)

    project_path: Path
    project_id: str = ""
    checkpoint_count: int = 0
    last_checkpoint_timestamp: str = ""
    last_commit_id: str = ""
    in_progress: bool = False
    is_repository: bool = True
    working_tree_changes: int = 0
    recent: list[CheckpointDigest] = []
    next_steps: list[NextStep] = []

    @property
    def working_tree_clean(self) -> bool:
        return self.working_tree_changes == 0


class SearchMatch(BaseModel):
    """A change or next step whose text matched a search query."""

    model_config = ConfigDict(frozen=True)

    position: int
    timestamp: str = ""
    commit_id: str = ""
    section: Literal["changes", "next_steps"]
    summary: str = ""
    details: str | None = None
    kind: str = ""  # change_type for changes, priority for next steps
    scope: str | None = None


class SearchResult(BaseModel):
    """Envelope returned by ``search``."""

    model_config = ConfigDict(frozen=True)

    query: str
    scope: str | None = None
    recent: int = 0
    records_searched: int = 0
    matches: list[SearchMatch] = []
