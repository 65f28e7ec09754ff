"""Read-only discovery query models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from checkpoint.models.entry import NextStep


class ProjectInfo(BaseModel):
    """Structured project information resolved by ``project_id``."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    project_root: str
    path_hash: str = ""
    checkpoint_count: int = 0
    last_checkpoint_timestamp: str = ""
    next_steps: list[NextStep] = []


class ProjectQueryResult(BaseModel):
    """Envelope returned by the query service.

    ``project`` is set only when ``status`` is ``"ok"``.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str
    status: Literal["ok", "not_found", "duplicate_identity"]
    project: ProjectInfo | None = None
    paths: list[str] = []  # conflicting paths for duplicate_identity
    message: str = ""
