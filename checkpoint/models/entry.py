"""Checkpoint record models — one record per successful commit.

A record is durable once appended to the ledger.  The draft variant adds
fields that only make sense while a human or LLM is still filling it in;
those are stripped by the codec before anything reaches the ledger.
"""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

SCHEMA_VERSION = "1"
MAX_SUMMARY_LENGTH = 80


class ChangeType(str, Enum):
    """Closed set of change classifications."""

    FEATURE = "feature"
    FIX = "fix"
    REFACTOR = "refactor"
    DOCS = "docs"
    PERF = "perf"
    OTHER = "other"


class Priority(str, Enum):
    """Closed set of next-step priorities."""

    LOW = "low"
    MED = "med"
    HIGH = "high"


class FileChange(BaseModel):
    """Per-file line counts, informational only."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    path: str
    additions: int = 0
    deletions: int = 0


class Change(BaseModel):
    """One logical change within a checkpoint.

    ``change_type`` is kept as free text so an unfilled draft still decodes;
    the validation engine enforces ``ChangeType``.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    summary: str = ""
    details: str | None = None
    change_type: str = ""
    scope: str | None = None


class NextStep(BaseModel):
    """A planned follow-up carried forward from one checkpoint to the next."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    summary: str = ""
    details: str | None = None
    priority: str | None = None  # low|med|high
    scope: str | None = None


class CheckpointEntry(BaseModel):
    """A durable checkpoint record as stored in the ledger.

    Unknown keys are preserved so rewriting the last record during a
    backfill never drops hand-added data.
    """

    model_config = ConfigDict(frozen=True, extra="allow", coerce_numbers_to_str=True)

    schema_version: str = SCHEMA_VERSION
    timestamp: str = ""  # RFC 3339, kept as text for byte-stable re-encoding
    commit_id: str = Field(
        default="",
        validation_alias=AliasChoices("commit_id", "commit_hash"),
    )
    files_changed: list[FileChange] = []
    changes: list[Change] = []
    next_steps: list[NextStep] = []


class DraftEntry(CheckpointEntry):
    """The editable in-progress record written to the draft sentinel."""

    git_status: str = ""
    diff_file: str = ""


# Fields that exist only on drafts and are never written to the ledger.
TRANSIENT_FIELDS: frozenset[str] = frozenset({"git_status", "diff_file"})
