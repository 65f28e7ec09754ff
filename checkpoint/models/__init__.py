"""Checkpoint data models — all Pydantic v2, all frozen (immutable)."""

from checkpoint.models.discovery import ProjectInfo, ProjectQueryResult
from checkpoint.models.entry import (
    MAX_SUMMARY_LENGTH,
    SCHEMA_VERSION,
    TRANSIENT_FIELDS,
    Change,
    ChangeType,
    CheckpointEntry,
    DraftEntry,
    FileChange,
    NextStep,
    Priority,
)
from checkpoint.models.history import (
    CheckpointDigest,
    ProjectSummary,
    SearchMatch,
    SearchResult,
)
from checkpoint.models.lifecycle import (
    VALID_TRANSITIONS,
    CommitResult,
    LifecycleState,
    LifecycleStatus,
    LintReport,
    PrepareResult,
)
from checkpoint.models.meta import META_DOCUMENT_KIND, MetaDocument

__all__ = [
    # entry
    "SCHEMA_VERSION",
    "MAX_SUMMARY_LENGTH",
    "TRANSIENT_FIELDS",
    "ChangeType",
    "Priority",
    "FileChange",
    "Change",
    "NextStep",
    "CheckpointEntry",
    "DraftEntry",
    # meta
    "META_DOCUMENT_KIND",
    "MetaDocument",
    # lifecycle
    "LifecycleState",
    "VALID_TRANSITIONS",
    "LifecycleStatus",
    "PrepareResult",
    "CommitResult",
    "LintReport",
    # discovery
    "ProjectInfo",
    "ProjectQueryResult",
    # history
    "CheckpointDigest",
    "ProjectSummary",
    "SearchMatch",
    "SearchResult",
]
