"""Checkpoint: an append-only, human-readable ledger of development checkpoints.

Each commit made through the tool appends one YAML record to
``.checkpoint-changelog.yaml``.  The workflow is guarded by sentinel files
so that two checkpoint operations never run against one project at once.
"""

__version__ = "0.5.0"
__description__ = "Append-only checkpoint ledger with a guarded commit workflow"

from checkpoint.core.ledger import LedgerStore
from checkpoint.core.lifecycle import CheckpointLifecycle
from checkpoint.discovery import ProjectQueryService, ProjectResolver

__all__ = [
    "LedgerStore",
    "CheckpointLifecycle",
    "ProjectQueryService",
    "ProjectResolver",
    "__version__",
]
