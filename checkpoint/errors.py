"""Error taxonomy for checkpoint operations.

Every error derives from ``CheckpointError`` and may carry a ``hint``: the
exact next command a user should run to retry or abort.  The CLI prints the
hint verbatim; library callers can inspect it programmatically.

Nothing in this package retries automatically.  Once a ledger mutation has
been attempted, the caller decides what happens next.
"""

from __future__ import annotations

from pathlib import Path


class CheckpointError(RuntimeError):
    """Base class for all checkpoint errors."""

    def __init__(self, message: str, *, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint


class NotARepositoryError(CheckpointError):
    """Raised when the project directory is not inside a VCS work tree."""


class ConflictError(CheckpointError):
    """Raised when a lock or draft sentinel already exists."""


class DuplicateIdentityError(ConflictError):
    """Raised when one ``project_id`` was found at more than one path."""

    def __init__(self, project_id: str, paths: list[Path]) -> None:
        listed = ", ".join(str(p) for p in paths)
        super().__init__(
            f"duplicate_identity: project_id {project_id} found at {listed}",
            hint="Re-initialize one of the ledgers or remove the copy, then query again.",
        )
        self.project_id = project_id
        self.paths = list(paths)


class ProjectNotFoundError(CheckpointError):
    """Raised when no ledger under the configured roots reports a project_id."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"not_found: project_id {project_id}")
        self.project_id = project_id


class ValidationFailedError(CheckpointError):
    """Raised when a record fails the structural validation gate.

    Always raised before any ledger mutation.
    """

    def __init__(self, violations: list[str], *, hint: str = "") -> None:
        super().__init__(
            "validation failed: " + "; ".join(violations), hint=hint
        )
        self.violations = list(violations)


class ConcurrentModificationError(CheckpointError):
    """Raised when the ledger changed underneath an append or backfill.

    The ledger file is guaranteed unchanged by the failed operation.
    """


class PartialCommitError(CheckpointError):
    """Raised when the record was appended but the VCS commit or backfill failed.

    The appended record is never rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: str,
        ledger_path: Path,
        commit_id: str = "",
        hint: str = "",
    ) -> None:
        super().__init__(message, hint=hint)
        self.phase = phase
        self.ledger_path = ledger_path
        self.commit_id = commit_id


class IOFailureError(CheckpointError):
    """Raised for filesystem errors on the ledger or sentinel files."""

    def __init__(self, action: str, path: Path, cause: OSError) -> None:
        super().__init__(f"failed to {action} {path}: {cause}")
        self.path = path
        self.__cause__ = cause


class DocumentDecodeError(CheckpointError):
    """Raised when a ledger or draft document cannot be decoded."""


class LedgerError(CheckpointError):
    """Raised for structural ledger problems (e.g. nothing to backfill)."""


class InvalidTransitionError(CheckpointError):
    """Raised when a lifecycle action is not valid from the current state."""


class VCSError(CheckpointError):
    """Raised when a version-control command fails."""
