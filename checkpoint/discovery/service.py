"""ProjectQueryService — read-only project lookup by identity.

A projection over ledgers found by ``ProjectResolver``.  It never writes;
every query re-reads the resolved ledger.
"""

from __future__ import annotations

from checkpoint.core.ledger import LedgerStore
from checkpoint.discovery.resolver import ProjectResolver
from checkpoint.errors import DuplicateIdentityError, ProjectNotFoundError
from checkpoint.models.discovery import ProjectInfo, ProjectQueryResult


class ProjectQueryService:
    """Answer ``project_id`` queries with structured project information.

    Parameters
    ----------
    resolver:
        Identity cache used to locate project directories.  Keep one
        service per long-lived process so the cache is reused.
    """

    def __init__(self, resolver: ProjectResolver) -> None:
        self._resolver = resolver

    def query(self, project_id: str) -> ProjectQueryResult:
        """Resolve ``project_id`` and summarize its ledger."""
        try:
            root = self._resolver.resolve(project_id)
        except DuplicateIdentityError as exc:
            return ProjectQueryResult(
                project_id=project_id,
                status="duplicate_identity",
                paths=[str(p) for p in exc.paths],
                message=str(exc),
            )
        except ProjectNotFoundError as exc:
            return ProjectQueryResult(
                project_id=project_id, status="not_found", message=str(exc)
            )

        store = LedgerStore(root / self._resolver.ledger_file_name)
        meta = store.read_header()
        entries = store.read_entries()
        last = entries[-1] if entries else None

        return ProjectQueryResult(
            project_id=project_id,
            status="ok",
            project=ProjectInfo(
                project_id=project_id,
                project_root=str(root),
                path_hash=meta.path_hash if meta is not None else "",
                checkpoint_count=len(entries),
                last_checkpoint_timestamp=last.timestamp if last else "",
                next_steps=list(last.next_steps) if last else [],
            ),
        )
