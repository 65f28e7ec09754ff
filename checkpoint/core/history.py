"""Ledger history queries — ``summary`` and ``search``.

Both are read-only linear scans over ``LedgerStore.read_entries``.  A
damaged record raises ``DocumentDecodeError`` like any other read; nothing
is skipped.
"""

from __future__ import annotations

import logging

from checkpoint.core.ledger import LedgerStore
from checkpoint.core.lifecycle import CheckpointLifecycle
from checkpoint.errors import LedgerError
from checkpoint.models.entry import CheckpointEntry
from checkpoint.models.history import (
    CheckpointDigest,
    ProjectSummary,
    SearchMatch,
    SearchResult,
)

logger = logging.getLogger(__name__)

DEFAULT_RECENT = 5


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------


def recent_checkpoints(
    entries: list[CheckpointEntry], limit: int = DEFAULT_RECENT
) -> list[CheckpointDigest]:
    """Digest the last ``limit`` records, most recent first."""
    if limit <= 0:
        return []
    first = max(len(entries) - limit, 0)
    digests: list[CheckpointDigest] = []
    for index in range(len(entries) - 1, first - 1, -1):
        entry = entries[index]
        digests.append(
            CheckpointDigest(
                position=index + 1,
                timestamp=entry.timestamp,
                commit_id=entry.commit_id,
                summary=entry.changes[0].summary if entry.changes else "",
                change_count=len(entry.changes),
            )
        )
    return digests


def summarize(
    lifecycle: CheckpointLifecycle, *, limit: int = DEFAULT_RECENT
) -> ProjectSummary:
    """Summarize a project's ledger and working tree.

    Raises
    ------
    LedgerError
        If the project has no ledger yet.
    """
    ledger = lifecycle.ledger
    if not ledger.exists():
        raise LedgerError(
            f"checkpoint not initialized: no ledger at {ledger.path}",
            hint=f"Run 'checkpoint init {lifecycle.project_path}' first.",
        )

    status = lifecycle.status()
    meta = ledger.read_header()
    entries = ledger.read_entries()
    last = entries[-1] if entries else None
    logger.debug("Summarized %d record(s) from %s", len(entries), ledger.path)

    return ProjectSummary(
        project_path=lifecycle.project_path,
        project_id=meta.project_id if meta is not None else "",
        checkpoint_count=len(entries),
        last_checkpoint_timestamp=last.timestamp if last else "",
        last_commit_id=last.commit_id if last else "",
        in_progress=status.in_progress,
        is_repository=status.is_repository,
        working_tree_changes=status.working_tree_changes,
        recent=recent_checkpoints(entries, limit),
        next_steps=list(last.next_steps) if last else [],
    )


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


def _matches(texts: list[str | None], needle: str) -> bool:
    return any(text and needle in text.lower() for text in texts)


def _in_scope(scope: str | None, wanted: str | None) -> bool:
    if not wanted:
        return True
    return bool(scope) and wanted.lower() in scope.lower()


def search_entries(
    entries: list[CheckpointEntry],
    query: str,
    *,
    scope: str | None = None,
    recent: int = 0,
) -> list[SearchMatch]:
    """Find changes and next steps whose text contains ``query``.

    Matching is a case-insensitive substring test over summary, details,
    change type or priority, and scope.  ``scope`` keeps only items whose
    scope contains it; items without a scope are then excluded.
    ``recent`` limits the scan to the last N records (0 means all).

    Raises
    ------
    ValueError
        If ``query`` is blank.
    """
    needle = query.strip().lower()
    if not needle:
        raise ValueError("search query must not be blank")

    first = max(len(entries) - recent, 0) if recent > 0 else 0
    matches: list[SearchMatch] = []
    for index in range(first, len(entries)):
        entry = entries[index]
        for change in entry.changes:
            texts = [change.summary, change.details, change.change_type, change.scope]
            if _in_scope(change.scope, scope) and _matches(texts, needle):
                matches.append(
                    SearchMatch(
                        position=index + 1,
                        timestamp=entry.timestamp,
                        commit_id=entry.commit_id,
                        section="changes",
                        summary=change.summary,
                        details=change.details,
                        kind=change.change_type,
                        scope=change.scope,
                    )
                )
        for step in entry.next_steps:
            texts = [step.summary, step.details, step.priority, step.scope]
            if _in_scope(step.scope, scope) and _matches(texts, needle):
                matches.append(
                    SearchMatch(
                        position=index + 1,
                        timestamp=entry.timestamp,
                        commit_id=entry.commit_id,
                        section="next_steps",
                        summary=step.summary,
                        details=step.details,
                        kind=step.priority or "",
                        scope=step.scope,
                    )
                )
    return matches


def search_ledger(
    store: LedgerStore,
    query: str,
    *,
    scope: str | None = None,
    recent: int = 0,
) -> SearchResult:
    """Search every record in ``store``.  A missing ledger has no matches."""
    entries = store.read_entries()
    matches = search_entries(entries, query, scope=scope, recent=recent)
    logger.debug("Search %r matched %d item(s) in %s", query, len(matches), store.path)
    searched = min(recent, len(entries)) if recent > 0 else len(entries)
    return SearchResult(
        query=query,
        scope=scope,
        recent=recent,
        records_searched=searched,
        matches=matches,
    )
