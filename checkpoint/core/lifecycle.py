"""Checkpoint lifecycle controller — the check → edit → commit workflow.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- One operation at a time per project, via lock and draft sentinels
- Validation before any ledger mutation (fail-closed)
- initialize → append → stage → commit → backfill, strictly in order
- No automatic retry once the external commit has been attempted

On-disk state is derived from sentinel existence alone: a lock or draft
means a checkpoint is awaiting input, otherwise the project is idle.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from checkpoint import __version__
from checkpoint.config import CheckpointConfig, config as default_config
from checkpoint.core.codec import decode_draft
from checkpoint.core.draft import build_commit_message, parse_numstat, render_draft
from checkpoint.core.ledger import LedgerStore
from checkpoint.core.validation import collect_violations, lint_entry, validate_entry
from checkpoint.core.vcs import GitCLI, VersionControl
from checkpoint.errors import (
    CheckpointError,
    ConflictError,
    IOFailureError,
    InvalidTransitionError,
    NotARepositoryError,
    PartialCommitError,
    VCSError,
)
from checkpoint.models.entry import TRANSIENT_FIELDS, CheckpointEntry, DraftEntry
from checkpoint.models.lifecycle import (
    VALID_TRANSITIONS,
    CommitResult,
    LifecycleState,
    LifecycleStatus,
    LintReport,
    PrepareResult,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


def _porcelain_paths(status: str) -> list[str]:
    paths: list[str] = []
    for line in status.splitlines():
        if len(line) < 4:
            continue
        name = line[3:]
        if " -> " in name:
            name = name.split(" -> ", 1)[1]
        paths.append(name.strip('"'))
    return paths


class CheckpointLifecycle:
    """Drives one project's checkpoint cycle.

    Parameters
    ----------
    project_path:
        The project directory (the ledger and sentinels live here).
    vcs:
        Version-control collaborator; defaults to ``GitCLI``.
    cfg:
        File names and settings; defaults to the module-level config.
    tool_version:
        Recorded in the identity header of a newly created ledger.
    """

    def __init__(
        self,
        project_path: Path,
        vcs: VersionControl | None = None,
        *,
        cfg: CheckpointConfig | None = None,
        tool_version: str = __version__,
    ) -> None:
        self._path = Path(project_path).resolve()
        self._vcs = vcs or GitCLI()
        self._cfg = cfg or default_config
        self._tool_version = tool_version
        self._ledger = LedgerStore(self._path / self._cfg.ledger_file_name)
        self._state = self._observed_state()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def project_path(self) -> Path:
        return self._path

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    @property
    def lock_path(self) -> Path:
        return self._path / self._cfg.lock_file_name

    @property
    def draft_path(self) -> Path:
        return self._path / self._cfg.draft_file_name

    @property
    def diff_path(self) -> Path:
        return self._path / self._cfg.diff_file_name

    @property
    def sentinel_paths(self) -> list[Path]:
        return [self._path / name for name in self._cfg.sentinel_names]

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        return self._state

    def _observed_state(self) -> LifecycleState:
        if self.lock_path.exists() or self.draft_path.exists():
            return LifecycleState.AWAITING_INPUT
        return LifecycleState.IDLE

    def _transition(self, target: LifecycleState) -> None:
        current = self._state
        allowed = VALID_TRANSITIONS.get(current, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition from {current.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.info("%s: %s -> %s", self._path, current.value, target.value)
        self._state = target

    def _require_repository(self) -> None:
        if not self._vcs.is_repository(self._path):
            raise NotARepositoryError(
                f"{self._path} is not a git repository",
                hint=f"Run 'git init' in {self._path}, then retry.",
            )

    def _resolve_hint(self) -> str:
        return (
            f"Run 'checkpoint commit {self._path}' to finish the checkpoint "
            f"or 'checkpoint clean {self._path}' to discard it."
        )

    # ------------------------------------------------------------------
    # Sentinel I/O
    # ------------------------------------------------------------------

    def _create_sentinel(self, path: Path, text: str, *, exclusive: bool = True) -> None:
        try:
            with path.open("x" if exclusive else "w", encoding="utf-8") as f:
                f.write(text)
        except FileExistsError as exc:
            raise ConflictError(
                f"{path.name} already exists at {path}; "
                "another checkpoint operation is in progress",
                hint=self._resolve_hint(),
            ) from exc
        except OSError as exc:
            raise IOFailureError("create", path, exc) from exc

    def _remove_sentinels(self, paths: list[Path]) -> list[Path]:
        removed: list[Path] = []
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise IOFailureError("remove", path, exc) from exc
            removed.append(path)
        return removed

    def _read_draft(self) -> DraftEntry:
        if not self.draft_path.exists():
            raise InvalidTransitionError(
                f"no checkpoint in progress: draft not found at {self.draft_path}",
                hint=f"Run 'checkpoint check {self._path}' to start one.",
            )
        try:
            text = self.draft_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IOFailureError("read", self.draft_path, exc) from exc
        return decode_draft(text)

    @property
    def gitignore_path(self) -> Path:
        return self._path / ".gitignore"

    def _read_gitignore(self) -> str:
        gitignore = self.gitignore_path
        try:
            return gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
        except OSError as exc:
            raise IOFailureError("read", gitignore, exc) from exc

    def _unignored_sentinels(self, existing: str) -> list[str]:
        present = {line.strip() for line in existing.splitlines()}
        return [name for name in self._cfg.sentinel_names if name not in present]

    def ensure_gitignore(self) -> bool:
        """Add the sentinel names to the project's .gitignore.

        Sentinels must never be swept into a commit by ``stage_all``.
        Returns ``True`` if .gitignore was created or changed.
        """
        gitignore = self.gitignore_path
        existing = self._read_gitignore()
        missing = self._unignored_sentinels(existing)
        if not missing:
            return False

        block = "# Checkpoint artifacts (temporary files, not tracked)\n"
        block += "".join(f"{name}\n" for name in missing)
        if existing and not existing.endswith("\n"):
            existing += "\n"
        if existing:
            existing += "\n"
        try:
            gitignore.write_text(existing + block, encoding="utf-8")
        except OSError as exc:
            raise IOFailureError("write", gitignore, exc) from exc
        logger.info("Added %d sentinel name(s) to %s", len(missing), gitignore)
        return True

    # ------------------------------------------------------------------
    # start: read-only query
    # ------------------------------------------------------------------

    def status(self) -> LifecycleStatus:
        """Report sentinel presence, ledger size and carried next steps."""
        is_repository = self._vcs.is_repository(self._path)
        lock_info = ""
        if self.lock_path.exists():
            try:
                lock_info = self.lock_path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                raise IOFailureError("read", self.lock_path, exc) from exc

        entries = self._ledger.read_entries()
        changes = 0
        if is_repository:
            changes = len(_porcelain_paths(self._vcs.status(self._path)))

        return LifecycleStatus(
            project_path=self._path,
            state=self._observed_state(),
            is_repository=is_repository,
            lock_exists=self.lock_path.exists(),
            draft_exists=self.draft_path.exists(),
            diff_exists=self.diff_path.exists(),
            lock_info=lock_info,
            ledger_exists=self._ledger.exists(),
            checkpoint_count=len(entries),
            working_tree_changes=changes,
            next_steps=list(entries[-1].next_steps) if entries else [],
        )

    # ------------------------------------------------------------------
    # check: IDLE -> PREPARING -> AWAITING_INPUT
    # ------------------------------------------------------------------

    def prepare(self) -> PrepareResult:
        """Create the lock, diff and draft sentinels for a new checkpoint.

        The sentinel names are added to .gitignore first so a later
        ``stage_all`` cannot pick them up.
        """
        self._require_repository()
        for path in (self.lock_path, self.draft_path):
            if path.exists():
                raise ConflictError(
                    f"{path.name} already exists at {path}; "
                    "a checkpoint is already in progress or a previous one crashed",
                    hint=self._resolve_hint(),
                )
        self.ensure_gitignore()
        self._state = self._observed_state()
        self._transition(LifecycleState.PREPARING)

        created: list[Path] = []
        try:
            self._create_sentinel(
                self.lock_path, f"pid={os.getpid()}\ntimestamp={_now()}\n"
            )
            created.append(self.lock_path)

            status = self._vcs.status(self._path)
            diff = self._vcs.combined_diff(self._path)
            files = parse_numstat(self._vcs.diff_numstat(self._path))

            self._create_sentinel(self.diff_path, diff, exclusive=False)
            created.append(self.diff_path)

            meta = self._ledger.read_header()
            last = self._ledger.last_entry()
            carried = list(last.next_steps) if last else []
            if meta is not None:
                logger.debug("Project %s has prior next steps: %d", meta.project_id, len(carried))

            self._create_sentinel(
                self.draft_path,
                render_draft(status, self._cfg.diff_file_name, carried, files),
            )
            created.append(self.draft_path)
        except BaseException:
            self._remove_sentinels(created)
            self._transition(LifecycleState.IDLE)
            raise

        self._transition(LifecycleState.AWAITING_INPUT)
        return PrepareResult(
            draft_path=self.draft_path,
            diff_path=self.diff_path,
            lock_path=self.lock_path,
            carried_next_steps=len(carried),
            files_changed=len(files),
        )

    # ------------------------------------------------------------------
    # commit: AWAITING_INPUT -> FINALIZING -> IDLE
    # ------------------------------------------------------------------

    def finalize(
        self, *, dry_run: bool = False, changelog_only: bool = False
    ) -> CommitResult:
        """Validate the draft, append it, commit, and backfill the commit id.

        Nothing is mutated if validation fails or ``dry_run`` is set.  A VCS
        or backfill failure after the append raises ``PartialCommitError``;
        the record stays in the ledger and the sentinels stay in place.
        """
        self._require_repository()
        draft = self._read_draft()
        self._state = self._observed_state()
        self._transition(LifecycleState.FINALIZING)

        try:
            entry = CheckpointEntry.model_validate(
                draft.model_dump(exclude=set(TRANSIENT_FIELDS))
            ).model_copy(update={"commit_id": ""})
            validate_entry(entry)
            if not entry.timestamp:
                entry = entry.model_copy(update={"timestamp": _now()})
            message = build_commit_message(entry)

            ledger_name = self._cfg.ledger_file_name
            if changelog_only:
                staged = [ledger_name]
            else:
                sentinels = set(self._cfg.sentinel_names)
                changed = {
                    p for p in _porcelain_paths(self._vcs.status(self._path))
                    if p not in sentinels
                }
                if self._unignored_sentinels(self._read_gitignore()):
                    changed.add(self.gitignore_path.name)
                staged = sorted(changed | {ledger_name})

            if dry_run:
                self._transition(LifecycleState.AWAITING_INPUT)
                return CommitResult(
                    message=message,
                    ledger_path=self._ledger.path,
                    staged=staged,
                    dry_run=True,
                    changes=len(entry.changes),
                )

            self._guard_interrupted_commit(entry)
            if not changelog_only:
                self.ensure_gitignore()
            self._ledger.initialize(self._tool_version)
            self._ledger.append(entry, expected_size=self._ledger.size())
            appended_size = self._ledger.size()
        except CheckpointError:
            self._transition(LifecycleState.AWAITING_INPUT)
            raise

        commit_id = self._commit(message, changelog_only=changelog_only)
        self._backfill(commit_id, appended_size)

        self._remove_sentinels(self.sentinel_paths)
        self._transition(LifecycleState.IDLE)
        logger.info("Checkpoint committed in %s as %s", self._path, commit_id)
        return CommitResult(
            message=message,
            ledger_path=self._ledger.path,
            staged=staged,
            commit_id=commit_id,
            changes=len(entry.changes),
        )

    def _guard_interrupted_commit(self, entry: CheckpointEntry) -> None:
        last = self._ledger.last_entry()
        if last is not None and not last.commit_id and last.changes == entry.changes:
            raise ConflictError(
                f"the last record in {self._ledger.path} matches this draft and has "
                "no commit_id; a previous commit was interrupted after the append",
                hint=(
                    "Commit manually, set commit_id on the last record, then run "
                    f"'checkpoint clean {self._path}'."
                ),
            )

    def _commit(self, message: str, *, changelog_only: bool) -> str:
        phase = "stage"
        try:
            if changelog_only:
                self._vcs.stage_file(self._path, self._cfg.ledger_file_name)
            else:
                self._vcs.stage_all(self._path)
            phase = "commit"
            return self._vcs.commit(self._path, message)
        except VCSError as exc:
            self._transition(LifecycleState.AWAITING_INPUT)
            logger.warning("Partial commit in %s: %s failed: %s", self._path, phase, exc)
            raise PartialCommitError(
                f"checkpoint record appended to {self._ledger.path} but git {phase} "
                f"failed: {exc}",
                phase=phase,
                ledger_path=self._ledger.path,
                hint=(
                    "Do not re-run 'checkpoint commit'. Fix the git problem, run "
                    f"git commit -m \"{message}\", set commit_id on the last record "
                    f"of {self._ledger.path}, then run 'checkpoint clean {self._path}'."
                ),
            ) from exc

    def _backfill(self, commit_id: str, appended_size: int) -> None:
        try:
            self._ledger.backfill_commit_id(commit_id, expected_size=appended_size)
        except CheckpointError as exc:
            self._transition(LifecycleState.AWAITING_INPUT)
            logger.warning(
                "Partial commit in %s: backfill of %s failed: %s",
                self._path,
                commit_id,
                exc,
            )
            raise PartialCommitError(
                f"commit {commit_id} succeeded but writing its id into "
                f"{self._ledger.path} failed: {exc}",
                phase="backfill",
                ledger_path=self._ledger.path,
                commit_id=commit_id,
                hint=(
                    f"Set 'commit_id: {commit_id}' on the last record of "
                    f"{self._ledger.path}, then run 'checkpoint clean {self._path}'."
                ),
            ) from exc

    # ------------------------------------------------------------------
    # clean: AWAITING_INPUT | FINALIZING -> ABORTING -> IDLE
    # ------------------------------------------------------------------

    def abort(self) -> list[Path]:
        """Delete every sentinel.  Idempotent; never touches the ledger.

        Returns the sentinels that were actually removed.
        """
        self._state = self._observed_state()
        if self._state == LifecycleState.IDLE:
            removed = self._remove_sentinels(self.sentinel_paths)
        else:
            self._transition(LifecycleState.ABORTING)
            removed = self._remove_sentinels(self.sentinel_paths)
            self._transition(LifecycleState.IDLE)
        if removed:
            logger.info("Removed %d sentinel(s) from %s", len(removed), self._path)
        return removed

    # ------------------------------------------------------------------
    # lint: advisory, read-only
    # ------------------------------------------------------------------

    def lint(self) -> LintReport:
        """Validate and lint the current draft without changing anything."""
        draft = self._read_draft()
        return LintReport(
            draft_path=self.draft_path,
            violations=collect_violations(draft),
            warnings=lint_entry(draft),
            changes=len(draft.changes),
            next_steps=len(draft.next_steps),
        )
