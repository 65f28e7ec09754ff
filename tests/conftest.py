"""Shared test fixtures for checkpoint."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from checkpoint.config import CheckpointConfig
from checkpoint.core.codec import dump_yaml
from checkpoint.core.lifecycle import CheckpointLifecycle
from checkpoint.core.ledger import LedgerStore
from checkpoint.errors import VCSError
from checkpoint.models.entry import Change, CheckpointEntry, NextStep


class FakeVCS:
    """In-memory ``VersionControl`` that records every call.

    Set ``fail_on`` to method names that should raise ``VCSError``, and
    ``on_commit`` to run a side effect while the commit is "in flight".
    """

    def __init__(self) -> None:
        self.repository = True
        self.status_text = " M src/app.py\n?? notes.md\n"
        self.diff_text = "## Unstaged changes (git diff)\ndiff --git a/src/app.py b/src/app.py\n"
        self.numstat_text = "10\t2\tsrc/app.py\n"
        self.commit_id = "abc123"
        self.fail_on: set[str] = set()
        self.on_commit: Callable[[], None] | None = None
        self.calls: list[tuple[Any, ...]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise VCSError(f"simulated {name} failure")

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def is_repository(self, path: Path) -> bool:
        self._record("is_repository")
        return self.repository

    def status(self, path: Path) -> str:
        self._record("status")
        return self.status_text

    def combined_diff(self, path: Path) -> str:
        self._record("combined_diff")
        return self.diff_text

    def diff_numstat(self, path: Path) -> str:
        self._record("diff_numstat")
        return self.numstat_text

    def stage_all(self, path: Path) -> None:
        self._record("stage_all")

    def stage_file(self, path: Path, name: str) -> None:
        self._record("stage_file", name)

    def commit(self, path: Path, message: str) -> str:
        self._record("commit", message)
        if self.on_commit is not None:
            self.on_commit()
        return self.commit_id


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Provide an empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def cfg() -> CheckpointConfig:
    """Provide a config with default file names, isolated from the host."""
    return CheckpointConfig(roots="", global_config_path=Path("/nonexistent/config.json"))


@pytest.fixture
def fake_vcs() -> FakeVCS:
    return FakeVCS()


@pytest.fixture
def ledger(project: Path, cfg: CheckpointConfig) -> LedgerStore:
    """Provide a LedgerStore for a ledger that does not exist yet."""
    return LedgerStore(project / cfg.ledger_file_name)


@pytest.fixture
def lifecycle(project: Path, fake_vcs: FakeVCS, cfg: CheckpointConfig) -> CheckpointLifecycle:
    """Provide a CheckpointLifecycle wired to the fake VCS."""
    return CheckpointLifecycle(project, fake_vcs, cfg=cfg, tool_version="test")


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_entry() -> Callable[..., CheckpointEntry]:
    """Factory fixture: build a valid CheckpointEntry."""

    def _factory(
        summary: str = "Add login",
        change_type: str = "feature",
        **overrides: Any,
    ) -> CheckpointEntry:
        defaults: dict[str, Any] = {
            "timestamp": "2026-10-18T09:00:00+00:00",
            "changes": [Change(summary=summary, change_type=change_type)],
        }
        defaults.update(overrides)
        return CheckpointEntry(**defaults)

    return _factory


@pytest.fixture
def write_draft() -> Callable[..., Path]:
    """Factory fixture: overwrite a lifecycle's draft with filled-in content."""

    def _factory(
        lifecycle: CheckpointLifecycle,
        changes: list[dict[str, Any]] | None = None,
        next_steps: list[dict[str, Any]] | None = None,
    ) -> Path:
        data = {
            "schema_version": "1",
            "timestamp": "",
            "commit_id": "",
            "git_status": " M src/app.py\n",
            "diff_file": lifecycle.diff_path.name,
            "changes": changes
            if changes is not None
            else [{"summary": "Add login", "change_type": "feature", "scope": "auth"}],
            "next_steps": next_steps or [],
        }
        lifecycle.draft_path.write_text(dump_yaml(data), encoding="utf-8")
        return lifecycle.draft_path

    return _factory


@pytest.fixture
def next_step() -> Callable[..., NextStep]:
    def _factory(summary: str = "Write docs", priority: str | None = "med") -> NextStep:
        return NextStep(summary=summary, priority=priority)

    return _factory
