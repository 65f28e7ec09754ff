"""Unit tests for the CLI — Typer command registration and basic behavior.

Commands run through typer.testing.CliRunner against a fake VCS.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from checkpoint import __version__
from checkpoint.cli import _common
from checkpoint.cli.app import app
from checkpoint.config import config
from checkpoint.core.ledger import LedgerStore

runner = CliRunner()

COMMANDS = (
    "init", "check", "commit", "clean", "start", "lint", "summary", "search", "project",
)


@pytest.fixture(autouse=True)
def use_fake_vcs(monkeypatch, fake_vcs):
    monkeypatch.setattr(_common, "vcs_factory", lambda: fake_vcs)


def _invoke(*args: str):
    return runner.invoke(app, list(args))


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = _invoke()
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = _invoke("--help")
        assert result.exit_code == 0
        for name in COMMANDS:
            assert name in result.output

    def test_version(self):
        result = _invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    @pytest.mark.parametrize("command", COMMANDS)
    def test_command_help(self, command):
        assert _invoke(command, "--help").exit_code == 0


# ---------------------------------------------------------------------------
# Test: lifecycle commands
# ---------------------------------------------------------------------------


class TestInit:
    def test_creates_ledger(self, project):
        result = _invoke("init", str(project))
        assert result.exit_code == 0
        assert "Ledger created" in result.output
        assert "Project ID:" in result.output
        assert LedgerStore(project / config.ledger_file_name).read_header() is not None
        assert (project / ".gitignore").exists()

    def test_second_init_is_a_no_op(self, project):
        _invoke("init", str(project))
        ledger = project / config.ledger_file_name
        before = ledger.read_bytes()
        result = _invoke("init", str(project))
        assert result.exit_code == 0
        assert "Ledger ready" in result.output
        assert ledger.read_bytes() == before


class TestCheck:
    def test_generates_draft(self, project):
        result = _invoke("check", str(project))
        assert result.exit_code == 0
        assert "Checkpoint input generated" in result.output
        assert (project / config.draft_file_name).exists()

    def test_conflict_reports_state_and_next(self, project):
        _invoke("check", str(project))
        result = _invoke("check", str(project))
        assert result.exit_code == 1
        assert "error:" in result.output
        assert "state:" in result.output
        assert "next:" in result.output

    def test_not_a_repository(self, project, fake_vcs):
        fake_vcs.repository = False
        result = _invoke("check", str(project))
        assert result.exit_code == 1
        assert "error:" in result.output
        assert not (project / config.lock_file_name).exists()


class TestCommit:
    def _prepare(self, project: Path, lifecycle, write_draft) -> None:
        assert _invoke("check", str(project)).exit_code == 0
        write_draft(lifecycle)

    def test_commits(self, project, lifecycle, write_draft):
        self._prepare(project, lifecycle, write_draft)
        result = _invoke("commit", str(project))
        assert result.exit_code == 0
        assert "Checkpoint committed" in result.output
        assert "abc123" in result.output
        assert lifecycle.ledger.last_entry().commit_id == "abc123"
        assert not lifecycle.draft_path.exists()

    def test_dry_run(self, project, lifecycle, write_draft):
        self._prepare(project, lifecycle, write_draft)
        result = _invoke("commit", "--dry-run", str(project))
        assert result.exit_code == 0
        assert "[dry-run] Would commit with message:" in result.output
        assert "Checkpoint: feature (auth) - Add login" in result.output
        assert "  - .checkpoint-changelog.yaml" in result.output
        assert not lifecycle.ledger.exists()
        assert lifecycle.draft_path.exists()

    def test_validation_failure(self, project, lifecycle):
        _invoke("check", str(project))
        result = _invoke("commit", str(project))
        assert result.exit_code == 1
        assert "validation failed" in result.output
        assert "placeholder" in result.output
        assert not lifecycle.ledger.exists()

    def test_without_check(self, project):
        result = _invoke("commit", str(project))
        assert result.exit_code == 1
        assert "checkpoint check" in result.output

    def test_partial_commit_reports_phase(self, project, lifecycle, write_draft, fake_vcs):
        self._prepare(project, lifecycle, write_draft)
        fake_vcs.fail_on = {"commit"}
        result = _invoke("commit", str(project))
        assert result.exit_code == 1
        assert "failed phase:" in result.output
        assert lifecycle.ledger.count_entries() == 1


class TestClean:
    def test_nothing_to_clean(self, project):
        result = _invoke("clean", str(project))
        assert result.exit_code == 0
        assert "Nothing to clean" in result.output

    def test_removes_sentinels(self, project):
        _invoke("check", str(project))
        result = _invoke("clean", str(project))
        assert result.exit_code == 0
        assert "Removed .checkpoint-lock" in result.output
        assert "Removed .checkpoint-input" in result.output
        assert not (project / config.lock_file_name).exists()


class TestLint:
    def test_unfilled_draft_reports_issues(self, project):
        _invoke("check", str(project))
        result = _invoke("lint", str(project))
        assert result.exit_code == 0
        assert "Lint issues found" in result.output
        assert "Validation errors" in result.output

    def test_clean_draft(self, project, lifecycle, write_draft):
        _invoke("check", str(project))
        write_draft(lifecycle)
        result = _invoke("lint", str(project))
        assert result.exit_code == 0
        assert "No lint issues found" in result.output
        assert "Changes: 1" in result.output

    def test_without_draft(self, project):
        assert _invoke("lint", str(project)).exit_code == 1


class TestStart:
    def test_ready(self, project):
        result = _invoke("start", str(project))
        assert result.exit_code == 0
        assert "Ready" in result.output
        assert "Working tree changes:" in result.output

    def test_in_progress(self, project):
        _invoke("check", str(project))
        result = _invoke("start", str(project))
        assert result.exit_code == 0
        assert "Checkpoint in progress" in result.output
        assert "pid=" in result.output

    def test_next_steps_table(self, project, ledger, make_entry, next_step):
        ledger.initialize("test")
        ledger.append(
            make_entry(commit_id="c1", next_steps=[next_step("Ship it", "high"), next_step("Tidy", None)])
        )
        result = _invoke("start", str(project))
        assert result.exit_code == 0
        assert "Next Steps" in result.output
        assert "Ship it" in result.output
        assert "Checkpoints: 1" in result.output

    def test_not_a_repository(self, project, fake_vcs):
        fake_vcs.repository = False
        result = _invoke("start", str(project))
        assert result.exit_code == 1
        assert "error:" in result.output


class TestSummary:
    def test_without_ledger(self, project):
        result = _invoke("summary", str(project))
        assert result.exit_code == 1
        assert "not initialized" in result.output
        assert "checkpoint init" in result.output

    def test_recent_activity_and_next_steps(self, project, ledger, make_entry, next_step):
        ledger.initialize("test")
        ledger.append(make_entry("Add login", commit_id="c1"))
        ledger.append(
            make_entry("Fix logout", "fix", commit_id="c2", next_steps=[next_step("Ship", "high")])
        )
        result = _invoke("summary", str(project))
        assert result.exit_code == 0
        assert "Checkpoints: 2" in result.output
        assert "Recent Activity" in result.output
        assert "logout" in result.output
        assert "Next Steps" in result.output
        assert "uncommitted" in result.output

    def test_json(self, project, ledger, make_entry):
        meta = ledger.initialize("test")
        ledger.append(make_entry(commit_id="c1"))
        result = _invoke("summary", str(project), "--json")
        assert result.exit_code == 0
        assert '"checkpoint_count": 1' in result.output
        assert f'"project_id": "{meta.project_id}"' in result.output
        assert '"last_commit_id": "c1"' in result.output

    def test_damaged_ledger(self, project, ledger):
        ledger.initialize("test")
        with ledger.path.open("a", encoding="utf-8") as f:
            f.write("---\nchanges: [unclosed\n")
        result = _invoke("summary", str(project))
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "next:" in result.output


class TestSearch:
    @pytest.fixture
    def history(self, ledger, make_entry, next_step):
        ledger.initialize("test")
        ledger.append(make_entry("Add login", commit_id="c1"))
        ledger.append(
            make_entry("Fix cache", "fix", commit_id="c2", next_steps=[next_step("Login audit", "high")])
        )
        return ledger

    def test_matches_changes_and_next_steps(self, project, history):
        result = _invoke("search", "LOGIN", str(project))
        assert result.exit_code == 0
        assert "2 match(es)" in result.output
        assert "next_steps" in result.output

    def test_no_matches(self, project, history):
        result = _invoke("search", "payments", str(project))
        assert result.exit_code == 0
        assert "No matches found" in result.output

    def test_recent_limits_records(self, project, history):
        result = _invoke("search", "login", str(project), "--recent", "1", "--json")
        assert result.exit_code == 0
        assert '"records_searched": 1' in result.output
        assert '"section": "next_steps"' in result.output
        assert '"section": "changes"' not in result.output

    def test_blank_query(self, project):
        result = _invoke("search", "  ", str(project))
        assert result.exit_code == 1
        assert "search query required" in result.output

    def test_missing_ledger_has_no_matches(self, project):
        result = _invoke("search", "login", str(project))
        assert result.exit_code == 0
        assert "No matches found" in result.output


# ---------------------------------------------------------------------------
# Test: discovery
# ---------------------------------------------------------------------------


class TestProject:
    def test_found(self, tmp_path):
        (tmp_path / "alpha").mkdir()
        meta = LedgerStore(tmp_path / "alpha" / config.ledger_file_name).initialize("test")
        result = _invoke("project", meta.project_id, "--root", str(tmp_path))
        assert result.exit_code == 0
        assert '"status": "ok"' in result.output
        assert meta.project_id in result.output

    def test_not_found(self, tmp_path):
        result = _invoke("project", "01MISSING", "--root", str(tmp_path))
        assert result.exit_code == 1
        assert '"status": "not_found"' in result.output

    def test_damaged_ledger_reports_instead_of_crashing(self, tmp_path):
        (tmp_path / "alpha").mkdir()
        store = LedgerStore(tmp_path / "alpha" / config.ledger_file_name)
        meta = store.initialize("test")
        with store.path.open("a", encoding="utf-8") as f:
            f.write("---\nchanges: [unclosed\n")
        result = _invoke("project", meta.project_id, "--root", str(tmp_path))
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "error:" in result.output
        assert "malformed" in result.output
        assert "next:" in result.output

    def test_no_roots_configured(self, monkeypatch, tmp_path):
        monkeypatch.setattr(config, "roots", "")
        monkeypatch.setattr(config, "global_config_path", tmp_path / "missing.json")
        result = _invoke("project", "01ANY")
        assert result.exit_code == 1
        assert "no discovery roots" in result.output
