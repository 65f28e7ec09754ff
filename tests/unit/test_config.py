"""Tests for runtime config — env-driven settings and discovery roots."""

from __future__ import annotations

import json
from pathlib import Path

from checkpoint.config import CheckpointConfig, resolve_roots


class TestCheckpointConfig:
    def test_default_file_names(self):
        config = CheckpointConfig()
        assert config.ledger_file_name == ".checkpoint-changelog.yaml"
        assert config.draft_file_name == ".checkpoint-input"
        assert config.diff_file_name == ".checkpoint-diff"
        assert config.lock_file_name == ".checkpoint-lock"

    def test_sentinel_names_exclude_ledger(self):
        config = CheckpointConfig()
        assert config.sentinel_names == (
            ".checkpoint-lock",
            ".checkpoint-input",
            ".checkpoint-diff",
        )
        assert config.ledger_file_name not in config.sentinel_names

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CHECKPOINT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("CHECKPOINT_LEDGER_FILE_NAME", "changes.yaml")
        config = CheckpointConfig()
        assert config.log_level == "DEBUG"
        assert config.ledger_file_name == "changes.yaml"

    def test_default_global_config_path(self):
        config = CheckpointConfig()
        assert config.global_config_path == Path("~/.config/checkpoint/config.json")


class TestResolveRoots:
    def _cfg(self, tmp_path: Path, roots: str = "", global_roots=None) -> CheckpointConfig:
        global_path = tmp_path / "config.json"
        if global_roots is not None:
            global_path.write_text(json.dumps({"roots": global_roots}), encoding="utf-8")
        return CheckpointConfig(roots=roots, global_config_path=global_path)

    def test_flags_win(self, tmp_path):
        cfg = self._cfg(tmp_path, roots=str(tmp_path / "env"), global_roots=[str(tmp_path / "g")])
        assert resolve_roots([str(tmp_path / "flag")], cfg) == [(tmp_path / "flag").resolve()]

    def test_env_setting_before_global_file(self, tmp_path):
        cfg = self._cfg(
            tmp_path,
            roots=f"{tmp_path / 'b'}, {tmp_path / 'a'}",
            global_roots=[str(tmp_path / "g")],
        )
        assert resolve_roots(None, cfg) == [(tmp_path / "a").resolve(), (tmp_path / "b").resolve()]

    def test_global_file_fallback(self, tmp_path):
        cfg = self._cfg(tmp_path, global_roots=[str(tmp_path / "g")])
        assert resolve_roots([], cfg) == [(tmp_path / "g").resolve()]

    def test_deduplicates(self, tmp_path):
        cfg = self._cfg(tmp_path)
        roots = resolve_roots([str(tmp_path / "x"), str(tmp_path / "x" / ".." / "x")], cfg)
        assert roots == [(tmp_path / "x").resolve()]

    def test_expands_user(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        cfg = self._cfg(tmp_path)
        assert resolve_roots(["~/src"], cfg) == [(tmp_path / "src").resolve()]

    def test_nothing_configured(self, tmp_path):
        assert resolve_roots(None, self._cfg(tmp_path)) == []

    def test_unreadable_global_file_is_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
        cfg = CheckpointConfig(global_config_path=tmp_path / "config.json")
        assert resolve_roots(None, cfg) == []

    def test_non_list_roots_ignored(self, tmp_path):
        cfg = self._cfg(tmp_path, global_roots="~/src")
        assert resolve_roots(None, cfg) == []
