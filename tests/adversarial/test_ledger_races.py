"""Adversarial tests — concurrent writers racing the ledger.

These tests verify that:
1. An append never lands after a record it did not observe
2. A backfill never rewrites a record it did not append
3. A rewrite aborted by a concurrent writer leaves that writer's bytes intact
4. No temp files survive an aborted rewrite
"""

from __future__ import annotations

from pathlib import Path

import pytest

from checkpoint.core.ledger import LedgerStore
from checkpoint.errors import ConcurrentModificationError

INTRUDER = "---\nschema_version: '1'\ncommit_id: intruder\nchanges: []\n"


def _intrude(path: Path) -> None:
    with path.open("a", encoding="utf-8") as f:
        f.write(INTRUDER)


@pytest.fixture
def seeded(ledger: LedgerStore, make_entry) -> LedgerStore:
    ledger.initialize("test")
    ledger.append(make_entry(commit_id="c1"))
    ledger.append(make_entry("Fix logout", "fix"))
    return ledger


class TestAppendRaces:
    def test_append_after_unseen_write_is_refused(self, seeded, make_entry):
        observed = seeded.size()
        _intrude(seeded.path)
        after_intruder = seeded.path.read_bytes()
        with pytest.raises(ConcurrentModificationError):
            seeded.append(make_entry("Late"), expected_size=observed)
        assert seeded.path.read_bytes() == after_intruder

    def test_append_after_truncation_is_refused(self, seeded, make_entry):
        observed = seeded.size()
        seeded.path.write_text(seeded.path.read_text(encoding="utf-8")[:-10], encoding="utf-8")
        with pytest.raises(ConcurrentModificationError):
            seeded.append(make_entry("Late"), expected_size=observed)


class TestBackfillRaces:
    def test_backfill_after_intruder_append_is_refused(self, seeded):
        appended_size = seeded.size()
        _intrude(seeded.path)
        after_intruder = seeded.path.read_bytes()
        with pytest.raises(ConcurrentModificationError):
            seeded.backfill_commit_id("abc", expected_size=appended_size)
        assert seeded.path.read_bytes() == after_intruder
        assert seeded.read_entries()[-1].commit_id == "intruder"

    def test_write_during_rewrite_aborts(self, seeded):
        def _mutate_while_intruding(entry):
            _intrude(seeded.path)
            return entry.model_copy(update={"commit_id": "abc"})

        with pytest.raises(ConcurrentModificationError):
            seeded.update_last(_mutate_while_intruding)

        text = seeded.path.read_text(encoding="utf-8")
        assert text.endswith(INTRUDER)
        assert [e.commit_id for e in seeded.read_entries()] == ["c1", "", "intruder"]

    def test_aborted_rewrite_leaves_no_temp_files(self, seeded):
        def _mutate_while_intruding(entry):
            _intrude(seeded.path)
            return entry

        with pytest.raises(ConcurrentModificationError):
            seeded.update_last(_mutate_while_intruding)
        assert sorted(p.name for p in seeded.path.parent.iterdir()) == [seeded.path.name]

    def test_uncontested_backfill_succeeds(self, seeded):
        updated = seeded.backfill_commit_id("abc", expected_size=seeded.size())
        assert updated.commit_id == "abc"
        assert [e.commit_id for e in seeded.read_entries()] == ["c1", "abc"]


class TestInitializeRaces:
    def test_concurrent_creation_is_detected(self, ledger: LedgerStore, monkeypatch):
        # Another process creates the ledger between the existence check and create.
        original_exists = Path.exists

        def _exists_then_create(self):
            if self == ledger.path and not original_exists(self):
                self.write_text(INTRUDER, encoding="utf-8")
                return False
            return original_exists(self)

        monkeypatch.setattr(Path, "exists", _exists_then_create)
        with pytest.raises(ConcurrentModificationError):
            ledger.initialize("test")
        monkeypatch.undo()
        assert ledger.path.read_text(encoding="utf-8") == INTRUDER
