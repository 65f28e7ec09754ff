"""Tests for all Pydantic data models — validation, immutability, defaults."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from checkpoint.models import (
    SCHEMA_VERSION,
    VALID_TRANSITIONS,
    Change,
    ChangeType,
    CheckpointEntry,
    DraftEntry,
    LifecycleState,
    MetaDocument,
    Priority,
)


class TestLifecycleModels:
    def test_state_values(self):
        assert LifecycleState.IDLE == "idle"
        assert LifecycleState.AWAITING_INPUT == "awaiting_input"

    def test_idle_only_prepares(self):
        assert VALID_TRANSITIONS[LifecycleState.IDLE] == {LifecycleState.PREPARING}

    def test_every_state_can_return_to_idle(self):
        for state in LifecycleState:
            if state in (LifecycleState.IDLE, LifecycleState.AWAITING_INPUT):
                continue
            assert LifecycleState.IDLE in VALID_TRANSITIONS[state]

    def test_awaiting_input_cannot_skip_to_idle(self):
        assert LifecycleState.IDLE not in VALID_TRANSITIONS[LifecycleState.AWAITING_INPUT]


class TestEntryModels:
    def test_enumerations(self):
        assert [t.value for t in ChangeType] == [
            "feature",
            "fix",
            "refactor",
            "docs",
            "perf",
            "other",
        ]
        assert [p.value for p in Priority] == ["low", "med", "high"]

    def test_defaults(self):
        entry = CheckpointEntry()
        assert entry.schema_version == SCHEMA_VERSION
        assert entry.commit_id == ""
        assert entry.changes == []
        assert entry.next_steps == []

    def test_frozen(self):
        entry = CheckpointEntry()
        with pytest.raises(ValidationError):
            entry.commit_id = "abc"

    def test_legacy_commit_hash_alias(self):
        entry = CheckpointEntry.model_validate({"commit_hash": "abc"})
        assert entry.commit_id == "abc"

    def test_unknown_keys_preserved(self):
        entry = CheckpointEntry.model_validate({"reviewer": "sam"})
        assert entry.model_dump()["reviewer"] == "sam"

    def test_numeric_scalars_coerced_to_text(self):
        change = Change.model_validate({"summary": 42, "change_type": "fix"})
        assert change.summary == "42"

    def test_draft_is_an_entry(self):
        draft = DraftEntry(git_status=" M a.py\n", diff_file=".checkpoint-diff")
        assert isinstance(draft, CheckpointEntry)


class TestMetaDocument:
    def test_requires_project_id(self):
        with pytest.raises(ValidationError):
            MetaDocument()

    def test_document_kind_is_meta(self):
        meta = MetaDocument(project_id="01ABC")
        assert meta.document_kind == "meta"
        with pytest.raises(ValidationError):
            MetaDocument(project_id="01ABC", document_kind="entry")

    def test_legacy_document_type_alias(self):
        meta = MetaDocument.model_validate({"project_id": "01ABC", "document_type": "meta"})
        assert meta.document_kind == "meta"
