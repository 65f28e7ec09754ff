"""Validation and lint rules for checkpoint records.

``validate_entry`` is the hard gate in front of ``LedgerStore.append``: a
record that fails it never reaches the ledger.  ``lint_entry`` is advisory
and never blocks a commit.

Both operate on the in-memory record only.
"""

from __future__ import annotations

from checkpoint.errors import ValidationFailedError
from checkpoint.models.entry import (
    MAX_SUMMARY_LENGTH,
    ChangeType,
    CheckpointEntry,
    Priority,
)

PLACEHOLDER_MARKERS: tuple[str, ...] = ("[fill in", "[optional")

VAGUE_WORDS: tuple[str, ...] = (
    "improve",
    "update",
    "enhance",
    "optimize",
    "various",
    "misc",
    "stuff",
)

# Summaries with at least this many words are specific enough even if they
# contain a vague word.
VAGUE_WORD_THRESHOLD = 5

_CHANGE_TYPES = frozenset(t.value for t in ChangeType)
_PRIORITIES = frozenset(p.value for p in Priority)


def has_placeholder(text: str | None) -> bool:
    """True if ``text`` still carries an unfilled template marker."""
    if not text:
        return False
    lowered = text.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def _check_summary(label: str, summary: str) -> list[str]:
    stripped = summary.strip()
    if not stripped:
        return [f"{label}: summary required"]
    problems: list[str] = []
    if has_placeholder(stripped):
        problems.append(f"{label}: summary contains placeholder text")
    if len(stripped) > MAX_SUMMARY_LENGTH:
        problems.append(
            f"{label}: summary too long ({len(stripped)} > {MAX_SUMMARY_LENGTH} chars)"
        )
    return problems


# ---------------------------------------------------------------------------
# Hard validation
# ---------------------------------------------------------------------------


def collect_violations(entry: CheckpointEntry) -> list[str]:
    """Return every structural violation in ``entry`` (empty if valid)."""
    violations: list[str] = []

    if not entry.schema_version.strip():
        violations.append("missing required field: schema_version")

    extra = entry.model_extra or {}
    if "document_kind" in extra or "document_type" in extra:
        violations.append("document_kind is reserved for the ledger identity header")

    if not entry.changes:
        violations.append("changes: at least one change is required")

    for i, change in enumerate(entry.changes):
        label = f"changes[{i}]"
        violations.extend(_check_summary(label, change.summary))
        change_type = change.change_type.strip()
        if has_placeholder(change_type):
            violations.append(f"{label}: change_type contains placeholder text")
        elif change_type not in _CHANGE_TYPES:
            violations.append(
                f"{label}: invalid change_type '{change.change_type}' "
                f"(valid: {', '.join(t.value for t in ChangeType)})"
            )

    for i, step in enumerate(entry.next_steps):
        label = f"next_steps[{i}]"
        violations.extend(_check_summary(label, step.summary))
        if step.priority and step.priority.strip().lower() not in _PRIORITIES:
            violations.append(
                f"{label}: priority must be low|med|high (got: {step.priority})"
            )

    return violations


def validate_entry(entry: CheckpointEntry) -> None:
    """Raise ``ValidationFailedError`` listing every violation, if any."""
    violations = collect_violations(entry)
    if violations:
        raise ValidationFailedError(
            violations,
            hint="Edit the draft to fix these, then run 'checkpoint commit' again.",
        )


# ---------------------------------------------------------------------------
# Lint (advisory)
# ---------------------------------------------------------------------------


def lint_entry(entry: CheckpointEntry) -> list[str]:
    """Return advisory warnings for ``entry``.  Never raises."""
    warnings: list[str] = []

    for i, change in enumerate(entry.changes):
        label = f"changes[{i}]"
        for field in ("summary", "details", "change_type", "scope"):
            if has_placeholder(getattr(change, field)):
                warnings.append(f"{label}: {field} contains placeholder text")

        lowered = change.summary.lower()
        if len(change.summary.split()) < VAGUE_WORD_THRESHOLD:
            for word in VAGUE_WORDS:
                if word in lowered:
                    warnings.append(
                        f"{label}: summary may be too vague (contains '{word}')"
                    )
                    break

        if change.summary.count(" and ") > 1:
            warnings.append(
                f"{label}: summary contains multiple 'and' - "
                "consider splitting into separate changes"
            )

    for i, step in enumerate(entry.next_steps):
        label = f"next_steps[{i}]"
        for field in ("summary", "details", "scope"):
            if has_placeholder(getattr(step, field)):
                warnings.append(f"{label}: {field} contains placeholder text")

    return warnings
