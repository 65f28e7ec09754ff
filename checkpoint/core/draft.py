"""Draft sentinel rendering, numstat parsing, and commit messages.

The draft is the editable record a human or LLM fills in between ``check``
and ``commit``.  It is plain YAML preceded by comment instructions, so it
decodes with the same codec as the ledger once the placeholders are
replaced.
"""

from __future__ import annotations

from collections import Counter

from checkpoint.core.codec import dump_yaml
from checkpoint.models.entry import (
    SCHEMA_VERSION,
    ChangeType,
    CheckpointEntry,
    FileChange,
    NextStep,
)

DRAFT_INSTRUCTIONS = """\
# INSTRUCTIONS FOR LLM:
# 1. Fill the changes array with all changes in this checkpoint
# 2. Run 'checkpoint lint' to check your work
# 3. Human will review and edit before running 'checkpoint commit'
#
# Each change has: summary (required), details (optional), change_type (required), scope (optional).
# Allowed change_type values: {change_types}.
# Keep summaries concise (<80 chars), present tense; use consistent scope names.
# Derive distinct changes from git_status and the diff file; group related file changes into logical units.
# If previous next_steps are present, remove completed items, keep unfinished ones, add new items as needed.
# Do not alter schema_version or timestamp; leave commit_id empty.
#
# EXAMPLE:
# - summary: "Fix memory leak in connection pool"
#   details: "Connections were not being closed after timeout"
#   change_type: "fix"
#   scope: "database"
"""

_PLACEHOLDER_CHANGE = {
    "summary": "[FILL IN: what changed]",
    "details": "[OPTIONAL: longer description]",
    "change_type": "[FILL IN: feature|fix|refactor|docs|perf|other]",
    "scope": "[FILL IN: affected component]",
}

_NEXT_STEP_HINT = """\
#  - summary: "[FILL IN: next action]"
#    details: "[OPTIONAL: context]"
#    priority: "[OPTIONAL: low|med|high]"
#    scope: "[OPTIONAL: affected component]"
"""


def render_draft(
    git_status: str,
    diff_file: str,
    next_steps: list[NextStep] | None = None,
    files_changed: list[FileChange] | None = None,
) -> str:
    """Render the draft sentinel text.

    Parameters
    ----------
    git_status:
        Porcelain status text, embedded for context.
    diff_file:
        Name of the diff-context sentinel, relative to the project.
    next_steps:
        Unfinished steps carried forward from the last ledger record.
    files_changed:
        Per-file line counts from ``git diff --numstat``.
    """
    sections: list[str] = [
        DRAFT_INSTRUCTIONS.format(change_types=", ".join(t.value for t in ChangeType)),
        dump_yaml(
            {
                "schema_version": SCHEMA_VERSION,
                "timestamp": "",
                "commit_id": "",
            }
        ),
        "\n# Git status output (informational, not stored in the ledger):\n",
        dump_yaml({"git_status": git_status}),
        "\n# Diff context for this checkpoint (informational):\n",
        dump_yaml({"diff_file": diff_file}),
    ]

    if files_changed:
        sections.append("\n# File changes (informational):\n")
        sections.append(
            dump_yaml({"files_changed": [f.model_dump(mode="json") for f in files_changed]})
        )

    sections.append("\n# List all changes made in this checkpoint\n")
    sections.append(dump_yaml({"changes": [_PLACEHOLDER_CHANGE]}))

    sections.append(
        "\n# Planned next steps (optional)\n"
        "# Remove completed items, keep unfinished ones.\n"
    )
    if next_steps:
        steps = [s.model_dump(mode="json", exclude_none=True) for s in next_steps]
        sections.append(dump_yaml({"next_steps": steps}))
    else:
        sections.append("next_steps: []\n")
        sections.append(_NEXT_STEP_HINT)

    return "".join(sections)


def parse_numstat(numstat: str) -> list[FileChange]:
    """Parse ``git diff --numstat`` output.

    Binary files report ``-`` for both counts and are recorded as 0/0.
    Lines with fewer than three fields are skipped.
    """
    files: list[FileChange] = []
    for line in numstat.strip().splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        additions = int(parts[0]) if parts[0].isdigit() else 0
        deletions = int(parts[1]) if parts[1].isdigit() else 0
        files.append(
            FileChange(path=" ".join(parts[2:]), additions=additions, deletions=deletions)
        )
    return files


def build_commit_message(entry: CheckpointEntry) -> str:
    """Summarize a record as a one-line commit message.

    A single change reads ``Checkpoint: fix (api) - Handle empty body``.
    Several changes are summarized by type and scope in first-seen order,
    e.g. ``Checkpoint: 3 changes - feature(2), fix [api, cli]``.
    """
    if len(entry.changes) == 1:
        change = entry.changes[0]
        if change.scope:
            return f"Checkpoint: {change.change_type} ({change.scope}) - {change.summary}"
        return f"Checkpoint: {change.change_type} - {change.summary}"

    types = Counter(c.change_type for c in entry.changes)
    scopes = list(dict.fromkeys(c.scope for c in entry.changes if c.scope))
    type_list = [t if n == 1 else f"{t}({n})" for t, n in types.items()]

    message = f"Checkpoint: {len(entry.changes)} changes - {', '.join(type_list)}"
    if scopes:
        message += f" [{', '.join(scopes)}]"
    return message
