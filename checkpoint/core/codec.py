"""Document codec for the ledger's multi-document YAML format.

A ledger is a sequence of YAML documents, each introduced by a ``---`` line:

    ---
    schema_version: '1'
    document_kind: meta
    project_id: 01J...
    ---
    schema_version: '1'
    timestamp: '2026-10-18T09:12:44+00:00'
    commit_id: 3f2c...
    changes:
    - summary: Add login
      change_type: feature
    next_steps: []

Documents are read independently; the only cross-document relation is
ordinal position.  Encoding emits multi-line strings as literal blocks and
never folds long lines, so no body line can be mistaken for a delimiter.
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple

import yaml
from pydantic import ValidationError

from checkpoint.errors import DocumentDecodeError
from checkpoint.models.entry import TRANSIENT_FIELDS, CheckpointEntry, DraftEntry
from checkpoint.models.meta import META_DOCUMENT_KIND, MetaDocument

DOCUMENT_DELIMITER = "---"

# A column-0 "---" alone or followed by whitespace and then a comment or
# inline content.  "----" and "---x" are ordinary text.
_DELIMITER_LINE = re.compile(
    r"^---(?:[ \t]+(?P<rest>[^\r\n]*?))?[ \t]*\r?$", re.MULTILINE
)


# ---------------------------------------------------------------------------
# YAML dialect
# ---------------------------------------------------------------------------


class _LedgerDumper(yaml.SafeDumper):
    """SafeDumper that writes multi-line strings as literal blocks."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_LedgerDumper.add_representer(str, _represent_str)


class _LedgerLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as text."""


_LedgerLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _dump(data: dict[str, Any]) -> str:
    return yaml.dump(
        data,
        Dumper=_LedgerDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )


def _load(text: str) -> Any:
    try:
        return yaml.load(text, Loader=_LedgerLoader)
    except yaml.YAMLError as exc:
        raise DocumentDecodeError(f"malformed YAML: {exc}") from exc


def is_header_mapping(data: Any) -> bool:
    """True if a decoded document is an identity header."""
    if not isinstance(data, dict):
        return False
    kind = data.get("document_kind", data.get("document_type"))
    return kind == META_DOCUMENT_KIND


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


class DocumentSpan(NamedTuple):
    """One document's position in the ledger text.

    ``start``/``end`` cover the delimiter line (when present) and the body.
    """

    start: int
    end: int
    body: str


def _has_content(body: str) -> bool:
    for line in body.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            return True
    return False


def document_spans(text: str) -> list[DocumentSpan]:
    """Locate every document in ``text``, in order.

    A leading chunk before the first delimiter counts as a document when it
    has content, so files with or without a leading ``---`` split the same
    way.  The final document runs to end of text whether or not a
    delimiter follows it.

    Content after ``--- `` on the delimiter line opens the document body;
    a trailing ``# comment`` there is dropped.
    """
    bounds = [m.start() for m in _DELIMITER_LINE.finditer(text)]
    if not bounds or bounds[0] != 0:
        bounds.insert(0, 0)

    spans: list[DocumentSpan] = []
    for i, start in enumerate(bounds):
        end = bounds[i + 1] if i + 1 < len(bounds) else len(text)
        chunk = text[start:end]
        match = _DELIMITER_LINE.match(chunk)
        if match:
            newline = chunk.find("\n")
            body = chunk[newline + 1:] if newline != -1 else ""
            rest = match.group("rest") or ""
            if rest and not rest.startswith("#"):
                body = f"{rest}\n{body}"
        else:
            body = chunk
        if _has_content(body):
            spans.append(DocumentSpan(start, end, body))
    return spans


def split_documents(text: str) -> list[str]:
    """Split full ledger text into raw document bodies, in order."""
    return [span.body for span in document_spans(text)]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def entry_payload(entry: CheckpointEntry) -> dict[str, Any]:
    """The durable subset of a record, in ledger key order."""
    data = entry.model_dump(
        mode="json", exclude=set(TRANSIENT_FIELDS), exclude_none=True
    )
    if not data.get("files_changed"):
        data.pop("files_changed", None)
    return data


def encode_entry(entry: CheckpointEntry) -> str:
    """Serialize a record as one ledger document (leading delimiter included)."""
    return f"{DOCUMENT_DELIMITER}\n{_dump(entry_payload(entry))}"


def encode_header(meta: MetaDocument) -> str:
    """Serialize the identity header as one ledger document."""
    return f"{DOCUMENT_DELIMITER}\n{_dump(meta.model_dump(mode='json'))}"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _load_mapping(text: str) -> dict[str, Any]:
    data = _load(text)
    if data is None:
        raise DocumentDecodeError("empty document")
    if not isinstance(data, dict):
        raise DocumentDecodeError(
            f"expected a mapping, got {type(data).__name__}"
        )
    return data


def decode_entry(text: str) -> CheckpointEntry:
    """Decode one checkpoint record.

    Raises ``DocumentDecodeError`` for malformed YAML, an empty or
    non-mapping document, an identity header, or a shape mismatch.
    """
    data = _load_mapping(text)
    if is_header_mapping(data):
        raise DocumentDecodeError("document is an identity header, not a checkpoint record")
    try:
        return CheckpointEntry.model_validate(data)
    except ValidationError as exc:
        raise DocumentDecodeError(f"invalid checkpoint record: {exc}") from exc


def decode_draft(text: str) -> DraftEntry:
    """Decode the draft sentinel, keeping its transient fields."""
    data = _load_mapping(text)
    try:
        return DraftEntry.model_validate(data)
    except ValidationError as exc:
        raise DocumentDecodeError(f"invalid draft: {exc}") from exc


def decode_header(text: str) -> MetaDocument | None:
    """Decode an identity header.

    Returns ``None`` if the document is not a header; raises
    ``DocumentDecodeError`` only for malformed YAML or a header whose
    fields do not validate.
    """
    data = _load(text)
    if not is_header_mapping(data):
        return None
    try:
        return MetaDocument.model_validate(data)
    except ValidationError as exc:
        raise DocumentDecodeError(f"invalid identity header: {exc}") from exc


def dump_yaml(data: dict[str, Any]) -> str:
    """Dump a mapping in the ledger's YAML dialect (used by draft rendering)."""
    return _dump(data)
