"""Identity header — the first document of every ledger."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

META_DOCUMENT_KIND = "meta"


class MetaDocument(BaseModel):
    """Self-describing identity of a ledger.

    ``project_id`` is minted once when the ledger is created and never
    reused.  ``path_hash`` fingerprints the directory the ledger was created
    in; it is advisory (collision detection), not a security measure.
    """

    model_config = ConfigDict(frozen=True, extra="allow", coerce_numbers_to_str=True)

    schema_version: str = "1"
    document_kind: Literal["meta"] = Field(
        default=META_DOCUMENT_KIND,
        validation_alias=AliasChoices("document_kind", "document_type"),
    )
    project_id: str
    path_hash: str = ""
    created_at: str = ""
    tool_version: str = ""
