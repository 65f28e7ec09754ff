"""Append-only checkpoint ledger backed by a multi-document YAML file.

The ledger is the single source of truth for a project's checkpoint
history.  Document 1 is the identity header; documents 2..N are checkpoint
records in append order.

Design:
- Append-only: ``append()`` adds one document at end of file.
- One sanctioned mutation: ``backfill_commit_id()`` rewrites the commit id
  of the most recent record, exactly once, after the paired VCS commit.
- Detect, don't prevent: every write verifies the file has not changed
  since it was observed and fails with ``ConcurrentModificationError``
  instead of interleaving with another writer.
- Crash-safe rewrite: temp sibling + fsync + atomic ``os.replace``.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from checkpoint.core.codec import (
    document_spans,
    decode_entry,
    decode_header,
    encode_entry,
    encode_header,
    split_documents,
)
from checkpoint.core.hasher import new_ulid, path_hash
from checkpoint.errors import (
    ConcurrentModificationError,
    DocumentDecodeError,
    IOFailureError,
    LedgerError,
)
from checkpoint.models.entry import CheckpointEntry
from checkpoint.models.meta import MetaDocument

logger = logging.getLogger(__name__)

_RETRY_HINT = "Re-run the command once the other checkpoint process has finished."


def _fingerprint(stat: os.stat_result) -> tuple[int, int]:
    return stat.st_size, stat.st_mtime_ns


def _fsync_write(path: Path, data: bytes) -> None:
    with path.open("wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


class LedgerStore:
    """Owns one on-disk ledger file.

    Parameters
    ----------
    path:
        Path to the ledger file.  Its parent directory is the project
        directory used for the header's ``path_hash``.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def size(self) -> int:
        """Current file size in bytes; 0 if the ledger does not exist."""
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise IOFailureError("stat", self._path, exc) from exc

    def _read_text(self) -> str:
        try:
            return self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IOFailureError("read", self._path, exc) from exc

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def new_header(self, tool_version: str) -> MetaDocument:
        """Mint a fresh identity header for this ledger's directory."""
        return MetaDocument(
            project_id=new_ulid(),
            path_hash=path_hash(self._path.parent),
            created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            tool_version=tool_version,
        )

    def initialize(self, tool_version: str) -> MetaDocument:
        """Ensure the ledger exists and starts with exactly one identity header.

        - Missing file: create it containing only the header.
        - Existing file without a header (legacy): prepend one, preserving
          every existing record and its order.
        - Existing header: no-op, the file is left byte-identical.

        Returns the header now in effect.
        """
        if not self._path.exists():
            meta = self.new_header(tool_version)
            self._create(encode_header(meta))
            logger.info(
                "Initialized ledger %s (project_id=%s)", self._path, meta.project_id
            )
            return meta

        existing = self.read_header()
        if existing is not None:
            return existing

        meta = self.new_header(tool_version)
        self._prepend_header(meta)
        logger.info(
            "Added identity header to legacy ledger %s (project_id=%s)",
            self._path,
            meta.project_id,
        )
        return meta

    def _create(self, text: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("x", encoding="utf-8", newline="") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
        except FileExistsError as exc:
            raise ConcurrentModificationError(
                f"ledger {self._path} appeared while it was being created",
                hint=_RETRY_HINT,
            ) from exc
        except OSError as exc:
            raise IOFailureError("create", self._path, exc) from exc

    def _prepend_header(self, meta: MetaDocument) -> None:
        before = self._stat()
        try:
            existing = self._path.read_bytes()
        except OSError as exc:
            raise IOFailureError("read", self._path, exc) from exc
        if len(existing) != before.st_size:
            raise ConcurrentModificationError(
                f"ledger {self._path} changed while it was being read",
                hint=_RETRY_HINT,
            )

        prefix = encode_header(meta).encode("utf-8")
        stripped = existing.lstrip()
        if stripped and not stripped.startswith(b"---"):
            # Legacy content with no leading delimiter must not fold into the header.
            prefix += b"---\n"
        self._atomic_replace(prefix + existing, before)

    # ------------------------------------------------------------------
    # Append
    # ------------------------------------------------------------------

    def append(self, entry: CheckpointEntry, *, expected_size: int | None = None) -> None:
        """Append one record to the end of the ledger.

        ``expected_size`` is the size the caller observed before deciding to
        append; when omitted a fresh stat is used.  If the end-of-file
        position after opening differs, nothing is written and
        ``ConcurrentModificationError`` is raised.
        """
        observed = self.size() if expected_size is None else expected_size
        document = encode_entry(entry).encode("utf-8")

        try:
            with self._path.open("a+b") as f:
                position = f.seek(0, os.SEEK_END)
                if position != observed:
                    raise ConcurrentModificationError(
                        f"ledger {self._path} size changed during append "
                        f"(expected {observed} bytes, found {position})",
                        hint=_RETRY_HINT,
                    )
                if position > 0:
                    f.seek(position - 1)
                    if f.read(1) != b"\n":
                        document = b"\n" + document
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise IOFailureError("append to", self._path, exc) from exc

        logger.info(
            "Appended checkpoint record to %s (%d change(s))",
            self._path,
            len(entry.changes),
        )

    # ------------------------------------------------------------------
    # Backfill: the single sanctioned mutation
    # ------------------------------------------------------------------

    def update_last(
        self,
        mutate: Callable[[CheckpointEntry], CheckpointEntry],
        *,
        expected_size: int | None = None,
    ) -> CheckpointEntry:
        """Rewrite the most recent record through ``mutate``.

        Every byte outside the last record is preserved.  The file is
        verified unchanged against a fresh stat both after reading and
        immediately before the atomic rename; any mismatch aborts without
        touching the ledger.  The identity header is never eligible.

        ``expected_size`` is the size observed right after the caller's own
        append; a different size means another record landed since.
        """
        before = self._stat()
        if expected_size is not None and before.st_size != expected_size:
            raise ConcurrentModificationError(
                f"ledger {self._path} changed since the last append "
                f"(expected {expected_size} bytes, found {before.st_size})",
                hint=_RETRY_HINT,
            )
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise IOFailureError("read", self._path, exc) from exc
        if len(raw) != before.st_size or _fingerprint(self._stat()) != _fingerprint(before):
            raise ConcurrentModificationError(
                f"ledger {self._path} changed while it was being read",
                hint=_RETRY_HINT,
            )

        text = raw.decode("utf-8")
        spans = document_spans(text)
        if not spans:
            raise LedgerError(f"ledger {self._path} contains no documents")
        last = spans[-1]
        if len(spans) == 1 and self._span_is_header(last.body):
            raise LedgerError(
                f"ledger {self._path} has no checkpoint record to update"
            )

        updated = mutate(decode_entry(last.body))
        rebuilt = text[: last.start] + encode_entry(updated)
        self._atomic_replace(rebuilt.encode("utf-8"), before)
        return updated

    def backfill_commit_id(
        self, commit_id: str, *, expected_size: int | None = None
    ) -> CheckpointEntry:
        """Write ``commit_id`` into the most recent record.

        A record's commit id is immutable once set; backfilling a record
        that already carries one raises ``LedgerError``.
        """
        if not commit_id:
            raise LedgerError("cannot backfill an empty commit id")

        def _set_commit(entry: CheckpointEntry) -> CheckpointEntry:
            if entry.commit_id:
                raise LedgerError(
                    f"last record in {self._path} already has commit_id "
                    f"{entry.commit_id}; refusing to overwrite"
                )
            return entry.model_copy(update={"commit_id": commit_id})

        updated = self.update_last(_set_commit, expected_size=expected_size)
        logger.info("Backfilled commit_id %s into %s", commit_id, self._path)
        return updated

    @staticmethod
    def _span_is_header(body: str) -> bool:
        try:
            return decode_header(body) is not None
        except DocumentDecodeError:
            return False

    def _stat(self) -> os.stat_result:
        try:
            return self._path.stat()
        except OSError as exc:
            raise IOFailureError("stat", self._path, exc) from exc

    def _atomic_replace(self, data: bytes, before: os.stat_result) -> None:
        """Write ``data`` to a temp sibling, re-verify, then rename over the ledger."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            os.close(fd)
        except OSError as exc:
            raise IOFailureError("create temp file beside", self._path, exc) from exc
        tmp = Path(tmp_name)

        try:
            _fsync_write(tmp, data)
            shutil.copymode(self._path, tmp)
            if _fingerprint(self._stat()) != _fingerprint(before):
                raise ConcurrentModificationError(
                    f"ledger {self._path} was modified by another process; "
                    "rewrite aborted and the ledger left unchanged",
                    hint=_RETRY_HINT,
                )
            os.replace(tmp, self._path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise IOFailureError("rewrite", self._path, exc) from exc
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Query methods (read-only, linear scan)
    # ------------------------------------------------------------------

    def read_header(self) -> MetaDocument | None:
        """Return the identity header, or ``None``.

        ``None`` when the file does not exist, is empty, or its first
        document is not a header.  Malformed YAML in the first document
        raises ``DocumentDecodeError``.
        """
        if not self._path.exists():
            return None
        documents = split_documents(self._read_text())
        if not documents:
            return None
        return decode_header(documents[0])

    def read_entries(self) -> list[CheckpointEntry]:
        """Return every checkpoint record in append order."""
        if not self._path.exists():
            return []
        entries: list[CheckpointEntry] = []
        for index, body in enumerate(split_documents(self._read_text())):
            if index == 0 and self._span_is_header(body):
                continue
            try:
                entries.append(decode_entry(body))
            except DocumentDecodeError as exc:
                raise DocumentDecodeError(
                    f"{self._path}: document {index + 1}: {exc}",
                    hint=f"Repair document {index + 1} of {self._path} by hand, then retry.",
                ) from exc
        return entries

    def last_entry(self) -> CheckpointEntry | None:
        """Return the most recent record, or ``None`` if there are none."""
        entries = self.read_entries()
        return entries[-1] if entries else None

    def count_entries(self) -> int:
        """Number of checkpoint records (the header is not counted)."""
        if not self._path.exists():
            return 0
        documents = split_documents(self._read_text())
        if documents and self._span_is_header(documents[0]):
            return len(documents) - 1
        return len(documents)
