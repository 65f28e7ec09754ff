"""Identity cache mapping ``project_id`` to a project directory.

The cache is advisory.  Every hit is re-validated against the on-disk
identity header; any mismatch invalidates the whole cache and triggers one
full rescan of the configured roots.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from checkpoint.core.ledger import LedgerStore
from checkpoint.errors import (
    CheckpointError,
    DuplicateIdentityError,
    ProjectNotFoundError,
)

logger = logging.getLogger(__name__)


class ProjectResolver:
    """Resolve project identities by scanning roots for ledgers.

    Parameters
    ----------
    roots:
        Directories to walk.  Missing roots are skipped.
    ledger_file_name:
        File name that marks a project directory.
    """

    def __init__(self, roots: list[Path], ledger_file_name: str) -> None:
        self._roots = [Path(r) for r in roots]
        self._ledger_file_name = ledger_file_name
        self._cache: dict[str, Path] = {}
        self._duplicates: dict[str, list[Path]] = {}
        self._scanned = False

    @property
    def roots(self) -> list[Path]:
        return list(self._roots)

    @property
    def ledger_file_name(self) -> str:
        return self._ledger_file_name

    def invalidate(self) -> None:
        """Drop every cached mapping; the next lookup rescans."""
        self._cache.clear()
        self._duplicates.clear()
        self._scanned = False

    def _header_id(self, project_dir: Path) -> str | None:
        store = LedgerStore(project_dir / self._ledger_file_name)
        try:
            meta = store.read_header()
        except CheckpointError as exc:
            logger.warning("Skipping unreadable ledger %s: %s", store.path, exc)
            return None
        return meta.project_id if meta is not None else None

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def rescan(self) -> None:
        """Rebuild the cache from scratch by walking every root."""
        found: dict[str, list[Path]] = {}
        for root in self._roots:
            if not root.is_dir():
                logger.warning("Discovery root %s is not a directory; skipping", root)
                continue
            for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
                if self._ledger_file_name not in filenames:
                    continue
                # Ledgers are not nested inside other projects' trees.
                dirnames[:] = []
                project_dir = Path(dirpath)
                project_id = self._header_id(project_dir)
                if project_id is None:
                    continue
                paths = found.setdefault(project_id, [])
                if project_dir not in paths:
                    paths.append(project_dir)

        self._cache = {pid: paths[0] for pid, paths in found.items() if len(paths) == 1}
        self._duplicates = {pid: sorted(paths) for pid, paths in found.items() if len(paths) > 1}
        self._scanned = True
        for pid, paths in self._duplicates.items():
            logger.warning(
                "project_id %s found at %d paths: %s",
                pid,
                len(paths),
                ", ".join(str(p) for p in paths),
            )
        logger.info(
            "Discovery scan of %d root(s) found %d project(s)",
            len(self._roots),
            len(self._cache),
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _lookup(self, project_id: str) -> Path:
        if project_id in self._duplicates:
            raise DuplicateIdentityError(project_id, self._duplicates[project_id])
        path = self._cache.get(project_id)
        if path is None:
            raise ProjectNotFoundError(project_id)
        return path

    def resolve(self, project_id: str) -> Path:
        """Return the directory whose ledger header reports ``project_id``.

        Raises
        ------
        DuplicateIdentityError
            The id was found at more than one path during the last scan.
        ProjectNotFoundError
            No ledger under the configured roots reports the id.
        """
        if not self._scanned:
            self.rescan()
            return self._lookup(project_id)

        cached = self._cache.get(project_id)
        if cached is not None and self._header_id(cached) == project_id:
            return cached

        logger.info("Cache miss or stale entry for %s; rescanning", project_id)
        self.invalidate()
        self.rescan()
        return self._lookup(project_id)
