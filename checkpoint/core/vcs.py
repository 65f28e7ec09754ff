"""Version-control collaborator for the lifecycle controller.

Defines the ``VersionControl`` Protocol the lifecycle depends on, and
``GitCLI``, the default implementation that shells out to ``git``.  The
core performs no VCS logic of its own; tests substitute a fake.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from checkpoint.errors import VCSError

logger = logging.getLogger(__name__)

_NO_HEAD_MARKERS = (
    "unknown revision or path not in the working tree",
    "ambiguous argument 'HEAD'",
    "bad revision 'HEAD'",
)
_NOT_A_REPO_MARKERS = ("not a git repository",)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class VersionControl(Protocol):
    """Operations the lifecycle needs from a version-control system.

    Every method takes the project directory.  Failures raise ``VCSError``.
    """

    def is_repository(self, path: Path) -> bool:
        """Return ``True`` if ``path`` is inside a work tree."""
        ...

    def status(self, path: Path) -> str:
        """Return machine-readable working tree status text."""
        ...

    def combined_diff(self, path: Path) -> str:
        """Return unstaged and staged diffs under headings."""
        ...

    def diff_numstat(self, path: Path) -> str:
        """Return per-file added/removed line counts, one file per line."""
        ...

    def stage_all(self, path: Path) -> None:
        """Stage every modified and untracked file."""
        ...

    def stage_file(self, path: Path, name: str) -> None:
        """Stage a single file, relative to ``path``."""
        ...

    def commit(self, path: Path, message: str) -> str:
        """Commit staged changes and return the new commit id."""
        ...


# ---------------------------------------------------------------------------
# git implementation
# ---------------------------------------------------------------------------


class GitCLI:
    """``VersionControl`` backed by the ``git`` executable.

    Parameters
    ----------
    executable:
        Name or path of the git binary.
    """

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def _run(self, path: Path, *args: str) -> subprocess.CompletedProcess[str]:
        command = [self._executable, *args]
        logger.debug("Running %s in %s", " ".join(command), path)
        try:
            return subprocess.run(
                command,
                cwd=path,
                capture_output=True,
                text=True,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise VCSError(f"{' '.join(command)} could not be run: {exc}") from exc

    def _check(self, path: Path, *args: str) -> str:
        result = self._run(path, *args)
        if result.returncode != 0:
            raise VCSError(
                f"git {' '.join(args)} failed: {(result.stderr or result.stdout).strip()}"
            )
        return result.stdout

    def _tolerate_no_head(self, path: Path, *args: str) -> str:
        result = self._run(path, *args)
        if result.returncode != 0:
            output = result.stderr + result.stdout
            if any(marker in output for marker in _NO_HEAD_MARKERS):
                logger.debug("No HEAD yet in %s; treating git %s as empty", path, args[0])
                return ""
            raise VCSError(f"git {' '.join(args)} failed: {output.strip()}")
        return result.stdout

    def is_repository(self, path: Path) -> bool:
        result = self._run(path, "rev-parse", "--is-inside-work-tree")
        if result.returncode != 0:
            output = (result.stderr + result.stdout).lower()
            if any(marker in output for marker in _NOT_A_REPO_MARKERS):
                return False
            raise VCSError(f"git repository check failed: {output.strip()}")
        return result.stdout.strip() == "true"

    def status(self, path: Path) -> str:
        return self._check(path, "status", "--porcelain=v1")

    def combined_diff(self, path: Path) -> str:
        unstaged = self._tolerate_no_head(path, "diff")
        staged = self._tolerate_no_head(path, "diff", "--staged")
        parts: list[str] = []
        if unstaged.strip():
            parts.append(f"## Unstaged changes (git diff)\n{unstaged}\n")
        if staged.strip():
            parts.append(f"## Staged changes (git diff --staged)\n{staged}\n")
        return "".join(parts)

    def diff_numstat(self, path: Path) -> str:
        working = self._tolerate_no_head(path, "diff", "--numstat", "HEAD")
        if working.strip():
            return working
        # Fresh repository: nothing to diff against, fall back to the index.
        return self._tolerate_no_head(path, "diff", "--numstat", "--staged")

    def stage_all(self, path: Path) -> None:
        self._check(path, "add", "-A")

    def stage_file(self, path: Path, name: str) -> None:
        self._check(path, "add", "--", name)

    def commit(self, path: Path, message: str) -> str:
        self._check(path, "commit", "-m", message)
        return self._check(path, "rev-parse", "HEAD").strip()
