"""Runtime configuration — env-driven.

Centralized config using pydantic-settings for environment variable
support.  Reads from a .env file and CHECKPOINT_* environment variables.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class CheckpointConfig(BaseSettings):
    """Checkpoint configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CHECKPOINT_LOG_LEVEL=DEBUG
        export CHECKPOINT_ROOTS=~/src,~/work

    Or via .env file::

        CHECKPOINT_LEDGER_FILE_NAME=.checkpoint-changelog.yaml
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHECKPOINT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # File names, relative to the project directory
    ledger_file_name: str = ".checkpoint-changelog.yaml"
    draft_file_name: str = ".checkpoint-input"
    diff_file_name: str = ".checkpoint-diff"
    lock_file_name: str = ".checkpoint-lock"

    # Discovery
    roots: str = ""  # comma separated
    global_config_path: Path = Path("~/.config/checkpoint/config.json")

    @property
    def sentinel_names(self) -> tuple[str, str, str]:
        """Lock, draft and diff sentinel names, in cleanup order."""
        return (self.lock_file_name, self.draft_file_name, self.diff_file_name)


def _roots_from_global_config(path: Path) -> list[str]:
    path = path.expanduser()
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return []
    roots = data.get("roots", []) if isinstance(data, dict) else []
    if not isinstance(roots, list):
        logger.warning("Ignoring non-list 'roots' in %s", path)
        return []
    return [str(r) for r in roots if r]


def resolve_roots(
    flag_roots: list[str] | None = None, cfg: CheckpointConfig | None = None
) -> list[Path]:
    """Return the discovery roots, absolute, de-duplicated and sorted.

    Precedence: explicit ``flag_roots``, then ``cfg.roots`` (the
    ``CHECKPOINT_ROOTS`` setting), then the ``roots`` list of the global
    JSON config file.  The first non-empty source wins.
    """
    cfg = cfg or config
    raw: list[str] = [r for r in (flag_roots or []) if r.strip()]
    if not raw:
        raw = [r.strip() for r in cfg.roots.split(",") if r.strip()]
    if not raw:
        raw = _roots_from_global_config(cfg.global_config_path)

    unique = {Path(r).expanduser().resolve() for r in raw}
    return sorted(unique)


# Module-level singleton: import as `from checkpoint.config import config`
config = CheckpointConfig()
