"""Identity helpers for the ledger header: project ids and path fingerprints."""

from __future__ import annotations

import hashlib
import os
import time
from pathlib import Path

_CROCKFORD32 = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

PATH_HASH_LENGTH = 16


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def path_hash(directory: Path) -> str:
    """Short deterministic fingerprint of an absolute directory path.

    Advisory only: used to notice that a ledger was copied or moved, never
    for anything security related.
    """
    absolute = str(Path(directory).resolve())
    return sha256_hex(absolute.encode("utf-8"))[:PATH_HASH_LENGTH]


def _encode_crockford_base32(value: int, length: int) -> str:
    chars: list[str] = []
    for _ in range(length):
        chars.append(_CROCKFORD32[value & 31])
        value >>= 5
    return "".join(reversed(chars))


def new_ulid(*, timestamp_ms: int | None = None) -> str:
    """Generate a ULID (26 chars, Crockford base32, time-sortable).

    ULID = 48-bit millisecond timestamp + 80-bit randomness.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    if not (0 <= timestamp_ms < (1 << 48)):
        raise ValueError("timestamp_ms out of range for ULID")

    randomness = int.from_bytes(os.urandom(10), "big")
    value = (timestamp_ms << 80) | randomness
    return _encode_crockford_base32(value, 26)
