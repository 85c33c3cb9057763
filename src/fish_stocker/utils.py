"""Shared helpers — hashing, timestamps, etc."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from fish_stocker import STOCK_TZ


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_now(value: str | None) -> datetime:
    """Parse an ISO timestamp (or date) for queries; defaults to the current time.

    Values without an offset are read as stocking-zone wall time.
    """
    if not value:
        return datetime.now(STOCK_TZ)
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=STOCK_TZ)
    return parsed
