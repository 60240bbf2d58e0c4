from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time, millisecond precision (what MongoDB stores)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z and milliseconds."""
    return utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")
