"""Helpers for the mixed timestamp representations found in store documents."""

from __future__ import annotations

from datetime import datetime, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: object) -> datetime | None:
    """Best-effort conversion of a stored timestamp into an aware datetime.

    Accepts datetimes, ISO-8601 strings (a trailing ``Z`` included), epoch
    milliseconds (JavaScript ``Date.now()``) and ``{"seconds": ...}``
    mappings as written by document stores. Anything unparsable or out of
    range yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch_seconds(value / 1000)
    if isinstance(value, dict) and isinstance(value.get("seconds"), (int, float)):
        return _from_epoch_seconds(value["seconds"])
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _from_epoch_seconds(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def sort_key(value: datetime | None) -> datetime:
    """Missing timestamps sort as the epoch, i.e. before everything else."""
    return value if value is not None else _EPOCH
