from datetime import datetime, timezone


def get_now() -> datetime:
    """Request clock; overridden in tests."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2026-11-08T23:59:59.999Z."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
