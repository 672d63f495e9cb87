"""Query parameter and loose-value parsing utilities."""

from datetime import datetime

from jobmarket.utils.clock import to_naive_utc


def parse_int_param(value: str | None) -> int | None:
    """Parse string to int, returning None for empty/invalid values."""
    if not value:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def parse_bool_param(value: str | None) -> bool | None:
    """
    Parse string to bool, returning None for empty values.

    Accepts: "true"/"false", "1"/"0", "yes"/"no"
    """
    if not value:
        return None
    lower = value.lower()
    if lower in ("true", "1", "yes"):
        return True
    if lower in ("false", "0", "no"):
        return False
    return None


def parse_datetime_param(value: str | None) -> datetime | None:
    """
    Parse an ISO date or datetime string to naive UTC, None if invalid.

    Accepts "2025-01-15", "2025-01-15T08:30:00" and offsets such as
    "2025-01-15T08:30:00+01:00" or a trailing "Z".
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_naive_utc(datetime.fromisoformat(text))
    except (ValueError, TypeError):
        return None
