"""
Timestamp helpers.

ENEX stores dates in a compact UTC form (``20240115T103000Z``). Some
exporters write ISO-8601 instead, so both are accepted.
"""

import re
from datetime import UTC, datetime

_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def parse_enex_timestamp(value: str) -> datetime:
    """
    Parse an ENEX timestamp into an aware UTC datetime.

    Args:
        value: ``yyyyMMddTHHmmssZ`` or an ISO-8601 string

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the value matches neither format or is out of range
    """
    text = value.strip()
    match = _COMPACT_DATE.match(text)
    if match:
        year, month, day, hour, minute, second = (int(part) for part in match.groups())
        return datetime(year, month, day, hour, minute, second, tzinfo=UTC)

    if "-" in text:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)

    raise ValueError(f"Unrecognized ENEX timestamp: {value!r}")


def from_epoch_millis(value: int | float) -> datetime:
    """Convert a browser-style epoch-milliseconds value to UTC."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)
