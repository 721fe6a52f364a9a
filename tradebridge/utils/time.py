"""
Timestamp handling for bus messages.

The bus publishes ISO 8601 timestamps in the .NET round-trip form, which
may carry a trailing ``Z`` and up to seven fractional-second digits. These
helpers normalize them into timezone-aware UTC datetimes and back.
"""

import re
from datetime import datetime, timezone
from typing import Optional

_FRACTION_RE = re.compile(r"(\.\d+)")


def parse_wire_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 wire timestamp into an aware datetime.

    Args:
        value: Timestamp string, e.g. ``2024-05-01T12:00:00.1234567Z``

    Returns:
        Timezone-aware datetime; naive input is taken as UTC

    Raises:
        ValueError: If the string is not an ISO 8601 timestamp
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    # datetime supports microseconds only
    match = _FRACTION_RE.search(text)
    if match:
        fraction = match.group(1)
        text = text[:match.start()] + fraction[:7].ljust(7, "0") + text[match.end():]

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_wire_timestamp(ts: datetime) -> str:
    """
    Format a datetime for the wire.

    Args:
        ts: Timestamp to format, naive values are taken as UTC

    Returns:
        ISO 8601 string with ``Z`` for UTC
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    text = ts.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def calculate_latency(market_ts: datetime, wall_clock_ts: Optional[datetime] = None) -> float:
    """
    Calculate latency between a message timestamp and wall-clock receive time.

    Args:
        market_ts: Timestamp carried by the message
        wall_clock_ts: Wall-clock receive time, defaults to now

    Returns:
        Latency in seconds (positive means the message is older)
    """
    if wall_clock_ts is None:
        wall_clock_ts = datetime.now(timezone.utc)

    return (wall_clock_ts - market_ts).total_seconds()
