"""Timestamp parsing shared by token files and Graph resources."""

from __future__ import annotations

import re
from datetime import datetime

_FRACTION = re.compile(r"\.(\d+)")


def parse_datetime(value: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Accepts a trailing "Z" and any number of fractional-second digits (token
    files may carry nanoseconds, Graph writes seven digits). The fraction is
    normalized to microseconds so older ``fromisoformat`` accepts it.

    Raises:
        ValueError: If the value is not a timestamp.
    """
    value = value.strip().replace("Z", "+00:00").replace("z", "+00:00")
    value = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], value, count=1)
    return datetime.fromisoformat(value)
