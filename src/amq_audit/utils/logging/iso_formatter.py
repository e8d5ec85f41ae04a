"""ISO 8601 timestamp formatting.

Provides the timestamp text used in audit documents and the JSONL formatter
used for the system log file.
"""

from __future__ import annotations

__all__ = ["ISO8601Formatter", "format_iso8601"]

import json
import logging
import math
from datetime import datetime, timezone, tzinfo


def format_iso8601(created: float, zone: tzinfo = timezone.utc) -> str:
    """Format an epoch timestamp as ISO 8601 with milliseconds.

    Format: YYYY-MM-DDTHH:MM:SS.sss±HH:MM, with a zero offset written as "Z".
    Example: 2025-12-04T10:48:37.123+01:00

    Args:
        created: Seconds since the epoch (LogRecord.created).
        zone: Time zone to express the instant in.

    Returns:
        str: The formatted timestamp.
    """
    # Truncate to whole milliseconds before conversion, fromtimestamp rounds microseconds.
    millis = math.floor(created * 1000)
    return (
        datetime.fromtimestamp(millis // 1000, tz=zone)
        .replace(microsecond=(millis % 1000) * 1000)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class ISO8601Formatter(logging.Formatter):
    """Custom formatter with ISO 8601 timestamps (UTC) for JSONL output.

    Format: YYYY-MM-DDTHH:MM:SS.sssZ
    Example: 2025-12-04T10:48:37.123Z
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSONL with ISO 8601 timestamp.

        Args:
            record: The log record to format

        Returns:
            str: JSON-formatted log entry with timestamp
        """
        timestamp = format_iso8601(record.created)

        # Handle dict messages (structured logging)
        if isinstance(record.msg, dict):
            log_data = record.msg
        else:
            log_data = {"message": record.getMessage()}

        log_entry = {"time": timestamp, "level": record.levelname, **log_data}
        return json.dumps(log_entry, default=str)
