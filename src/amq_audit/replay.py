"""JSONL log entries for offline formatting and replay.

Each line of the input is one engine log entry:

    {"message": "Column Filter 0:3 changed state to EXECUTED",
     "level": "INFO", "timestamp_ms": 1733309317123,
     "node_id": "0:3", "job_id": "c5f1...", "node_name": "Column Filter"}

Entries are turned into logging.LogRecord objects carrying a NodeLogMessage,
so they go through exactly the same formatter and handler code as records
logged by an embedded engine.
"""

from __future__ import annotations

__all__ = [
    "LogEntry",
    "iter_log_entries",
]

import json
import logging
from collections.abc import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from amq_audit.context import NodeLogMessage

# Logger name used when an entry has none
DEFAULT_REPLAY_LOGGER = "knime"


class LogEntry(BaseModel):
    """One engine log entry.

    An entry carries an execution context when any of node_id, job_id or
    node_name is present. Entries with none of them are ordinary log lines
    and never produce an audit event.

    Attributes:
        message: Log message text.
        level: Standard level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        timestamp_ms: Milliseconds since the epoch. None uses the replay time.
        node_id: Node identifier.
        job_id: Job identifier.
        node_name: Node display name.
        logger: Logger name of the record.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str
    level: str = "INFO"
    timestamp_ms: int | None = None
    node_id: str | None = None
    job_id: str | None = None
    node_name: str | None = None
    logger: str = DEFAULT_REPLAY_LOGGER

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        name = value.upper()
        if name not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level '{value}'")
        return name

    @property
    def has_context(self) -> bool:
        """Check if the entry carries node or job identity."""
        return any(v is not None for v in (self.node_id, self.job_id, self.node_name))

    def to_record(self) -> logging.LogRecord:
        """Build the log record an engine would have emitted.

        Returns:
            logging.LogRecord whose msg is a NodeLogMessage (or the plain
            text for entries without context).
        """
        msg: object = self.message
        if self.has_context:
            msg = NodeLogMessage(self.message, node_id=self.node_id, job=self.job_id, name=self.node_name)

        record = logging.LogRecord(
            name=self.logger,
            level=logging.getLevelNamesMapping()[self.level],
            pathname=__file__,
            lineno=0,
            msg=msg,
            args=None,
            exc_info=None,
        )
        if self.timestamp_ms is not None:
            record.created = self.timestamp_ms / 1000
            record.msecs = float(self.timestamp_ms % 1000)
        return record


def iter_log_entries(lines: Iterable[str]) -> Iterator[LogEntry]:
    """Parse JSONL log entries, skipping blank lines.

    Args:
        lines: Input lines (e.g., an open file).

    Yields:
        LogEntry for each non-blank line.

    Raises:
        ValueError: If a line is not valid JSON or not a valid entry.
    """
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"Line {line_number}: invalid JSON: {e}") from e
        try:
            yield LogEntry.model_validate(data)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(x) for x in error['loc']) or '(root)'}: {error['msg']}" for error in e.errors()
            )
            raise ValueError(f"Line {line_number}: invalid log entry: {errors}") from e
