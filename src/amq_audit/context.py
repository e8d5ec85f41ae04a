"""Execution context carried by audit-relevant log records.

The workflow engine attaches an execution context to the log records it
emits for a node. Records without one are ordinary log lines and are never
audited.

Engines implement ExecutionContext structurally (no inheritance needed):

    class EngineLogMessage:
        node_id = NodeID("0:1")
        def job_id(self) -> str: ...
        def node_name(self) -> str: ...

The context is found either as the record's message object
(``logger.info(NodeLogMessage(...))``) or as an ``execution_context``
attribute supplied through ``extra=``.
"""

from __future__ import annotations

__all__ = [
    "ExecutionContext",
    "NodeLogMessage",
    "get_execution_context",
]

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ExecutionContext(Protocol):
    """Node and job identity attached to a log record.

    Required members:
    - node_id: Node identifier, or None if the engine has none
    - job_id(): Identifier of the job the node runs in
    - node_name(): Display name of the node
    """

    node_id: Any

    def job_id(self) -> str | None:
        """Return the job identifier."""
        ...

    def node_name(self) -> str | None:
        """Return the node display name."""
        ...


@dataclass(frozen=True)
class NodeLogMessage:
    """Log message object emitted by the engine for a node.

    Used as the record's ``msg`` so that ``str(record.msg)`` is the text
    and the record still carries node identity.

    Attributes:
        text: The log message text.
        node_id: Node identifier (e.g., "0:1"), None if unknown.
        job: Job identifier.
        name: Node display name.
    """

    text: str
    node_id: str | None = None
    job: str | None = None
    name: str | None = None

    def job_id(self) -> str | None:
        return self.job

    def node_name(self) -> str | None:
        return self.name

    def __str__(self) -> str:
        return self.text


def get_execution_context(record: logging.LogRecord) -> ExecutionContext | None:
    """Return the execution context of a record, if it has one.

    Args:
        record: The log record to inspect.

    Returns:
        The context object, or None for ordinary log lines.
    """
    if isinstance(record.msg, ExecutionContext):
        return record.msg
    attached = getattr(record, "execution_context", None)
    if isinstance(attached, ExecutionContext):
        return attached
    return None
