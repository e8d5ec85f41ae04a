"""Logging formatter that turns engine log records into audit documents.

The formatter is attached to a QueueAuditHandler. For records that are not
auditable it returns an empty string and the handler publishes nothing.
"""

from __future__ import annotations

__all__ = [
    "AuditEventFormatter",
    "resolve_hostname",
    "resolve_username",
]

import getpass
import logging
import socket
from collections.abc import Callable, Iterable
from zoneinfo import ZoneInfo

from amq_audit.constants import (
    DEFAULT_APPLICATION_LABEL,
    DEFAULT_TIME_ZONE,
    JOB_ID_UNREADABLE,
    NODE_ID_MISSING,
    NODE_NAME_UNREADABLE,
    UNKNOWN_HOST,
    UNKNOWN_USER,
)
from amq_audit.context import ExecutionContext, get_execution_context
from amq_audit.layout.classifier import classify, input_ports_text
from amq_audit.layout.models import ActionKind, AuditEvent, LayoutSettings, split_key_list
from amq_audit.layout.parameters import extract_parameters
from amq_audit.layout.renderer import render_audit_event
from amq_audit.telemetry.system.system_logger import get_system_logger
from amq_audit.utils.logging.iso_formatter import format_iso8601


def resolve_hostname() -> str:
    """Return the local host name, or "unknown" if it cannot be determined."""
    try:
        return socket.gethostname() or UNKNOWN_HOST
    except OSError:
        return UNKNOWN_HOST


def resolve_username() -> str:
    """Return the OS user name, or "unknown" if it cannot be determined."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return UNKNOWN_USER


def _read_accessor(accessor: Callable[[], str | None], fallback: str, field: str) -> str:
    """Call an ExecutionContext accessor, substituting a placeholder on failure.

    Args:
        accessor: Bound accessor (e.g., context.job_id).
        fallback: Placeholder used if the accessor raises.
        field: Name for the warning message.

    Returns:
        The accessor result as text ("" for None), or the fallback.
    """
    try:
        value = accessor()
    except Exception as e:
        get_system_logger().warning(
            {
                "event": "execution_context_unreadable",
                "field": field,
                "error": str(e),
                "error_type": type(e).__name__,
                "message": f"Could not read {field} from execution context: {e}",
            }
        )
        return fallback
    return "" if value is None else str(value)


class AuditEventFormatter(logging.Formatter):
    """Formatter producing XML audit documents from engine log records.

    Settings are resolved once and shared by every call, so the same record
    always renders to the same text.
    """

    def __init__(self, settings: LayoutSettings) -> None:
        """Initialize the formatter.

        Args:
            settings: Immutable layout settings.
        """
        super().__init__()
        self.settings = settings
        self._zone = ZoneInfo(settings.time_zone)

    @classmethod
    def from_options(
        cls,
        interesting_keys: str | Iterable[str] = (),
        time_zone: str = DEFAULT_TIME_ZONE,
        application: str = DEFAULT_APPLICATION_LABEL,
        escape_xml: bool = False,
    ) -> AuditEventFormatter:
        """Create a formatter for this host and user.

        Args:
            interesting_keys: Settings keys reported in PARAMETERS events, as
                an iterable or a comma-separated string.
            time_zone: IANA time zone name for timestamps.
            application: Value of the <application> element.
            escape_xml: Escape text content in the document.

        Returns:
            AuditEventFormatter with host and user resolved now.
        """
        if isinstance(interesting_keys, str):
            interesting_keys = split_key_list(interesting_keys)
        settings = LayoutSettings(
            hostname=resolve_hostname(),
            username=resolve_username(),
            interesting_keys=frozenset(interesting_keys),
            time_zone=time_zone,
            application=application,
            escape_xml=escape_xml,
        )
        return cls(settings)

    def build_event(self, record: logging.LogRecord) -> AuditEvent | None:
        """Classify a record and build its audit event.

        Args:
            record: The log record to inspect.

        Returns:
            The audit event, or None if the record is not auditable.
        """
        context = get_execution_context(record)
        if context is None:
            return None

        message = record.getMessage()
        action = classify(message, record.levelno)
        if action is None:
            return None

        return AuditEvent(
            hostname=self.settings.hostname,
            username=self.settings.username,
            application=self.settings.application,
            action=action,
            timestamp=format_iso8601(record.created, self._zone),
            job_id=_read_accessor(context.job_id, JOB_ID_UNREADABLE, "jobID"),
            node_id=self._node_id(context),
            node_name=_read_accessor(context.node_name, NODE_NAME_UNREADABLE, "nodeName"),
            input_ports=input_ports_text(message) if action is ActionKind.INPUTPORTS else None,
            error=message if action is ActionKind.ERROR else None,
            parameters=(
                extract_parameters(message, self.settings.interesting_keys)
                if action is ActionKind.PARAMETERS
                else ()
            ),
        )

    @staticmethod
    def _node_id(context: ExecutionContext) -> str:
        node_id = getattr(context, "node_id", None)
        return NODE_ID_MISSING if node_id is None else str(node_id)

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as an audit document.

        Args:
            record: The log record to format.

        Returns:
            str: The XML document, or "" if the record is not auditable.
        """
        event = self.build_event(record)
        if event is None:
            return ""
        return render_audit_event(event, escape=self.settings.escape_xml)
