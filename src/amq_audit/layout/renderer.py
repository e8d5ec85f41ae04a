"""XML rendering of audit events.

The document is built as text, one line per event, every child element
prefixed by four spaces, and a trailing newline:

    <auditevent>    <hostname>h</hostname> ... </auditevent>\\n

Text is inserted verbatim unless ``escape`` is set. Error messages may
contain "<" or "&", so the default output is not always well-formed XML;
downstream consumers rely on the verbatim text.
"""

from __future__ import annotations

__all__ = ["render_audit_event"]

from xml.sax.saxutils import escape as escape_text
from xml.sax.saxutils import quoteattr

from amq_audit.layout.models import ActionKind, AuditEvent

_INDENT = "    "


def _verbatim(value: str) -> str:
    return value


def render_audit_event(event: AuditEvent, *, escape: bool = False) -> str:
    """Render an audit event as the queue message body.

    Args:
        event: The event to render.
        escape: Escape text and attribute content.

    Returns:
        The XML document, terminated by a newline.
    """
    text = escape_text if escape else _verbatim

    parts = ["<auditevent>"]

    def element(tag: str, value: str) -> None:
        parts.append(f"{_INDENT}<{tag}>{text(value)}</{tag}>")

    element("hostname", event.hostname)
    element("username", event.username)
    element("application", event.application)
    element("action", event.action.value)
    element("timestamp", event.timestamp)
    element("jobid", event.job_id)
    element("nodeid", event.node_id)
    element("nodename", event.node_name)

    if event.action is ActionKind.INPUTPORTS:
        element("inputports", event.input_ports or "")
    elif event.action is ActionKind.ERROR:
        element("error", event.error or "")
    elif event.action is ActionKind.PARAMETERS:
        for parameter in event.parameters:
            name = quoteattr(parameter.name) if escape else f'"{parameter.name}"'
            parts.append(f"{_INDENT}<parameter name={name}>{text(parameter.value)}</parameter>")

    parts.append("</auditevent>")
    parts.append("\n")
    return "".join(parts)
