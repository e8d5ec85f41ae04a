"""Audit event classification and XML rendering.

- classifier: Decides which action kind a log message represents
- parameters: Extracts settings entries and flow variables
- renderer: Renders AuditEvent as the XML message body
- formatter: logging.Formatter tying the above together
"""

from amq_audit.layout.classifier import classify
from amq_audit.layout.formatter import AuditEventFormatter
from amq_audit.layout.models import ActionKind, AuditEvent, LayoutSettings, Parameter
from amq_audit.layout.renderer import render_audit_event

__all__ = [
    "ActionKind",
    "AuditEvent",
    "AuditEventFormatter",
    "LayoutSettings",
    "Parameter",
    "classify",
    "render_audit_event",
]
