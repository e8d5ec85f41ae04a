"""amq-audit: workflow audit events published to a message queue.

Log records from a workflow-execution engine are classified, rendered as
fixed-schema XML audit events and published transactionally to a queue.

Usage:
    from amq_audit import setup_audit_logger

    logger = setup_audit_logger("knime", config_path)
"""

from __future__ import annotations

__version__ = "0.3.0"

__all__ = [
    "ActionKind",
    "AuditEvent",
    "AuditEventFormatter",
    "ExecutionContext",
    "NodeLogMessage",
    "QueueAuditHandler",
    "QueuePublisher",
    "__version__",
    "create_queue_audit_handler",
    "setup_audit_logger",
]

from amq_audit.context import ExecutionContext, NodeLogMessage
from amq_audit.handler import QueueAuditHandler, create_queue_audit_handler, setup_audit_logger
from amq_audit.layout.formatter import AuditEventFormatter
from amq_audit.layout.models import ActionKind, AuditEvent
from amq_audit.transport.publisher import QueuePublisher
