"""Message queue transport for audit documents."""

from amq_audit.transport.publisher import QueuePublisher

__all__ = ["QueuePublisher"]
