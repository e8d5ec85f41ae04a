"""Transactional queue publisher over STOMP.

Each audit document is sent inside its own broker transaction:

    BEGIN -> SEND (text/plain) -> COMMIT (with receipt) -> wait for RECEIPT

publish() only returns once the broker has acknowledged the COMMIT. Any
failure raises PublishFailed; the caller must not continue auditing after
that (there is no retry and no local buffering).

The connection is process-wide state: opened once at startup, closed once
at shutdown. publish() calls are serialized with a lock since the logging
framework may deliver records from several threads.
"""

from __future__ import annotations

__all__ = [
    "QueuePublisher",
]

import threading
import uuid
from types import TracebackType

import stomp
from stomp.exception import StompException

from amq_audit.config import BrokerEndpoint, BrokerProperties
from amq_audit.exceptions import BrokerUnavailable, PublishFailed
from amq_audit.telemetry.system.system_logger import get_system_logger

# Content type of the audit message body
MESSAGE_CONTENT_TYPE = "text/plain; charset=utf-8"

# Listener name registered on the stomp connection
_LISTENER_NAME = "amq-audit-receipts"


class _ReceiptListener(stomp.ConnectionListener):
    """Tracks RECEIPT, ERROR and disconnect notifications from the broker.

    Callbacks run on stomp.py's receiver thread; waiters block on a
    condition until their receipt (or a failure) arrives.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._receipts: set[str] = set()
        self._error: str | None = None
        self._disconnected = False

    def on_receipt(self, frame: stomp.utils.Frame) -> None:
        with self._condition:
            receipt_id = frame.headers.get("receipt-id")
            if receipt_id:
                self._receipts.add(receipt_id)
            self._condition.notify_all()

    def on_error(self, frame: stomp.utils.Frame) -> None:
        with self._condition:
            self._error = frame.headers.get("message") or frame.body or "unknown broker error"
            self._condition.notify_all()

    def on_disconnected(self) -> None:
        with self._condition:
            self._disconnected = True
            self._condition.notify_all()

    def wait_for_receipt(self, receipt_id: str, timeout: float) -> None:
        """Block until the broker acknowledges ``receipt_id``.

        Args:
            receipt_id: Receipt header sent with the COMMIT frame.
            timeout: Seconds to wait.

        Raises:
            PublishFailed: On broker error, disconnect or timeout.
        """
        with self._condition:
            self._condition.wait_for(
                lambda: receipt_id in self._receipts or self._error is not None or self._disconnected,
                timeout=timeout,
            )
            if receipt_id in self._receipts:
                self._receipts.discard(receipt_id)
                return
            if self._error is not None:
                raise PublishFailed(f"Broker rejected the transaction: {self._error}")
            if self._disconnected:
                raise PublishFailed("Broker connection lost before the commit was acknowledged")
            raise PublishFailed(f"No commit receipt from broker within {timeout}s")


class QueuePublisher:
    """Sends audit documents to a queue, one committed transaction each.

    Usage:
        publisher = QueuePublisher.from_properties(properties)
        publisher.open()
        try:
            publisher.publish(document)
        finally:
            publisher.close()
    """

    def __init__(
        self,
        endpoint: BrokerEndpoint,
        *,
        heartbeats: tuple[int, int] = (0, 0),
        connect_timeout: float = 10.0,
        receipt_timeout: float = 30.0,
    ) -> None:
        """Initialize the publisher. No connection is made until open().

        Args:
            endpoint: Resolved broker host, credentials and destination.
            heartbeats: STOMP heart-beat (send, receive) in milliseconds.
            connect_timeout: Socket timeout for connecting, in seconds.
            receipt_timeout: Seconds to wait for each COMMIT receipt.
        """
        self.endpoint = endpoint
        self._heartbeats = heartbeats
        self._connect_timeout = connect_timeout
        self._receipt_timeout = receipt_timeout
        self._connection: stomp.Connection | None = None
        self._listener = _ReceiptListener()
        self._lock = threading.Lock()

    @classmethod
    def from_properties(cls, properties: BrokerProperties) -> QueuePublisher:
        """Create a publisher from the broker properties lookups."""
        return cls(
            properties.resolve(),
            heartbeats=properties.heartbeats,
            connect_timeout=properties.connect_timeout,
            receipt_timeout=properties.receipt_timeout,
        )

    @property
    def is_open(self) -> bool:
        """Check if the broker session is established."""
        return self._connection is not None and self._connection.is_connected()

    def open(self) -> None:
        """Connect to the broker and wait for the CONNECTED frame.

        Raises:
            BrokerUnavailable: If the broker cannot be reached or refuses the login.
        """
        endpoint = self.endpoint
        host_and_port = (endpoint.host, endpoint.port)
        connection = stomp.Connection(
            host_and_ports=[host_and_port],
            heartbeats=self._heartbeats,
            vhost=endpoint.vhost,
            timeout=self._connect_timeout,
            reconnect_attempts_max=1,
        )
        if endpoint.use_ssl:
            connection.set_ssl(for_hosts=[host_and_port])

        self._listener = _ReceiptListener()
        connection.set_listener(_LISTENER_NAME, self._listener)

        try:
            connection.connect(endpoint.username, endpoint.password, wait=True)
        except (StompException, OSError) as e:
            raise BrokerUnavailable(
                f"Cannot connect to broker {endpoint.host}:{endpoint.port}: {str(e) or type(e).__name__}"
            ) from e

        self._connection = connection
        get_system_logger().info(
            {
                "event": "broker_connected",
                "host": endpoint.host,
                "port": endpoint.port,
                "destination": endpoint.destination,
                "message": f"Connected to broker {endpoint.host}:{endpoint.port}, sending to {endpoint.destination}",
            }
        )

    def publish(self, document: str) -> None:
        """Send one text message and commit the transaction.

        Args:
            document: The message body (an audit document).

        Raises:
            PublishFailed: If send or commit fails, or the commit is not acknowledged.
        """
        with self._lock:
            connection = self._connection
            if connection is None:
                raise PublishFailed("Publisher is not open")

            receipt_id = f"commit-{uuid.uuid4()}"
            transaction: str | None = None
            try:
                transaction = connection.begin()
                connection.send(
                    self.endpoint.destination,
                    document,
                    content_type=MESSAGE_CONTENT_TYPE,
                    transaction=transaction,
                )
                connection.commit(transaction=transaction, receipt=receipt_id)
                self._listener.wait_for_receipt(receipt_id, self._receipt_timeout)
            except PublishFailed:
                self._abort(connection, transaction)
                raise
            except (StompException, OSError) as e:
                self._abort(connection, transaction)
                raise PublishFailed(
                    f"Failed to publish audit event to {self.endpoint.destination}: {str(e) or type(e).__name__}"
                ) from e

    def _abort(self, connection: stomp.Connection, transaction: str | None) -> None:
        """Abort a failed transaction, best effort."""
        if transaction is None:
            return
        try:
            connection.abort(transaction)
        except (StompException, OSError):
            pass  # Connection is already broken; the broker drops the transaction

    def close(self) -> None:
        """Disconnect from the broker. Errors are logged, not raised."""
        with self._lock:
            connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.disconnect()
        except (StompException, OSError) as e:
            get_system_logger().warning(
                {
                    "event": "broker_close_failed",
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Error while closing broker connection: {e}",
                }
            )

    def __enter__(self) -> QueuePublisher:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
