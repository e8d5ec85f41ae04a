"""Unit tests for QueueAuditHandler and its setup functions.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

import json
import logging
import logging.config
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from amq_audit.context import NodeLogMessage
from amq_audit.exceptions import BrokerUnavailable, ConfigUnreadable, PublishFailed
from amq_audit.handler import QueueAuditHandler, create_queue_audit_handler, setup_audit_logger
from amq_audit.layout.formatter import AuditEventFormatter
from amq_audit.shutdown import raise_fatal
from amq_audit.transport.publisher import QueuePublisher


@pytest.fixture
def publisher() -> MagicMock:
    """Mock publisher that accepts every document."""
    return MagicMock(spec=QueuePublisher)


@pytest.fixture
def on_fatal() -> MagicMock:
    """Fatal callback recorder."""
    return MagicMock()


@pytest.fixture
def handler(publisher: MagicMock, formatter: AuditEventFormatter, on_fatal: MagicMock) -> QueueAuditHandler:
    """Handler wired to the mock publisher."""
    return QueueAuditHandler(publisher, formatter, on_fatal=on_fatal)


@pytest.fixture
def audit_logger(handler: QueueAuditHandler) -> Iterator[logging.Logger]:
    """Isolated engine logger with the handler attached."""
    logger = logging.getLogger("tests.knime.engine")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(handler)
    yield logger
    logger.removeHandler(handler)


@pytest.fixture
def no_broker() -> Iterator[None]:
    """Skip the network connect in QueuePublisher.open()."""
    with patch.object(QueuePublisher, "open"):
        yield


class TestEmit:
    """Tests for QueueAuditHandler.emit()."""

    def test_publishes_auditable_record(self, handler, publisher, make_record) -> None:
        """Given an auditable record, publishes exactly its document."""
        # Arrange
        record = make_record("Node 0:1 changed state to EXECUTED")

        # Act
        handler.handle(record)

        # Assert
        publisher.publish.assert_called_once_with(handler.format(record))
        assert handler.published == 1

    def test_skips_unclassified_record(self, handler, publisher, make_record) -> None:
        """Given a record that is not auditable, publishes nothing."""
        # Act
        handler.handle(make_record("Loading workflow"))

        # Assert
        publisher.publish.assert_not_called()

    def test_through_logger(self, audit_logger, publisher) -> None:
        """Given an engine logging a NodeLogMessage, the event reaches the publisher."""
        # Act
        audit_logger.info(NodeLogMessage("Node 0:1 changed state to EXECUTING", node_id="0:1", job="j", name="n"))
        audit_logger.info("plain line, not audited")

        # Assert
        publisher.publish.assert_called_once()
        assert "<action>EXECUTING</action>" in publisher.publish.call_args.args[0]


class TestFailClosed:
    """Tests for behavior after a publish failure."""

    def test_failure_reported_once(self, handler, publisher, on_fatal, make_record) -> None:
        """Given a failed publish, on_fatal receives the error and later records are dropped."""
        # Arrange
        failure = PublishFailed("broker gone")
        publisher.publish.side_effect = failure

        # Act
        handler.handle(make_record("Node 0:1 changed state to EXECUTING"))
        handler.handle(make_record("Node 0:1 changed state to EXECUTED"))
        handler.handle(make_record("boom", logging.ERROR))

        # Assert
        on_fatal.assert_called_once_with(failure)
        assert publisher.publish.call_count == 1
        assert handler.is_failed
        assert handler.published == 0

    def test_nothing_published_after_recovery(self, handler, publisher, make_record) -> None:
        """Given a broker that recovers after a failure, still publishes nothing."""
        # Arrange
        publisher.publish.side_effect = [PublishFailed("blip"), None]

        # Act
        handler.handle(make_record("Node 0:1 changed state to EXECUTING"))
        handler.handle(make_record("Node 0:1 changed state to EXECUTED"))

        # Assert
        assert publisher.publish.call_count == 1

    def test_raise_fatal_propagates(self, publisher, formatter, make_record) -> None:
        """Given raise_fatal, the failure reaches the caller with exit code 113."""
        # Arrange
        publisher.publish.side_effect = PublishFailed("broker gone")
        handler = QueueAuditHandler(publisher, formatter, on_fatal=raise_fatal)

        # Act & Assert
        with pytest.raises(PublishFailed) as exc_info:
            handler.handle(make_record("Node 0:1 changed state to EXECUTED"))
        assert exc_info.value.exit_code == 113
        assert handler.is_failed

    def test_formatter_error_handled(self, handler, publisher, make_record) -> None:
        """Given the formatter raising, the record is reported via handleError and not published."""
        # Arrange
        with (
            patch.object(handler, "format", side_effect=RuntimeError("bad")),
            patch.object(handler, "handleError") as handle_error,
        ):
            # Act
            handler.handle(make_record("Node 0:1 changed state to EXECUTED"))

        # Assert
        handle_error.assert_called_once()
        publisher.publish.assert_not_called()
        assert not handler.is_failed


class TestClose:
    """Tests for QueueAuditHandler.close()."""

    def test_closes_publisher(self, handler, publisher) -> None:
        """Given close, the publisher is closed."""
        # Act
        handler.close()

        # Assert
        publisher.close.assert_called_once()


class TestCreateQueueAuditHandler:
    """Tests for create_queue_audit_handler()."""

    def test_builds_handler(self, config_file: Path, no_broker) -> None:
        """Given valid keyword settings, returns a handler with matching formatter settings."""
        # Act
        handler = create_queue_audit_handler(
            properties_file=str(config_file.parent / "broker.json"),
            interesting_keys="rowCount,column_filter",
            time_zone="Europe/Madrid",
            escape_xml=True,
        )

        # Assert
        assert isinstance(handler.formatter, AuditEventFormatter)
        assert handler.formatter.settings.interesting_keys == frozenset({"rowCount", "column_filter"})
        assert handler.formatter.settings.time_zone == "Europe/Madrid"
        assert handler.formatter.settings.escape_xml is True
        assert handler.publisher.endpoint.destination == "/queue/knime.audit"

    def test_missing_properties(self, tmp_path: Path, on_fatal: MagicMock) -> None:
        """Given a missing properties file, on_fatal receives ConfigUnreadable and it is raised."""
        # Act & Assert
        with pytest.raises(ConfigUnreadable) as exc_info:
            create_queue_audit_handler(properties_file=str(tmp_path / "nope.json"), on_fatal=on_fatal)
        on_fatal.assert_called_once_with(exc_info.value)

    def test_invalid_time_zone(self, config_file: Path, on_fatal: MagicMock) -> None:
        """Given an unknown time zone, raises ConfigUnreadable."""
        # Act & Assert
        with pytest.raises(ConfigUnreadable, match="unknown time zone"):
            create_queue_audit_handler(
                properties_file=str(config_file.parent / "broker.json"),
                time_zone="Nowhere/Special",
                on_fatal=on_fatal,
            )

    def test_broker_unavailable(self, config_file: Path, on_fatal: MagicMock) -> None:
        """Given an unreachable broker, on_fatal receives BrokerUnavailable."""
        # Arrange
        with patch.object(QueuePublisher, "open", side_effect=BrokerUnavailable("refused")):
            # Act & Assert
            with pytest.raises(BrokerUnavailable):
                create_queue_audit_handler(properties_file=str(config_file.parent / "broker.json"), on_fatal=on_fatal)
        assert on_fatal.call_args.args[0].exit_code == 112

    def test_dict_config_factory(self, config_file: Path, no_broker) -> None:
        """Given a dictConfig handler entry with "()", the handler is attached."""
        # Arrange
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {
                "audit": {
                    "()": "amq_audit.handler.create_queue_audit_handler",
                    "properties_file": str(config_file.parent / "broker.json"),
                    "interesting_keys": "rowCount",
                }
            },
            "loggers": {"tests.knime.dictconfig": {"handlers": ["audit"], "level": "DEBUG"}},
        }

        # Act
        logging.config.dictConfig(config)

        # Assert
        logger = logging.getLogger("tests.knime.dictconfig")
        handlers = [h for h in logger.handlers if isinstance(h, QueueAuditHandler)]
        assert len(handlers) == 1
        logger.removeHandler(handlers[0])


class TestSetupAuditLogger:
    """Tests for setup_audit_logger()."""

    @pytest.fixture(autouse=True)
    def _no_system_log_file(self) -> Iterator[None]:
        with patch("amq_audit.handler.configure_system_logger_file"):
            yield

    def test_attaches_handler(self, config_file: Path, no_broker) -> None:
        """Given a valid config, attaches one QueueAuditHandler to the named logger."""
        # Act
        logger = setup_audit_logger("tests.knime.setup", config_file, on_fatal=raise_fatal)

        # Assert
        handlers = [h for h in logger.handlers if isinstance(h, QueueAuditHandler)]
        assert len(handlers) == 1
        assert handlers[0].formatter.settings.interesting_keys == frozenset({"rowCount", "column_filter"})
        logger.removeHandler(handlers[0])

    def test_replaces_existing_handler(self, config_file: Path, no_broker) -> None:
        """Given repeated setup, the previous handler is closed and replaced."""
        # Arrange
        first = setup_audit_logger("tests.knime.replace", config_file, on_fatal=raise_fatal)
        old = first.handlers[0]

        # Act
        with patch.object(QueuePublisher, "close") as close:
            logger = setup_audit_logger("tests.knime.replace", config_file, on_fatal=raise_fatal)

        # Assert
        handlers = [h for h in logger.handlers if isinstance(h, QueueAuditHandler)]
        assert len(handlers) == 1
        assert handlers[0] is not old
        close.assert_called_once()
        logger.removeHandler(handlers[0])

    def test_unreadable_config(self, tmp_path: Path, on_fatal: MagicMock) -> None:
        """Given a missing config file, on_fatal receives ConfigUnreadable (exit 111)."""
        # Act & Assert
        with pytest.raises(ConfigUnreadable):
            setup_audit_logger("tests.knime.missing", tmp_path / "config.json", on_fatal=on_fatal)
        assert on_fatal.call_args.args[0].exit_code == 111

    def test_default_callback_uses_log_dir(self, config_file: Path, no_broker) -> None:
        """Given no on_fatal, terminate_process is bound to the system log directory."""
        # Act
        logger = setup_audit_logger("tests.knime.default", config_file)

        # Assert
        handler = logger.handlers[0]
        assert handler._on_fatal.keywords == {"log_dir": config_file.parent / "logs"}
        logger.removeHandler(handler)
