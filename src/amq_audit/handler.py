"""Fail-closed logging handler that publishes audit events to a queue.

This module provides:
- QueueAuditHandler: formats records with AuditEventFormatter and publishes
  each non-empty document in its own broker transaction
- create_queue_audit_handler: keyword factory, usable from dictConfig
- setup_audit_logger: attach a handler built from the appender config file

Fail-closed behavior:
  The first failed publish marks the handler as failed. From then on every
  record is dropped (nothing is published after a failure) and the
  ``on_fatal`` callback is invoked exactly once with the PublishFailed error.
  The default callback terminates the process.

dictConfig example:

    {
        "version": 1,
        "handlers": {
            "audit": {
                "()": "amq_audit.handler.create_queue_audit_handler",
                "properties_file": "/etc/knime/broker.json",
                "interesting_keys": "column_filter,rowCount",
                "time_zone": "Europe/Zurich",
            }
        },
        "loggers": {"knime": {"handlers": ["audit"], "level": "DEBUG"}},
    }
"""

from __future__ import annotations

__all__ = [
    "QueueAuditHandler",
    "create_queue_audit_handler",
    "setup_audit_logger",
]

import functools
import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from amq_audit.config import AppenderConfig, BrokerProperties, load_config
from amq_audit.constants import DEFAULT_APPLICATION_LABEL, DEFAULT_TIME_ZONE
from amq_audit.exceptions import ConfigUnreadable, FatalAuditFailure, PublishFailed
from amq_audit.layout.formatter import AuditEventFormatter
from amq_audit.shutdown import terminate_process
from amq_audit.telemetry.system.system_logger import configure_system_logger_file, get_system_logger
from amq_audit.transport.publisher import QueuePublisher
from amq_audit.utils.config.config_helpers import get_config_path, get_system_log_path

# Callback receiving the fatal failure; expected not to return normally
FatalCallback = Callable[[FatalAuditFailure], object]


class QueueAuditHandler(logging.Handler):
    """Audit handler that publishes to a queue and fails closed.

    Records that are not auditable format to "" and are skipped. Every
    other record becomes one committed message on the queue.
    """

    def __init__(
        self,
        publisher: QueuePublisher,
        formatter: AuditEventFormatter,
        on_fatal: FatalCallback = terminate_process,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler.

        Args:
            publisher: An open queue publisher. The handler owns it and
                closes it in close().
            formatter: Formatter producing the audit documents.
            on_fatal: Called once with the PublishFailed error.
            level: Handler level.
        """
        super().__init__(level)
        self.setFormatter(formatter)
        self.publisher = publisher
        self._on_fatal = on_fatal
        self._failed = False
        self.published = 0

    @property
    def is_failed(self) -> bool:
        """Check if a publish has failed (handler drops all records)."""
        return self._failed

    def emit(self, record: logging.LogRecord) -> None:
        """Format the record and publish it as an audit event.

        Args:
            record: The log record.
        """
        if self._failed:
            return

        try:
            document = self.format(record)
        except Exception:
            self.handleError(record)
            return

        if not document:
            return

        try:
            self.publisher.publish(document)
        except PublishFailed as e:
            self._fail(e)
        else:
            self.published += 1

    def _fail(self, failure: PublishFailed) -> None:
        """Mark the handler failed and hand the failure to on_fatal."""
        self._failed = True
        get_system_logger().error(
            {
                "event": "audit_publish_failed",
                "error": str(failure),
                "message": f"Audit event could not be published, auditing stopped: {failure}",
            }
        )
        self._on_fatal(failure)

    def close(self) -> None:
        """Close the publisher and release the handler."""
        try:
            self.publisher.close()
        finally:
            super().close()


def _to_level(level: int | str) -> int:
    """Convert a level name such as "INFO" to its number."""
    if isinstance(level, str):
        return logging.getLevelNamesMapping()[level.upper()]
    return level


def _build_handler(
    config: AppenderConfig,
    properties: BrokerProperties,
    on_fatal: FatalCallback,
    level: int,
) -> QueueAuditHandler:
    """Open the publisher and build a handler for validated settings.

    Raises:
        BrokerUnavailable: If the broker session cannot be established.
    """
    formatter = AuditEventFormatter.from_options(
        interesting_keys=config.interesting_keys,
        time_zone=config.time_zone,
        application=config.application,
        escape_xml=config.escape_xml,
    )
    publisher = QueuePublisher.from_properties(properties)
    publisher.open()
    return QueueAuditHandler(publisher, formatter, on_fatal=on_fatal, level=level)


def create_queue_audit_handler(
    properties_file: str,
    interesting_keys: str | list[str] = "",
    time_zone: str = DEFAULT_TIME_ZONE,
    application: str = DEFAULT_APPLICATION_LABEL,
    escape_xml: bool = False,
    on_fatal: FatalCallback = terminate_process,
    level: int | str = logging.NOTSET,
) -> QueueAuditHandler:
    """Create a connected QueueAuditHandler from keyword settings.

    Startup failures (unreadable settings, unreachable broker) are passed
    to ``on_fatal`` as well, then raised.

    Args:
        properties_file: Path to the broker properties file.
        interesting_keys: Settings keys reported in PARAMETERS events
            (list or comma-separated string).
        time_zone: IANA time zone for audit timestamps.
        application: Value of the <application> element.
        escape_xml: Escape text content in audit documents.
        on_fatal: Fatal failure callback.
        level: Handler level.

    Returns:
        QueueAuditHandler with an open publisher.

    Raises:
        ConfigUnreadable: If the settings or properties file are invalid.
        BrokerUnavailable: If the broker cannot be reached.
    """
    try:
        try:
            config = AppenderConfig(
                properties_file=properties_file,
                interesting_keys=interesting_keys,
                time_zone=time_zone,
                application=application,
                escape_xml=escape_xml,
            )
        except ValidationError as e:
            raise ConfigUnreadable(f"Invalid audit handler settings: {e}") from e
        properties = config.load_broker_properties()
        return _build_handler(config, properties, on_fatal, _to_level(level))
    except FatalAuditFailure as e:
        on_fatal(e)
        raise


def setup_audit_logger(
    logger_name: str,
    config_path: Path | None = None,
    on_fatal: FatalCallback | None = None,
    log_level: int = logging.DEBUG,
) -> logging.Logger:
    """Attach a QueueAuditHandler built from the appender config file.

    Also configures the system log file from the config's logging section.
    Any QueueAuditHandler already on the logger is closed and replaced.

    Args:
        logger_name: Name of the engine logger to audit (e.g., "knime").
        config_path: Appender config file. Defaults to the OS config location.
        on_fatal: Fatal failure callback. Defaults to terminate_process,
            writing its breadcrumb next to the system log.
        log_level: Level set on the logger. Classification decides what is
            audited, so the default lets everything through.

    Returns:
        logging.Logger: The logger with the audit handler attached.

    Raises:
        ConfigUnreadable: If the config or properties file are invalid.
        BrokerUnavailable: If the broker cannot be reached.
    """
    config_path = config_path or get_config_path()
    try:
        config, properties = load_config(config_path)
    except ConfigUnreadable as e:
        (on_fatal or terminate_process)(e)
        raise

    system_log_path = get_system_log_path(config)
    configure_system_logger_file(system_log_path, logging.getLevelNamesMapping()[config.logging.log_level])
    if on_fatal is None:
        on_fatal = functools.partial(terminate_process, log_dir=system_log_path.parent)

    try:
        handler = _build_handler(config, properties, on_fatal, logging.NOTSET)
    except FatalAuditFailure as e:
        on_fatal(e)
        raise

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    # Close and remove any existing audit handlers to avoid duplicates
    for existing in [h for h in logger.handlers if isinstance(h, QueueAuditHandler)]:
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)

    return logger
