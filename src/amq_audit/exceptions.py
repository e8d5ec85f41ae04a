"""Custom exceptions for amq-audit.

Exceptions are organized into two categories:

Recovered Errors (formatting continues, absorbed into the audit document):
    - ParameterParseFailed: Embedded node settings document is malformed

Fatal Failures (host process must terminate):
    - FatalAuditFailure: Base for failures after which auditing cannot continue
    - ConfigUnreadable: Startup configuration cannot be loaded
    - BrokerUnavailable: Transactional session cannot be established
    - PublishFailed: Send or commit of an audit event failed

Usage:
    from amq_audit.exceptions import FatalAuditFailure, PublishFailed
"""

from __future__ import annotations

__all__ = [
    "BrokerUnavailable",
    "ConfigUnreadable",
    "FatalAuditFailure",
    "ParameterParseFailed",
    "PublishFailed",
]

from amq_audit.constants import (
    EXIT_BROKER_UNAVAILABLE,
    EXIT_CONFIG_UNREADABLE,
    EXIT_PUBLISH_FAILED,
)


# =============================================================================
# Recovered Errors (audit event is still emitted, degraded)
# =============================================================================


class ParameterParseFailed(Exception):
    """The embedded node settings document could not be parsed.

    Raised inside parameter extraction and converted there into a single
    ``parsingerror`` parameter. Never escapes the formatter.
    """


# =============================================================================
# Fatal Failures (host process must terminate)
# =============================================================================


class FatalAuditFailure(Exception):
    """Base exception for failures that stop auditing for good.

    An audit trail must never silently drop events, so these are not retried.
    They bubble to the top-level run loop (or the handler's fatal callback),
    which terminates the process with ``exit_code``.

    Subclasses define specific failure types with distinct exit codes:
    - ConfigUnreadable (exit 111): Configuration cannot be read
    - BrokerUnavailable (exit 112): Broker cannot be reached
    - PublishFailed (exit 113): An audit event could not be committed

    Attributes:
        exit_code: Process exit code.
        failure_type: Category string for logging and breadcrumb files.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class ConfigUnreadable(FatalAuditFailure):
    """Startup configuration cannot be loaded.

    Raised when:
    - The appender config file is missing or invalid
    - The broker properties file is missing or invalid
    - A named lookup (connection factory or queue) is not defined
    """

    exit_code = EXIT_CONFIG_UNREADABLE
    failure_type = "config_unreadable"


class BrokerUnavailable(FatalAuditFailure):
    """Cannot establish the transactional session with the broker."""

    exit_code = EXIT_BROKER_UNAVAILABLE
    failure_type = "broker_unavailable"


class PublishFailed(FatalAuditFailure):
    """Send or commit of an audit event failed.

    There is no retry and no local buffering. After this is raised the
    handler publishes nothing more.
    """

    exit_code = EXIT_PUBLISH_FAILED
    failure_type = "publish_failed"
