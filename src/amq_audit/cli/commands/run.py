"""Run command for amq-audit CLI.

Replays recorded engine log entries through a QueueAuditHandler, publishing
one committed message per audit event.
"""

from __future__ import annotations

__all__ = ["run"]

import logging
import sys
from pathlib import Path
from typing import TextIO

import click

from amq_audit.config import load_config
from amq_audit.exceptions import FatalAuditFailure
from amq_audit.handler import QueueAuditHandler, create_queue_audit_handler
from amq_audit.replay import iter_log_entries
from amq_audit.shutdown import raise_fatal
from amq_audit.telemetry.system.system_logger import configure_system_logger_file
from amq_audit.utils.config import get_config_path, get_system_log_path

from ..options import config_option, exit_with_failure
from ..styling import style_error, style_success


def _open_handler(config_path: Path) -> QueueAuditHandler:
    """Load configuration and open a handler that re-raises fatal failures.

    Raises:
        ConfigUnreadable: If the config or properties file are invalid.
        BrokerUnavailable: If the broker cannot be reached.
    """
    config, _ = load_config(config_path)
    configure_system_logger_file(
        get_system_log_path(config),
        logging.getLevelNamesMapping()[config.logging.log_level],
    )
    return create_queue_audit_handler(
        properties_file=str(config.resolve_properties_path(config_path)),
        interesting_keys=config.interesting_keys,
        time_zone=config.time_zone,
        application=config.application,
        escape_xml=config.escape_xml,
        on_fatal=raise_fatal,
    )


@click.command()
@click.argument("input_file", metavar="[INPUT]", type=click.File("r", encoding="utf-8"), default="-")
@config_option
def run(input_file: TextIO, config_path: Path | None) -> None:
    """Publish audit events for JSONL log entries.

    INPUT is a JSONL file of engine log entries ("-" for stdin). Each
    auditable entry is sent to the queue in its own committed transaction.
    Processing stops at the first failure; no further entries are sent.

    \b
    Exit codes:
      0    All entries processed
      1    Invalid input line
      111  Configuration unreadable
      112  Broker unavailable
      113  Audit event could not be published
    """
    config_file_path = config_path or get_config_path()

    try:
        handler = _open_handler(config_file_path)
    except FatalAuditFailure as e:
        exit_with_failure(e)

    entries = 0
    try:
        for entry in iter_log_entries(input_file):
            entries += 1
            handler.handle(entry.to_record())
    except FatalAuditFailure as e:
        handler.close()
        exit_with_failure(e)
    except ValueError as e:
        handler.close()
        click.echo(style_error(f"Error: {e}"), err=True)
        click.echo(f"{handler.published} audit events were published before the error.", err=True)
        sys.exit(1)

    handler.close()
    click.echo(style_success(f"{entries} entries processed, {handler.published} audit events published"))
