"""Format command for amq-audit CLI.

Dry run: renders audit documents for recorded engine log entries and
prints them to stdout. Nothing is sent to the broker.
"""

from __future__ import annotations

__all__ = ["format_cmd"]

import sys
from pathlib import Path
from typing import TextIO
from zoneinfo import ZoneInfoNotFoundError

import click

from amq_audit.config import AppenderConfig
from amq_audit.constants import DEFAULT_APPLICATION_LABEL, DEFAULT_TIME_ZONE
from amq_audit.layout.formatter import AuditEventFormatter
from amq_audit.replay import iter_log_entries

from ..options import config_option
from ..styling import style_dim, style_error


def _build_formatter(
    config_path: Path | None,
    interesting_keys: str | None,
    time_zone: str | None,
    application: str | None,
    escape_xml: bool | None,
) -> AuditEventFormatter:
    """Build the formatter from --config, with explicit flags taking precedence."""
    base: AppenderConfig | None = None
    if config_path is not None:
        base = AppenderConfig.load_from_files(config_path)

    if interesting_keys is not None:
        keys = [key.strip() for key in interesting_keys.split(",") if key.strip()]
    else:
        keys = base.interesting_keys if base else []

    return AuditEventFormatter.from_options(
        interesting_keys=keys,
        time_zone=time_zone or (base.time_zone if base else DEFAULT_TIME_ZONE),
        application=application or (base.application if base else DEFAULT_APPLICATION_LABEL),
        escape_xml=escape_xml if escape_xml is not None else (base.escape_xml if base else False),
    )


@click.command("format")
@click.argument("input_file", metavar="[INPUT]", type=click.File("r", encoding="utf-8"), default="-")
@config_option
@click.option("--interesting-keys", help="Settings keys reported in PARAMETERS events (comma-separated)")
@click.option("--time-zone", help="IANA time zone for timestamps")
@click.option("--application", help="Application label")
@click.option("--escape-xml/--no-escape-xml", default=None, help="Escape text content in audit documents")
def format_cmd(
    input_file: TextIO,
    config_path: Path | None,
    interesting_keys: str | None,
    time_zone: str | None,
    application: str | None,
    escape_xml: bool | None,
) -> None:
    """Print audit documents for JSONL log entries (dry run).

    INPUT is a JSONL file of engine log entries ("-" for stdin). Entries
    that are not auditable produce no output.

    \b
    Entry keys:
      message, level, timestamp_ms, node_id, job_id, node_name, logger
    """
    try:
        formatter = _build_formatter(config_path, interesting_keys, time_zone, application, escape_xml)
    except (FileNotFoundError, ValueError, ZoneInfoNotFoundError) as e:
        click.echo(style_error(f"Error: {e}"), err=True)
        sys.exit(1)

    entries = 0
    documents = 0
    try:
        for entry in iter_log_entries(input_file):
            entries += 1
            document = formatter.format(entry.to_record())
            if document:
                documents += 1
                click.echo(document, nl=False)
    except ValueError as e:
        click.echo(style_error(f"Error: {e}"), err=True)
        sys.exit(1)

    click.echo(style_dim(f"{entries} entries, {documents} audit events"), err=True)
