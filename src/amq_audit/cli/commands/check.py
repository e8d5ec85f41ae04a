"""Check command for amq-audit CLI.

Verifies that the configured broker accepts a session.
"""

from __future__ import annotations

__all__ = ["check"]

from pathlib import Path

import click

from amq_audit.config import load_config
from amq_audit.exceptions import FatalAuditFailure
from amq_audit.transport.publisher import QueuePublisher
from amq_audit.utils.config import get_config_path

from ..options import config_option, exit_with_failure
from ..styling import style_success


@click.command()
@config_option
def check(config_path: Path | None) -> None:
    """Open and close a broker session.

    Nothing is sent. Exit codes:
        0: Broker reachable
        111: Configuration unreadable
        112: Broker unavailable
    """
    config_file_path = config_path or get_config_path()

    try:
        _, properties = load_config(config_file_path)
        publisher = QueuePublisher.from_properties(properties)
        publisher.open()
    except FatalAuditFailure as e:
        exit_with_failure(e, verbose=False)

    endpoint = publisher.endpoint
    publisher.close()
    click.echo(style_success(f"Broker reachable: {endpoint.host}:{endpoint.port} (destination {endpoint.destination})"))
