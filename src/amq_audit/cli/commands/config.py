"""Config command group for amq-audit CLI.

Provides configuration management subcommands.
"""

from __future__ import annotations

__all__ = ["config"]

import json
import sys
from pathlib import Path

import click

from amq_audit.config import AppenderConfig
from amq_audit.exceptions import ConfigUnreadable
from amq_audit.utils.config import get_config_path, get_system_log_path

from ..options import config_option
from ..styling import style_error, style_header, style_success


def _mask_password(url: str) -> str:
    """Hide the password part of a broker URL."""
    scheme, sep, rest = url.partition("://")
    credentials, at, host = rest.rpartition("@")
    if not at or ":" not in credentials:
        return url
    user = credentials.split(":", 1)[0]
    return f"{scheme}{sep}{user}:****@{host}"


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("path")
@config_option
def config_path_cmd(config_path: Path | None) -> None:
    """Show config file path.

    Displays the OS-appropriate config file location:
    - macOS: ~/Library/Application Support/amq-audit/
    - Linux: ~/.config/amq-audit/
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\amq-audit/
    """
    path = config_path or get_config_path()
    click.echo(str(path))

    if not path.exists():
        click.echo("(file does not exist - run 'amq-audit init' to create)", err=True)


@config.command("show")
@config_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_show(config_path: Path | None, as_json: bool) -> None:
    """Display current configuration.

    Broker passwords are masked.
    """
    config_file_path = config_path or get_config_path()

    try:
        loaded_config = AppenderConfig.load_from_files(config_file_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo("\n" + style_error(f"Error: {e}"), err=True)
        sys.exit(1)

    properties_path = loaded_config.resolve_properties_path(config_file_path)
    properties_error = ""
    try:
        properties = loaded_config.load_broker_properties(config_file_path)
    except ConfigUnreadable as e:
        properties = None
        properties_error = str(e)

    if as_json:
        config_dict: dict[str, object] = loaded_config.model_dump(mode="json")
        if properties is not None:
            broker = properties.model_dump(mode="json")
            broker["connection_factories"] = {
                name: _mask_password(url) for name, url in properties.connection_factories.items()
            }
            config_dict["broker"] = broker
        config_dict["_computed"] = {
            "config_file": str(config_file_path),
            "properties_file": str(properties_path),
            "system_log": str(get_system_log_path(loaded_config)),
        }
        click.echo(json.dumps(config_dict, indent=2))
        return

    click.echo("\namq-audit configuration:\n")

    click.echo(style_header("Audit events"))
    click.echo(f"  application: {loaded_config.application}")
    click.echo(f"  time_zone: {loaded_config.time_zone}")
    keys = ", ".join(loaded_config.interesting_keys) or "(none)"
    click.echo(f"  interesting_keys: {keys}")
    click.echo(f"  escape_xml: {loaded_config.escape_xml}")
    click.echo()

    click.echo(style_header("Broker"))
    click.echo(f"  properties_file: {properties_path}")
    if properties is None:
        click.echo("  " + style_error(properties_error))
    else:
        endpoint = properties.resolve()
        url = properties.connection_factories[properties.connection_factory]
        click.echo(f"  connection_factory: {properties.connection_factory} -> {_mask_password(url)}")
        click.echo(f"  queue: {properties.queue} -> {endpoint.destination}")
        click.echo(f"  ssl: {endpoint.use_ssl}")
        click.echo(f"  receipt_timeout: {properties.receipt_timeout}s")
    click.echo()

    click.echo(style_header("Logging"))
    click.echo(f"  log_level: {loaded_config.logging.log_level}")
    click.echo(f"  system log: {get_system_log_path(loaded_config)}")
    click.echo()

    click.echo(f"Config file: {config_file_path}")


@config.command("validate")
@config_option
def config_validate(config_path: Path | None) -> None:
    """Validate configuration and broker properties files.

    Checks both files for:
    - Valid JSON syntax
    - Schema validation (required fields, types, time zone)
    - Connection factory and queue lookups

    Exit codes:
        0: Config is valid
        1: Config is invalid or not found
    """
    config_file_path = config_path or get_config_path()

    try:
        loaded_config = AppenderConfig.load_from_files(config_file_path)
        loaded_config.load_broker_properties(config_file_path)
    except (FileNotFoundError, ValueError, ConfigUnreadable) as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    click.echo(style_success(f"Config valid: {config_file_path}"))
    click.echo(style_success(f"Broker properties valid: {loaded_config.resolve_properties_path(config_file_path)}"))
