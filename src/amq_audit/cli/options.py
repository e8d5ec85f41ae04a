"""Shared CLI options and fatal error reporting."""

from __future__ import annotations

__all__ = [
    "config_option",
    "exit_with_failure",
]

import sys
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from amq_audit.exceptions import FatalAuditFailure

from .styling import style_error

F = TypeVar("F", bound=Callable[..., Any])


def config_option(func: F) -> F:
    """Add the --config/-c option (appender config file path)."""
    return click.option(
        "--config",
        "-c",
        "config_path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Appender config file (default: OS config location)",
    )(func)


def exit_with_failure(failure: FatalAuditFailure, *, verbose: bool = True) -> NoReturn:
    """Report a fatal failure on stderr and exit with its exit code.

    Args:
        failure: The fatal failure.
        verbose: Also print the traceback.
    """
    if verbose:
        traceback.print_exception(type(failure), failure, failure.__traceback__, file=sys.stderr)
    click.echo(style_error(f"{failure.failure_type}: {failure}"), err=True)
    sys.exit(failure.exit_code)
