"""CLI output styling helpers.

- Cyan bold section headers
- Green success lines with a checkmark
- Red error lines with a cross
- Dim summaries (format and run counts)
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_error",
    "style_header",
    "style_success",
]

import click


def style_header(title: str) -> str:
    """Style a section header as "--- Title ---".

    Example:
        >>> click.echo(style_header("Broker"))
        --- Broker ---
    """
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_success(message: str) -> str:
    """Prefix a message with a green checkmark.

    Example:
        >>> click.echo(style_success("Broker reachable: broker:61613"))
        ✓ Broker reachable: broker:61613
    """
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    """Prefix a message with a red cross.

    Example:
        >>> click.echo(style_error("publish_failed: broker disconnected"), err=True)
        ✗ publish_failed: broker disconnected
    """
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    """Render a neutral message dimmed."""
    return click.style(message, dim=True)
