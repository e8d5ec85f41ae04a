"""Command-line interface for amq-audit.

Provides commands for initializing configuration, checking the broker,
and formatting or replaying recorded engine log entries.
"""

from .main import cli, main

__all__ = ["cli", "main"]
