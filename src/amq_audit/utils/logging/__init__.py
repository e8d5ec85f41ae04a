"""Logging utilities and helpers.

This package provides logging infrastructure for amq-audit:
- iso_formatter: ISO 8601 timestamps for audit documents and the system log

Import directly from submodules to avoid circular imports:
    from amq_audit.utils.logging.iso_formatter import format_iso8601
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
