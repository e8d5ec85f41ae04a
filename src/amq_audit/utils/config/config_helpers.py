"""Helper functions for configuration paths.

Simple utility functions for locating configuration and log files.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_PROPERTIES_FILENAME",
    "SYSTEM_LOG_FILENAME",
    "get_config_dir",
    "get_config_path",
    "get_system_log_path",
]

from pathlib import Path
from typing import TYPE_CHECKING

from platformdirs import user_log_dir

from amq_audit.constants import APP_NAME
from amq_audit.utils.file_helpers import get_app_dir

if TYPE_CHECKING:
    from amq_audit.config import AppenderConfig

DEFAULT_CONFIG_FILENAME = "config.json"
DEFAULT_PROPERTIES_FILENAME = "broker.json"
SYSTEM_LOG_FILENAME = "system.jsonl"


def get_config_dir() -> Path:
    """Get the OS-appropriate config directory.

    Uses click.get_app_dir() which returns:
    - macOS: ~/Library/Application Support/amq-audit
    - Linux: ~/.config/amq-audit (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\amq-audit

    Returns:
        Path to the config directory.
    """
    return get_app_dir()


def get_config_path() -> Path:
    """Get the default path of the appender config file."""
    return get_config_dir() / DEFAULT_CONFIG_FILENAME


def get_system_log_path(config: "AppenderConfig") -> Path:
    """Get the path of the operational system log.

    Args:
        config: Appender configuration.

    Returns:
        Path: <log_dir>/system.jsonl, using the platform log directory
        (platformdirs.user_log_dir) when no log_dir is configured.

    Example:
        >>> get_system_log_path(config)
        PosixPath('/var/log/amq-audit/system.jsonl')
    """
    base = Path(config.logging.log_dir).expanduser() if config.logging.log_dir else Path(user_log_dir(APP_NAME))
    return base / SYSTEM_LOG_FILENAME
