"""Configuration utilities for amq-audit.

Provides helper functions for locating configuration and log files.
"""

from amq_audit.utils.config.config_helpers import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_PROPERTIES_FILENAME,
    SYSTEM_LOG_FILENAME,
    get_config_dir,
    get_config_path,
    get_system_log_path,
)

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_PROPERTIES_FILENAME",
    "SYSTEM_LOG_FILENAME",
    "get_config_dir",
    "get_config_path",
    "get_system_log_path",
]
