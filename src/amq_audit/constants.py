"""Application-wide constants for amq-audit.

Constants that define classification markers, the audit document schema
and process exit statuses. For user-configurable settings, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "DEFAULT_APPLICATION_LABEL",
    "SYSTEM_LOGGER_NAME",
    # Classification markers
    "EXECUTING_MARKER",
    "EXECUTED_MARKER",
    "INPUTS_FROM_NODES_MARKER",
    "SETTINGS_XML_PROLOGUE",
    "XML_PROLOGUE_PREFIX",
    # Parameter extraction
    "FLOW_VARIABLE_PREFIX",
    "RESERVED_FLOW_VARIABLE",
    "SETTINGS_ENTRY_TAG",
    "PARSING_ERROR_PARAMETER",
    "FLOW_VARIABLE_PARAMETER",
    "SETTINGS_PARSE_ERROR_TEXT",
    "NOTHING_PARSED_ERROR_TEXT",
    # Identity placeholders
    "NODE_ID_MISSING",
    "JOB_ID_UNREADABLE",
    "NODE_NAME_UNREADABLE",
    "UNKNOWN_HOST",
    "UNKNOWN_USER",
    # Broker defaults
    "DEFAULT_CONNECTION_FACTORY",
    "DEFAULT_QUEUE",
    "DEFAULT_STOMP_PORT",
    "DEFAULT_RECEIPT_TIMEOUT_SECONDS",
    "DEFAULT_CONNECT_TIMEOUT_SECONDS",
    "DEFAULT_TIME_ZONE",
    # Exit codes
    "EXIT_CONFIG_UNREADABLE",
    "EXIT_BROKER_UNAVAILABLE",
    "EXIT_PUBLISH_FAILED",
    # Crash recovery
    "CRASH_BREADCRUMB_FILENAME",
]

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names and the CLI
APP_NAME: str = "amq-audit"

# Value of <application> in every audit document
DEFAULT_APPLICATION_LABEL: str = "KNIME Executor"

# Operational logger; never attached to the audit handler
SYSTEM_LOGGER_NAME: str = f"{APP_NAME}.system"

# ============================================================================
# Classification Markers
# ============================================================================

# Checked in this order, first match wins
EXECUTING_MARKER: str = "changed state to EXECUTING"
EXECUTED_MARKER: str = "changed state to EXECUTED"
INPUTS_FROM_NODES_MARKER: str = "has inputs from nodes: "

# Full prologue that marks a node settings message
SETTINGS_XML_PROLOGUE: str = '<?xml version="1.0" encoding="UTF-8"?>'

# Shorter prefix used to locate the start of the embedded settings document
XML_PROLOGUE_PREFIX: str = "<?xml version"

# ============================================================================
# Parameter Extraction
# ============================================================================

FLOW_VARIABLE_PREFIX: str = "FlowVariable: "

# Workspace path variable, never reported
RESERVED_FLOW_VARIABLE: str = "knime.workspace="

SETTINGS_ENTRY_TAG: str = "entry"

PARSING_ERROR_PARAMETER: str = "parsingerror"
FLOW_VARIABLE_PARAMETER: str = "flowvariable"

SETTINGS_PARSE_ERROR_TEXT: str = "XML parameters could not be parsed"
NOTHING_PARSED_ERROR_TEXT: str = "nor XML parameters nor flow variables could be parsed"

# ============================================================================
# Identity Placeholders
# ============================================================================

NODE_ID_MISSING: str = "error reading nodeID (null)"
JOB_ID_UNREADABLE: str = "error parsing jobID"
NODE_NAME_UNREADABLE: str = "error parsing nodeName"
UNKNOWN_HOST: str = "unknown"
UNKNOWN_USER: str = "unknown"

# ============================================================================
# Broker Defaults
# ============================================================================

# Lookup names inside the broker properties file
DEFAULT_CONNECTION_FACTORY: str = "qpidConnectionFactory"
DEFAULT_QUEUE: str = "amqQueue"

DEFAULT_STOMP_PORT: int = 61613

# How long publish() waits for the COMMIT receipt (seconds)
DEFAULT_RECEIPT_TIMEOUT_SECONDS: float = 30.0

# How long open() waits for the CONNECTED frame (seconds)
DEFAULT_CONNECT_TIMEOUT_SECONDS: float = 10.0

DEFAULT_TIME_ZONE: str = "UTC"

# ============================================================================
# Exit Codes
# ============================================================================

# Host process exit statuses on fatal audit failures
EXIT_CONFIG_UNREADABLE: int = 111
EXIT_BROKER_UNAVAILABLE: int = 112
EXIT_PUBLISH_FAILED: int = 113

# ============================================================================
# Crash Recovery
# ============================================================================

# Written next to the system log when the process terminates on a fatal failure
CRASH_BREADCRUMB_FILENAME = ".last_crash"
