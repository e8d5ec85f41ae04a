"""Classification of engine log messages into audit action kinds.

Markers are checked in priority order and the first match wins, so a node
state change logged at ERROR level is still reported as a state change:

1. "changed state to EXECUTING"       -> EXECUTING
2. "changed state to EXECUTED"        -> EXECUTED
3. "has inputs from nodes: "          -> INPUTPORTS
4. <?xml version="1.0" encoding=...?> -> PARAMETERS
5. level is exactly ERROR             -> ERROR
6. anything else                      -> not auditable

Input ports and node settings messages are only logged by engines with
extended node logging enabled.
"""

from __future__ import annotations

__all__ = [
    "classify",
    "input_ports_text",
]

import logging

from amq_audit.constants import (
    EXECUTED_MARKER,
    EXECUTING_MARKER,
    INPUTS_FROM_NODES_MARKER,
    SETTINGS_XML_PROLOGUE,
)
from amq_audit.layout.models import ActionKind

# Ordered (marker, kind) pairs for the text-based kinds
_MARKERS: tuple[tuple[str, ActionKind], ...] = (
    (EXECUTING_MARKER, ActionKind.EXECUTING),
    (EXECUTED_MARKER, ActionKind.EXECUTED),
    (INPUTS_FROM_NODES_MARKER, ActionKind.INPUTPORTS),
    (SETTINGS_XML_PROLOGUE, ActionKind.PARAMETERS),
)


def classify(message: str, levelno: int) -> ActionKind | None:
    """Decide which audit action a log message represents.

    Args:
        message: The log message text.
        levelno: Numeric logging level of the record.

    Returns:
        The action kind, or None if the message is not auditable.
    """
    for marker, kind in _MARKERS:
        if marker in message:
            return kind
    # CRITICAL is deliberately not ERROR
    if levelno == logging.ERROR:
        return ActionKind.ERROR
    return None


def input_ports_text(message: str) -> str:
    """Return the upstream node list that follows the inputs marker.

    The offset is the marker length (23 characters for
    "has inputs from nodes: ").

    Args:
        message: A message containing INPUTS_FROM_NODES_MARKER.

    Returns:
        Everything after the first occurrence of the marker.
    """
    return message[message.index(INPUTS_FROM_NODES_MARKER) + len(INPUTS_FROM_NODES_MARKER) :]
