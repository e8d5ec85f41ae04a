"""Pydantic models for audit events and the settings used to build them.

An AuditEvent is derived from exactly one log record, rendered once and
handed to the publisher. Models are frozen: once built they never change.

IMPORTANT: ``timestamp`` is already formatted text in the configured time
zone. The renderer never touches clocks, which keeps rendering deterministic
for a given (record, settings) pair.
"""

from __future__ import annotations

__all__ = [
    "ActionKind",
    "AuditEvent",
    "LayoutSettings",
    "Parameter",
    "split_key_list",
]

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from amq_audit.constants import DEFAULT_APPLICATION_LABEL, DEFAULT_TIME_ZONE


def split_key_list(value: str) -> list[str]:
    """Split a comma-separated key list, dropping blanks and surrounding spaces."""
    return [key.strip() for key in value.split(",") if key.strip()]


class ActionKind(str, Enum):
    """Kind of lifecycle action an audit event describes.

    Values are the names written to the <action> element.
    """

    EXECUTING = "EXECUTING"
    EXECUTED = "EXECUTED"
    INPUTPORTS = "INPUTPORTS"
    PARAMETERS = "PARAMETERS"
    ERROR = "ERROR"


class Parameter(BaseModel):
    """One <parameter name="..."> element of a PARAMETERS event."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class AuditEvent(BaseModel):
    """One audit event, ready to be rendered as XML.

    Only the payload field matching ``action`` is populated:
    - INPUTPORTS: input_ports
    - ERROR: error
    - PARAMETERS: parameters
    """

    model_config = ConfigDict(frozen=True)

    # --- common ---
    hostname: str
    username: str
    application: str
    action: ActionKind
    timestamp: str
    job_id: str
    node_id: str
    node_name: str

    # --- kind-specific ---
    input_ports: str | None = None
    error: str | None = None
    parameters: tuple[Parameter, ...] = ()


class LayoutSettings(BaseModel):
    """Immutable formatter settings, resolved once at startup.

    Attributes:
        hostname: Host name of the machine running the engine.
        username: OS user running the engine.
        interesting_keys: Settings keys reported in PARAMETERS events.
        time_zone: IANA zone used for timestamps (e.g., "Europe/Madrid").
        application: Value of the <application> element.
        escape_xml: Escape text content. Off by default, matching the
            historical document format (error text is embedded verbatim).
    """

    model_config = ConfigDict(frozen=True)

    hostname: str
    username: str
    interesting_keys: frozenset[str] = Field(default_factory=frozenset)
    time_zone: str = DEFAULT_TIME_ZONE
    application: str = DEFAULT_APPLICATION_LABEL
    escape_xml: bool = False
