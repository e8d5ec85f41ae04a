"""Parameter extraction for PARAMETERS audit events.

A node settings message embeds the node's settings document followed by
its flow variables, one per line:

    Node 0:3 settings <?xml version="1.0" encoding="UTF-8"?><config ...><entry key="k" .../></config>
    FlowVariable: threshold=0.5
    FlowVariable: knime.workspace=/home/user/knime-workspace

Only allow-listed settings keys are reported. The workspace variable is
never reported.
"""

from __future__ import annotations

__all__ = [
    "extract_parameters",
    "parse_settings_entries",
]

import re
import xml.etree.ElementTree as ET
from collections.abc import Collection

from amq_audit.constants import (
    FLOW_VARIABLE_PARAMETER,
    FLOW_VARIABLE_PREFIX,
    NOTHING_PARSED_ERROR_TEXT,
    PARSING_ERROR_PARAMETER,
    RESERVED_FLOW_VARIABLE,
    SETTINGS_ENTRY_TAG,
    SETTINGS_PARSE_ERROR_TEXT,
    XML_PROLOGUE_PREFIX,
)
from amq_audit.exceptions import ParameterParseFailed
from amq_audit.layout.models import Parameter
from amq_audit.telemetry.system.system_logger import get_system_logger


# Only LF and CRLF end a line; trailing empty lines are dropped.
_LINE_BREAK = re.compile(r"\r?\n")


def _local_name(tag: str) -> str:
    """Strip the "{namespace}" part ElementTree puts in front of tags."""
    return tag.rsplit("}", 1)[-1]


def parse_settings_entries(document: str) -> list[tuple[str, str]]:
    """Parse a node settings document into (key, value) pairs.

    Every element named "entry" counts, at any depth and in any namespace.
    Missing attributes read as empty strings.

    Args:
        document: The settings XML, prologue included.

    Returns:
        (key, value) pairs in document order.

    Raises:
        ParameterParseFailed: If the document is not well-formed.
    """
    try:
        root = ET.fromstring(document)
    except (ET.ParseError, ValueError) as e:
        raise ParameterParseFailed(str(e)) from e

    return [
        (element.get("key", ""), element.get("value", ""))
        for element in root.iter()
        if isinstance(element.tag, str) and _local_name(element.tag) == SETTINGS_ENTRY_TAG
    ]


def extract_parameters(message: str, interesting_keys: Collection[str]) -> tuple[Parameter, ...]:
    """Build the parameter list of a PARAMETERS event.

    The message is cut at the first XML prologue and split into lines.
    Line 0 is the settings document, lines 1..N are flow variables.

    Args:
        message: The node settings log message.
        interesting_keys: Settings keys to report.

    Returns:
        Parameters in output order. A malformed settings document yields a
        single "parsingerror" parameter in place of the settings entries;
        flow variables are still reported.
    """
    start = message.find(XML_PROLOGUE_PREFIX)
    if start < 0:
        return (Parameter(name=PARSING_ERROR_PARAMETER, value=NOTHING_PARSED_ERROR_TEXT),)

    lines = _LINE_BREAK.split(message[start:])
    while lines and not lines[-1]:
        lines.pop()
    parameters: list[Parameter] = []

    try:
        entries = parse_settings_entries(lines[0])
    except ParameterParseFailed as e:
        get_system_logger().warning(
            {
                "event": "settings_parse_failed",
                "message": f"Node settings could not be parsed: {e}",
            }
        )
        parameters.append(Parameter(name=PARSING_ERROR_PARAMETER, value=SETTINGS_PARSE_ERROR_TEXT))
    else:
        parameters.extend(
            Parameter(name=key, value=value) for key, value in entries if key in interesting_keys
        )

    for line in lines[1:]:
        flow_variable = line.replace(FLOW_VARIABLE_PREFIX, "")
        if RESERVED_FLOW_VARIABLE in flow_variable:
            continue
        parameters.append(Parameter(name=FLOW_VARIABLE_PARAMETER, value=flow_variable))

    return tuple(parameters)
