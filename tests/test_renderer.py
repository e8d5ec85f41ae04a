"""Unit tests for XML rendering of audit events."""

import pytest

from amq_audit.layout.models import ActionKind, AuditEvent, Parameter
from amq_audit.layout.renderer import render_audit_event

COMMON_ELEMENTS = (
    "<auditevent>"
    "    <hostname>executor-1</hostname>"
    "    <username>knime</username>"
    "    <application>KNIME Executor</application>"
)


def _event(action: ActionKind, **kwargs) -> AuditEvent:
    fields = {
        "hostname": "executor-1",
        "username": "knime",
        "application": "KNIME Executor",
        "action": action,
        "timestamp": "1970-01-01T00:00:00.000Z",
        "job_id": "job-1",
        "node_id": "0:1",
        "node_name": "Column Filter",
    }
    fields.update(kwargs)
    return AuditEvent(**fields)


class TestRenderAuditEvent:
    """Tests for render_audit_event()."""

    def test_executed_document(self) -> None:
        """Given an EXECUTED event, renders the exact single-line document."""
        # Act
        document = render_audit_event(_event(ActionKind.EXECUTED))

        # Assert
        assert document == (
            COMMON_ELEMENTS + "    <action>EXECUTED</action>"
            "    <timestamp>1970-01-01T00:00:00.000Z</timestamp>"
            "    <jobid>job-1</jobid>"
            "    <nodeid>0:1</nodeid>"
            "    <nodename>Column Filter</nodename>"
            "</auditevent>\n"
        )

    def test_inputports_element(self) -> None:
        """Given an INPUTPORTS event, the payload follows nodename."""
        # Act
        document = render_audit_event(_event(ActionKind.INPUTPORTS, input_ports="0:1, 0:2"))

        # Assert
        assert document.endswith("    <nodename>Column Filter</nodename>    <inputports>0:1, 0:2</inputports></auditevent>\n")

    def test_parameters_in_order(self) -> None:
        """Given parameters, renders one element each, in order."""
        # Arrange
        event = _event(
            ActionKind.PARAMETERS,
            parameters=(Parameter(name="rowCount", value="100"), Parameter(name="flowvariable", value="x=1")),
        )

        # Act
        document = render_audit_event(event)

        # Assert
        assert (
            '    <parameter name="rowCount">100</parameter>    <parameter name="flowvariable">x=1</parameter>'
            "</auditevent>\n"
        ) in document

    def test_parameters_without_entries(self) -> None:
        """Given a PARAMETERS event with no parameters, no parameter element appears."""
        # Act
        document = render_audit_event(_event(ActionKind.PARAMETERS))

        # Assert
        assert "<parameter" not in document
        assert document.endswith("<nodename>Column Filter</nodename></auditevent>\n")

    def test_error_text_is_verbatim(self) -> None:
        """Given error text with markup and newlines, it is embedded unchanged."""
        # Arrange
        error = "Execute failed: a < b & c\n\tat Node.execute()"

        # Act
        document = render_audit_event(_event(ActionKind.ERROR, error=error))

        # Assert
        assert f"    <error>{error}</error></auditevent>\n" in document

    def test_escape_option(self) -> None:
        """Given escape=True, text and attribute content are escaped."""
        # Arrange
        event = _event(
            ActionKind.PARAMETERS,
            node_name="A & B",
            parameters=(Parameter(name='say "hi"', value="<x>"),),
        )

        # Act
        document = render_audit_event(event, escape=True)

        # Assert
        assert "<nodename>A &amp; B</nodename>" in document
        assert "<parameter name='say \"hi\"'>&lt;x&gt;</parameter>" in document

    @pytest.mark.parametrize("action", [ActionKind.EXECUTING, ActionKind.EXECUTED])
    def test_state_changes_have_no_payload(self, action: ActionKind) -> None:
        """Given a state change, no kind-specific element is rendered."""
        # Act
        document = render_audit_event(_event(action, error="ignored", input_ports="ignored"))

        # Assert
        assert "<error>" not in document
        assert "<inputports>" not in document

    def test_deterministic(self) -> None:
        """Given the same event twice, renders identical text."""
        # Arrange
        event = _event(ActionKind.ERROR, error="boom")

        # Act & Assert
        assert render_audit_event(event) == render_audit_event(event)
