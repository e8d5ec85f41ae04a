"""Unit tests for PARAMETERS extraction.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

import pytest

from amq_audit.exceptions import ParameterParseFailed
from amq_audit.layout.models import Parameter
from amq_audit.layout.parameters import extract_parameters, parse_settings_entries

PROLOGUE = '<?xml version="1.0" encoding="UTF-8"?>'

SETTINGS_DOCUMENT = (
    PROLOGUE + '<config xmlns="http://www.knime.org/2008/09/XMLConfig" key="settings.xml">'
    '<entry key="rowCount" type="xint" value="100"/>'
    '<config key="model">'
    '<entry key="column_filter" type="xstring" value="age"/>'
    '<entry key="secret" type="xpassword" value="hunter2"/>'
    "</config>"
    "</config>"
)

INTERESTING = frozenset({"rowCount", "column_filter"})


class TestParseSettingsEntries:
    """Tests for parse_settings_entries()."""

    def test_finds_entries_at_any_depth(self) -> None:
        """Given nested configs in a namespace, returns all entries in order."""
        # Act
        entries = parse_settings_entries(SETTINGS_DOCUMENT)

        # Assert
        assert entries == [("rowCount", "100"), ("column_filter", "age"), ("secret", "hunter2")]

    def test_missing_attributes_read_as_empty(self) -> None:
        """Given an entry without key or value, both read as empty strings."""
        # Act
        entries = parse_settings_entries(PROLOGUE + "<config><entry/></config>")

        # Assert
        assert entries == [("", "")]

    def test_malformed_document_raises(self) -> None:
        """Given broken XML, raises ParameterParseFailed."""
        # Act & Assert
        with pytest.raises(ParameterParseFailed):
            parse_settings_entries(PROLOGUE + "<config><entry key='a'></config>")


class TestExtractParameters:
    """Tests for extract_parameters()."""

    def test_reports_only_interesting_keys(self) -> None:
        """Given settings with unlisted keys, only allow-listed keys are reported."""
        # Act
        parameters = extract_parameters("Node 0:3 settings " + SETTINGS_DOCUMENT, INTERESTING)

        # Assert
        assert parameters == (
            Parameter(name="rowCount", value="100"),
            Parameter(name="column_filter", value="age"),
        )

    def test_empty_allow_list_reports_no_entries(self) -> None:
        """Given no interesting keys, no settings entries are reported."""
        # Act
        parameters = extract_parameters(SETTINGS_DOCUMENT, frozenset())

        # Assert
        assert parameters == ()

    def test_flow_variables_follow_entries(self) -> None:
        """Given flow variable lines, each becomes a flowvariable parameter."""
        # Arrange
        message = SETTINGS_DOCUMENT + "\nFlowVariable: threshold=0.5\nFlowVariable: mode=fast"

        # Act
        parameters = extract_parameters(message, frozenset({"rowCount"}))

        # Assert
        assert parameters == (
            Parameter(name="rowCount", value="100"),
            Parameter(name="flowvariable", value="threshold=0.5"),
            Parameter(name="flowvariable", value="mode=fast"),
        )

    def test_workspace_variable_never_reported(self) -> None:
        """Given the knime.workspace variable, it is skipped."""
        # Arrange
        message = (
            SETTINGS_DOCUMENT
            + "\nFlowVariable: knime.workspace=/home/knime/workspace\nFlowVariable: threshold=0.5"
        )

        # Act
        parameters = extract_parameters(message, frozenset())

        # Assert
        assert parameters == (Parameter(name="flowvariable", value="threshold=0.5"),)

    def test_malformed_settings_yield_one_parsing_error(self) -> None:
        """Given a malformed settings document, exactly one parsingerror replaces the entries."""
        # Arrange
        message = PROLOGUE + "<config><entry key='rowCount'</config>\nFlowVariable: threshold=0.5"

        # Act
        parameters = extract_parameters(message, INTERESTING)

        # Assert
        assert parameters == (
            Parameter(name="parsingerror", value="XML parameters could not be parsed"),
            Parameter(name="flowvariable", value="threshold=0.5"),
        )

    def test_no_prologue_yields_nothing_parsed_error(self) -> None:
        """Given no XML prologue at all, a single parsingerror is returned."""
        # Act
        parameters = extract_parameters("Node 0:3 settings unavailable", INTERESTING)

        # Assert
        assert parameters == (
            Parameter(name="parsingerror", value="nor XML parameters nor flow variables could be parsed"),
        )

    def test_windows_line_endings(self) -> None:
        """Given CRLF line breaks, flow variables carry no trailing carriage return."""
        # Arrange
        message = SETTINGS_DOCUMENT + "\r\nFlowVariable: threshold=0.5\r\n"

        # Act
        parameters = extract_parameters(message, frozenset())

        # Assert
        assert parameters == (Parameter(name="flowvariable", value="threshold=0.5"),)

    def test_trailing_blank_lines_dropped(self) -> None:
        """Given a message ending in blank lines, no empty flow variable is reported."""
        # Arrange
        message = SETTINGS_DOCUMENT + "\nFlowVariable: a=1\n\n\n"

        # Act
        parameters = extract_parameters(message, frozenset())

        # Assert
        assert parameters == (Parameter(name="flowvariable", value="a=1"),)

    @pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x1d", "\x1e", "\x85", "\u2028", "\u2029"])
    def test_only_newlines_split_flow_variables(self, separator: str) -> None:
        """Given a flow variable value with other line-break characters, it stays one parameter."""
        # Arrange
        message = SETTINGS_DOCUMENT + f"\nFlowVariable: note=a{separator}b"

        # Act
        parameters = extract_parameters(message, INTERESTING)

        # Assert
        assert parameters == (
            Parameter(name="rowCount", value="100"),
            Parameter(name="column_filter", value="age"),
            Parameter(name="flowvariable", value=f"note=a{separator}b"),
        )
