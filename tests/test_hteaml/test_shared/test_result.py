"""Tests for positions, diagnostics and performance records."""

import pytest

from hteaml.shared.result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    TokenPosition,
)


class TestTokenPosition:
    """Test suite for TokenPosition."""

    def test_valid_position(self):
        """Test construction and string form."""
        position = TokenPosition(3, 14, 40)
        assert str(position) == "line 3, column 14"
        assert position.to_dict() == {"line": 3, "column": 14, "offset": 40}

    @pytest.mark.parametrize("line,column,offset", [(0, 1, 0), (1, 0, 0), (1, 1, -1)])
    def test_invalid_position(self, line, column, offset):
        """Test that out-of-range values are rejected."""
        with pytest.raises(ValueError):
            TokenPosition(line, column, offset)


class TestDiagnosticEntry:
    """Test suite for DiagnosticEntry."""

    def test_creation(self):
        """Test a valid diagnostic entry."""
        entry = DiagnosticEntry(
            DiagnosticSeverity.ERROR,
            "Unterminated group",
            "template_parser",
            position={"line": 1, "column": 2, "offset": 1},
            correlation_id="abc",
        )
        assert entry.severity is DiagnosticSeverity.ERROR
        assert entry.timestamp > 0
        assert entry.details is None

    def test_empty_message_rejected(self):
        """Test that a diagnostic needs a message."""
        with pytest.raises(ValueError, match="message"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "api")

    def test_empty_component_rejected(self):
        """Test that a diagnostic needs a component."""
        with pytest.raises(ValueError, match="component"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "parsed", "")


class TestPerformanceMetrics:
    """Test suite for PerformanceMetrics."""

    def test_tokens_per_second(self):
        """Test throughput calculation."""
        metrics = PerformanceMetrics(processing_time_ms=50.0, tokens_generated=100)
        assert metrics.tokens_per_second == 2000.0

    def test_tokens_per_second_zero_time(self):
        """Test throughput with no elapsed time."""
        assert PerformanceMetrics(tokens_generated=10).tokens_per_second == 0.0

    def test_to_dict(self):
        """Test dictionary conversion."""
        metrics = PerformanceMetrics(1.5, 20, 8, 2, 1)
        assert metrics.to_dict() == {
            "processing_time_ms": 1.5,
            "characters_processed": 20,
            "tokens_generated": 8,
            "elements_built": 2,
            "slots_found": 1,
        }
