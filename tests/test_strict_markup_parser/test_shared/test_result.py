"""Tests for shared diagnostics, metrics and logging helpers."""

import logging

import pytest

from strict_markup_parser.shared import (
    CorrelationLogger,
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    configure_logging,
    get_logger,
)


class TestDiagnosticEntry:
    """Test diagnostic entry validation and serialization."""

    def test_to_dict(self):
        """Test the JSON-friendly form."""
        entry = DiagnosticEntry(
            severity=DiagnosticSeverity.CRITICAL,
            message="Unexpected end of input at position 2",
            component="parser",
            position=2,
            details={"kind": "UnexpectedEOF"},
            correlation_id="abc",
        )

        assert entry.to_dict() == {
            "severity": "CRITICAL",
            "message": "Unexpected end of input at position 2",
            "component": "parser",
            "position": 2,
            "details": {"kind": "UnexpectedEOF"},
            "correlation_id": "abc",
        }

    @pytest.mark.parametrize("kwargs,message", [
        ({"message": "", "component": "parser"}, "message cannot be empty"),
        ({"message": "m", "component": ""}, "component cannot be empty"),
        ({"message": "m", "component": "parser", "position": -1}, "position must be >= 0"),
    ])
    def test_validation(self, kwargs, message):
        """Test invalid entries are rejected."""
        with pytest.raises(ValueError, match=message):
            DiagnosticEntry(severity=DiagnosticSeverity.INFO, **kwargs)


class TestPerformanceMetrics:
    """Test derived performance values."""

    def test_throughput(self):
        """Test per-second rates."""
        metrics = PerformanceMetrics(
            processing_time_ms=2.0, bytes_processed=100, bytes_consumed=50, nodes_created=4
        )

        assert metrics.bytes_per_second == pytest.approx(25000.0)
        assert metrics.nodes_per_second == pytest.approx(2000.0)
        assert metrics.consumed_ratio == pytest.approx(0.5)
        assert metrics.to_dict()["bytes_per_second"] == pytest.approx(25000.0)

    def test_zero_time_and_empty_input(self):
        """Test degenerate metrics do not divide by zero."""
        metrics = PerformanceMetrics()

        assert metrics.bytes_per_second == 0.0
        assert metrics.nodes_per_second == 0.0
        assert metrics.consumed_ratio == 1.0


class TestCorrelationLogger:
    """Test structured logging helpers."""

    def test_records_carry_component_and_correlation_id(self, caplog):
        """Test every record carries the structured extras."""
        logger = get_logger("strict_markup_parser.test", "req-1", "unit")

        with caplog.at_level(logging.DEBUG, logger="strict_markup_parser"):
            logger.debug("hello", extra={"size": 3})

        record = caplog.records[-1]
        assert record.message == "hello"
        assert record.component == "unit"
        assert record.correlation_id == "req-1"
        assert record.size == 3

    def test_component_defaults_to_module_name(self):
        """Test the component falls back to the last part of the logger name."""
        logger = CorrelationLogger("strict_markup_parser.api.parser")

        assert logger.component == "parser"
        assert logger.correlation_id is None

    def test_configure_logging(self):
        """Test the package logger level can be set."""
        package_logger = logging.getLogger("strict_markup_parser")
        previous = package_logger.level
        try:
            configure_logging("ERROR")

            assert package_logger.level == logging.ERROR
            assert not get_logger("strict_markup_parser.x").is_enabled_for(logging.WARNING)
        finally:
            package_logger.setLevel(previous)

    def test_configure_logging_rejects_unknown_level(self):
        """Test unknown level names are rejected."""
        with pytest.raises(ValueError, match="logging level must be one of"):
            configure_logging("LOUD")
