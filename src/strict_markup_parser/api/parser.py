"""Public parsing API with progressive disclosure.

Level 1 is a pair of module-level functions, :func:`parse` and
:func:`parse_fragment`. Level 2 is :class:`StrictMarkupParser`, a reusable,
configurable parser that also keeps usage statistics.

Both levels return a :class:`ParseResult` instead of raising: malformed input
produces ``success=False`` with the typed :class:`ParseError` attached and a
CRITICAL diagnostic describing it.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from strict_markup_parser.parsing import Parser, ParseError, SourceType, to_bytes
from strict_markup_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserConfig,
    PerformanceMetrics,
    configure_logging,
    get_logger,
)
from strict_markup_parser.tree import Node, count_nodes, debug_repr

# Max length for content preview in logs
PREVIEW_LENGTH = 100
MS_PER_SECOND = 1000


@dataclass
class ParseResult:
    """Outcome of a parse: the parsed nodes or the error that stopped parsing.

    Attributes:
        nodes: Top-level nodes; a single node for :func:`parse`
        success: Whether parsing completed without error
        error: The typed error when ``success`` is False
        diagnostics: Informational and error diagnostics
        performance: Timing and size metrics
        correlation_id: Correlation ID of the request
    """

    nodes: List[Node] = field(default_factory=list)
    success: bool = True
    error: Optional[ParseError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if self.success and self.error is not None:
            raise ValueError("A successful result cannot carry an error")
        if not self.success and self.nodes:
            raise ValueError("A failed result cannot carry nodes")

    @property
    def node(self) -> Optional[Node]:
        """First top-level node, or None when parsing failed or input was empty."""
        return self.nodes[0] if self.nodes else None

    @property
    def consumed_bytes(self) -> int:
        return self.performance.bytes_consumed

    @property
    def fully_consumed(self) -> bool:
        """Whether parsing reached the end of the input."""
        return self.performance.bytes_consumed == self.performance.bytes_processed

    @property
    def node_count(self) -> int:
        """Total number of nodes in all parsed trees."""
        return sum(count_nodes(node) for node in self.nodes)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Append a diagnostic tagged with this result's correlation ID."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def unwrap(self) -> Node:
        """Return the first node, re-raising the parse error on failure.

        Raises:
            ParseError: If parsing failed
            ValueError: If parsing succeeded on empty fragment input
        """
        if self.error is not None:
            raise self.error
        if self.node is None:
            raise ValueError("Parse result contains no nodes")
        return self.node

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the result as plain data."""
        return {
            "success": self.success,
            "nodes": [debug_repr(node) for node in self.nodes],
            "error": self.error.to_dict() if self.error else None,
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
            "performance": self.performance.to_dict(),
            "correlation_id": self.correlation_id,
        }


def _preview(source: SourceType) -> str:
    if isinstance(source, str):
        text = source
    elif isinstance(source, (bytes, bytearray, memoryview)):
        text = repr(bytes(source[:PREVIEW_LENGTH]))
    else:
        text = repr(source)
    return text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text


def _run(
    parser: Parser,
    source: SourceType,
    fragment: bool,
    correlation_id: Optional[str]
) -> ParseResult:
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_fragment" if fragment else "parse")

    logger.info(
        "Starting parse operation",
        extra={"input_type": type(source).__name__, "preview": _preview(source)}
    )

    result = ParseResult(correlation_id=correlation_id)
    try:
        data = to_bytes(source)
    except TypeError as e:
        result.success = False
        result.performance = PerformanceMetrics(
            processing_time_ms=(time.time() - start_time) * MS_PER_SECOND
        )
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            f"Unsupported input: {e}",
            "api_parser",
        )
        logger.warning("Unsupported input type", extra={"input_type": type(source).__name__})
        return result

    operation: Callable[[bytes], Any] = (
        parser.parse_fragment if fragment else parser.parse
    )
    try:
        parsed = operation(data)
    except ParseError as e:
        result.success = False
        result.error = e
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            e.message,
            "parser",
            position=e.position,
            details=e.to_dict(),
        )
        logger.warning(
            "Parse operation failed",
            extra={"error": e.to_dict()}
        )
    else:
        result.nodes = parsed if fragment else [parsed]

    processing_time = (time.time() - start_time) * MS_PER_SECOND
    result.performance = PerformanceMetrics(
        processing_time_ms=processing_time,
        bytes_processed=parser.input_length,
        bytes_consumed=parser.position,
        nodes_created=parser.nodes_created if result.success else 0,
        max_depth_reached=parser.max_depth_reached,
    )

    if result.success and not result.fully_consumed:
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            "Input after the first top-level node was not parsed",
            "api_parser",
            position=parser.position,
            details={"unparsed_bytes": parser.input_length - parser.position},
        )

    logger.info(
        "Parse operation completed",
        extra={
            "success": result.success,
            "node_count": result.performance.nodes_created,
            "processing_time_ms": processing_time,
        }
    )
    return result


def parse(
    source: SourceType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse the first top-level node of ``source``.

    Args:
        source: Markup as str (encoded as UTF-8) or bytes-like object
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult with a single node, or the error that stopped parsing

    Examples:
        >>> result = parse('<a id="x">hi</a>')
        >>> result.success
        True
        >>> result.node.name
        'a'
        >>> parse('<a id="x></a>').error.kind
        'MalformedAttribute'
    """
    return _run(Parser(config, correlation_id), source, False, correlation_id)


def parse_fragment(
    source: SourceType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse every top-level node of ``source``.

    Examples:
        >>> [node.name for node in parse_fragment("<a></a><b></b>").nodes]
        ['a', 'b']
    """
    return _run(Parser(config, correlation_id), source, True, correlation_id)


class StrictMarkupParser:
    """Reusable parser with fixed configuration and usage statistics.

    Instances keep per-call state; use one instance per thread.

    Examples:
        >>> parser = StrictMarkupParser(ParserConfig.lenient())
        >>> parser.parse("<a></b>").success
        True
        >>> parser.statistics["total_parses"]
        1
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = (
            correlation_id if self.config.global_.enable_correlation_tracking else None
        )
        self.logger = get_logger(__name__, self.correlation_id, "strict_markup_parser")
        self._parser = Parser(self.config, self.correlation_id)
        configure_logging(self.config.global_.logging_level)

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "StrictMarkupParser initialized",
            extra={"config_name": self.config.name}
        )

    def parse(self, source: SourceType) -> ParseResult:
        """Parse the first top-level node of ``source``."""
        return self._record(_run(self._parser, source, False, self.correlation_id))

    def parse_fragment(self, source: SourceType) -> ParseResult:
        """Parse every top-level node of ``source``."""
        return self._record(_run(self._parser, source, True, self.correlation_id))

    def _record(self, result: ParseResult) -> ParseResult:
        self._parse_count += 1
        self._total_processing_time += result.performance.processing_time_ms
        if result.success:
            self._successful_parses += 1
        return result

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the configuration used by subsequent parses."""
        self.config = config
        self._parser = Parser(config, self.correlation_id)
        configure_logging(config.global_.logging_level)
        self.logger.info("Parser reconfigured", extra={"config_name": config.name})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
        self.logger.info("Parser statistics reset")
