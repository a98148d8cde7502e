"""Diagnostic and metrics types shared by the parsing and API layers."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()      # Conversion or validation problems
    CRITICAL = auto()   # The parse itself failed


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")
        if self.position is not None and self.position < 0:
            raise ValueError("Diagnostic position must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-friendly dictionary."""
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "position": self.position,
            "details": dict(self.details) if self.details else None,
            "correlation_id": self.correlation_id,
        }


@dataclass
class PerformanceMetrics:
    """Performance metrics for a single parse operation."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    bytes_consumed: int = 0
    nodes_created: int = 0
    max_depth_reached: int = 0

    @property
    def bytes_per_second(self) -> float:
        """Calculate input bytes consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_consumed * 1000.0) / self.processing_time_ms

    @property
    def nodes_per_second(self) -> float:
        """Calculate nodes created per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.nodes_created * 1000.0) / self.processing_time_ms

    @property
    def consumed_ratio(self) -> float:
        """Fraction of the input that the parse consumed."""
        if self.bytes_processed == 0:
            return 1.0
        return self.bytes_consumed / self.bytes_processed

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a dictionary, including derived values."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "bytes_processed": self.bytes_processed,
            "bytes_consumed": self.bytes_consumed,
            "nodes_created": self.nodes_created,
            "max_depth_reached": self.max_depth_reached,
            "bytes_per_second": self.bytes_per_second,
        }
