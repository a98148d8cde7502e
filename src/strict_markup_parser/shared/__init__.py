"""Shared utilities for strict markup parsing.

This module provides configuration objects, diagnostic and metrics types, and
logging helpers used across the parsing, API and adapter layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    GrammarConfig,
    LimitsConfig,
    ParserConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "GrammarConfig",
    "LimitsConfig",
    "ParserConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
