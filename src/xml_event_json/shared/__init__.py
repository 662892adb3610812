"""Shared utilities for event-driven XML to JSON conversion.

This module provides the configuration object, error hierarchy, result types,
and logging helpers used across all conversion layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    ConversionConfig,
)
from .errors import (
    ConversionError,
    InputUnavailableError,
    MalformedDocumentError,
    TokenizationFailureError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    ConversionMetrics,
    ConversionResult,
    DiagnosticEntry,
    DiagnosticSeverity,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConversionConfig",
    "ConversionError",
    "InputUnavailableError",
    "MalformedDocumentError",
    "TokenizationFailureError",
    "CorrelationLogger",
    "get_logger",
    "ConversionMetrics",
    "ConversionResult",
    "DiagnosticEntry",
    "DiagnosticSeverity",
]
