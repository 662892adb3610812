"""Result objects and diagnostics for conversion runs.

``ConversionResult`` is the result-object counterpart of the exception based
API: it carries either the finished document or the error that aborted the
run, together with diagnostics and event counters.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, cast

from .errors import ConversionError


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class ConversionMetrics:
    """Counters and timing collected while driving the event stream."""

    processing_time_ms: float = 0.0
    events_processed: int = 0
    elements_opened: int = 0
    elements_closed: int = 0
    text_events: int = 0
    whitespace_skipped: int = 0
    attributes_staged: int = 0
    folds: int = 0
    promotions: int = 0
    output_length: int = 0

    @property
    def events_per_second(self) -> float:
        """Calculate events processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        """Return the counters as a plain dictionary."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "events_processed": self.events_processed,
            "elements_opened": self.elements_opened,
            "elements_closed": self.elements_closed,
            "text_events": self.text_events,
            "whitespace_skipped": self.whitespace_skipped,
            "attributes_staged": self.attributes_staged,
            "folds": self.folds,
            "promotions": self.promotions,
            "output_length": self.output_length,
        }


@dataclass
class ConversionResult:
    """Outcome of a conversion run.

    Exactly one of ``document`` and ``error`` is set.
    """

    document: Optional[str] = None
    success: bool = True
    error: Optional[ConversionError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: ConversionMetrics = field(default_factory=ConversionMetrics)
    correlation_id: Optional[str] = None
    source_name: Optional[str] = None

    def __post_init__(self) -> None:
        """Keep ``success`` consistent with the stored outcome."""
        if self.error is not None:
            self.success = False
        if self.success and self.document is None:
            raise ValueError("Successful result requires a document")

    @classmethod
    def failure(
        cls,
        error: ConversionError,
        correlation_id: Optional[str] = None,
        source_name: Optional[str] = None,
        metrics: Optional[ConversionMetrics] = None,
    ) -> "ConversionResult":
        """Create a failed result with an ERROR diagnostic describing ``error``."""
        result = cls(
            success=False,
            error=error,
            correlation_id=correlation_id,
            source_name=source_name,
            metrics=metrics or ConversionMetrics(),
        )
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            str(error),
            "converter",
            details={"exception_type": type(error).__name__},
        )
        return result

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def unwrap(self) -> str:
        """Return the document, or raise the error that aborted the run."""
        if self.error is not None:
            raise self.error
        return cast(str, self.document)

    def to_python(self) -> Any:
        """Decode the document into Python objects."""
        return json.loads(self.unwrap())

    def summary(self) -> Dict[str, Any]:
        """Get a JSON-serializable summary of the run."""
        return {
            "source": self.source_name,
            "success": self.success,
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "output_length": len(self.document) if self.document else 0,
            "processing_time_ms": self.metrics.processing_time_ms,
            "events_processed": self.metrics.events_processed,
            "diagnostics": [
                {
                    "severity": diag.severity.name,
                    "message": diag.message,
                    "component": diag.component,
                }
                for diag in self.diagnostics
            ],
        }
