"""Public conversion API.

Simple module-level functions cover the common cases (``convert``,
``convert_string``, ``convert_file``, ``convert_events``); they return the
document string or raise a ``ConversionError``. ``try_convert`` returns a
``ConversionResult`` instead of raising, and ``XmlToJsonConverter`` gives
explicit control over the input's lifecycle.
"""

import time
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from xml_event_json.convert import EventDriver
from xml_event_json.shared import (
    ConversionConfig,
    ConversionError,
    ConversionMetrics,
    ConversionResult,
    DiagnosticSeverity,
    InputUnavailableError,
    get_logger,
)
from xml_event_json.tokenization import (
    MarkupEvent,
    SourceType,
    XmlEventSource,
    open_source,
)

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def convert(source: SourceType, config: Optional[ConversionConfig] = None) -> str:
    """Convert XML from any supported input to a JSON document string.

    Args:
        source: XML text (``str``), encoded XML (``bytes``), a ``Path``, or a
            readable file-like object (left open)
        config: Optional conversion configuration

    Returns:
        Compact JSON document with the root element as its only field

    Examples:
        >>> convert('<a><b>1</b><b>2</b></a>')
        '{"a":{"b":["1","2"]}}'
    """
    with XmlToJsonConverter(source, config) as converter:
        return converter.convert()


def convert_string(xml_string: str, config: Optional[ConversionConfig] = None) -> str:
    """Convert XML held in a string.

    Examples:
        >>> convert_string('<a x="1">hi</a>')
        '{"a":{"@x":"1","text":"hi"}}'
    """
    if not isinstance(xml_string, str):
        raise InputUnavailableError(
            f"Expected XML string, got {type(xml_string).__name__}"
        )
    return convert(xml_string, config)


def convert_file(
    file_path: Union[str, Path], config: Optional[ConversionConfig] = None
) -> str:
    """Convert an XML file after checking that it exists and is readable.

    Raises:
        InputUnavailableError: The path is missing, not a file, or unreadable
    """
    if file_path is None:
        raise InputUnavailableError("Input path can't be None")
    return convert(Path(file_path), config)


def convert_events(
    events: Iterable[MarkupEvent], config: Optional[ConversionConfig] = None
) -> str:
    """Convert an already tokenized event stream.

    The iterable must end with an END_OF_STREAM event.
    """
    if events is None:
        raise InputUnavailableError("Event stream can't be None")
    return EventDriver(config).run(events)


def try_convert(
    source: Union[SourceType, Iterable[MarkupEvent]],
    config: Optional[ConversionConfig] = None,
) -> ConversionResult:
    """Convert without raising conversion errors.

    Returns:
        ConversionResult holding the document, or the error with diagnostics
    """
    config = config or ConversionConfig()
    logger = get_logger(__name__, config.correlation_id, "try_convert")
    source_name = _describe(source)
    start_time = time.time()
    metrics = ConversionMetrics()

    try:
        if _is_event_iterable(source):
            driver = EventDriver(config)
            metrics = driver.metrics
            document = driver.run(source)  # type: ignore[arg-type]
        else:
            with XmlToJsonConverter(source, config) as converter:  # type: ignore[arg-type]
                metrics = converter.metrics
                document = converter.convert()
    except ConversionError as e:
        metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        logger.warning(
            "Conversion failed",
            extra={"source": source_name, "error_type": type(e).__name__}
        )
        return ConversionResult.failure(
            e, correlation_id=config.correlation_id, source_name=source_name,
            metrics=metrics,
        )

    metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    result = ConversionResult(
        document=document,
        metrics=metrics,
        correlation_id=config.correlation_id,
        source_name=source_name,
    )
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        f"Converted {metrics.elements_opened} elements",
        "converter",
        details=metrics.to_dict(),
    )
    return result


class XmlToJsonConverter:
    """Converter bound to one XML input.

    Availability of the input is checked when the converter is created, so
    a missing or unreadable file fails before any event is processed. Inputs
    opened by the converter are released by ``close`` (or by leaving the
    ``with`` block); caller-supplied streams stay open.

    Examples:
        >>> with XmlToJsonConverter('<r>t</r>') as converter:
        ...     converter.convert()
        '{"r":"t"}'
    """

    def __init__(
        self,
        source: SourceType,
        config: Optional[ConversionConfig] = None,
    ) -> None:
        """Initialize the converter.

        Args:
            source: XML text, bytes, ``Path``, or readable file-like object
            config: Optional conversion configuration

        Raises:
            InputUnavailableError: The input cannot be obtained
        """
        self.config = config or ConversionConfig()
        self.logger = get_logger(__name__, self.config.correlation_id, "converter")
        self.source: XmlEventSource = open_source(source, self.config)
        self.driver = EventDriver(self.config)
        self._result: Optional[str] = None

    @classmethod
    def from_file(
        cls, file_path: Union[str, Path], config: Optional[ConversionConfig] = None
    ) -> "XmlToJsonConverter":
        """Create a converter for an XML file path."""
        if file_path is None:
            raise InputUnavailableError("Input path can't be None")
        return cls(Path(file_path), config)

    @property
    def metrics(self) -> ConversionMetrics:
        """Counters of the underlying driver."""
        return self.driver.metrics

    def __enter__(self) -> "XmlToJsonConverter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def convert(self) -> str:
        """Run the conversion and return the JSON document.

        Repeated calls return the same document without re-reading input.
        """
        if self._result is not None:
            return self._result

        start_time = time.time()
        self.logger.info(
            "Starting conversion",
            extra={"source": self.source.name,
                   "chunk_size": self.config.chunk_size}
        )
        try:
            self._result = self.driver.run(self.source.events())
        except ConversionError:
            self.logger.exception(
                "Conversion failed", extra={"source": self.source.name}
            )
            raise

        self.logger.info(
            "Conversion completed",
            extra={
                "source": self.source.name,
                "events_processed": self.metrics.events_processed,
                "output_length": len(self._result),
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            }
        )
        return self._result

    def close(self) -> None:
        """Release the input if the converter opened it."""
        self.source.close()


def _is_event_iterable(source: Any) -> bool:
    if isinstance(source, (str, bytes, bytearray, Path, XmlEventSource)):
        return False
    if hasattr(source, "read"):
        return False
    return isinstance(source, (list, tuple)) or hasattr(source, "__next__")


def _describe(source: Any) -> str:
    if isinstance(source, Path):
        return str(source)
    if isinstance(source, str):
        preview = source[:PREVIEW_LENGTH]
        return preview + "..." if len(source) > PREVIEW_LENGTH else preview
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    name = getattr(source, "name", None)
    return str(name) if name else f"<{type(source).__name__}>"
