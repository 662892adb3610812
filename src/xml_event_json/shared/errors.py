"""Exception hierarchy for event-driven XML to JSON conversion.

Every failure aborts the conversion run; no partial document is ever
returned. Callers that prefer result objects over exceptions can use
``xml_event_json.api.try_convert``, which wraps these errors into a
``ConversionResult``.
"""

from typing import Optional


class ConversionError(Exception):
    """Base class for all conversion failures."""


class InputUnavailableError(ConversionError):
    """Raised at setup when the input source cannot be obtained.

    Covers a missing source, a path that does not exist or is not a regular
    file, a file that is not readable, and any error raised while opening it.
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class MalformedDocumentError(ConversionError):
    """Raised when the event stream cannot form exactly one document.

    Typical causes are more or fewer than one top-level element at the end of
    the stream, a closing event with no matching context, or an event stream
    that stops without an end-of-stream event.
    """

    def __init__(
        self,
        message: str,
        element: Optional[str] = None,
        event_index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.element = element
        self.event_index = event_index

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.event_index is not None:
            return f"{base_msg} (at event {self.event_index})"
        return base_msg


class TokenizationFailureError(ConversionError):
    """Raised as soon as the markup tokenizer or the input read fails.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.line is not None:
            return f"{base_msg} (line {self.line}, column {self.column or 0})"
        return base_msg
