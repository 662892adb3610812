"""Event-driven XML to JSON conversion.

Converts a forward-only stream of markup events into a single compact JSON
document without building a DOM tree. Repeated sibling elements become
arrays, attributes become ``@``-prefixed fields, and text that shares an
element with attributes or children becomes a ``text`` field.

Progressive API Disclosure:
- Level 1: Simple functions - convert(), convert_string(), convert_file()
- Level 2: Result objects - try_convert()
- Level 3: Converter bound to one input - XmlToJsonConverter
- Level 4: Event level - EventDriver fed with MarkupEvent objects
"""

__version__ = "0.1.0"
__author__ = "xml-event-json developers"

from .api import (
    XmlToJsonConverter,
    convert,
    convert_events,
    convert_file,
    convert_string,
    try_convert,
)
from .convert import EventDriver
from .shared import (
    ConversionConfig,
    ConversionError,
    ConversionResult,
    InputUnavailableError,
    MalformedDocumentError,
    TokenizationFailureError,
)
from .tokenization import EventType, MarkupEvent, XmlEventSource

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple conversion functions
    "convert",
    "convert_string",
    "convert_file",
    "convert_events",

    # Level 2: Result objects
    "try_convert",
    "ConversionResult",

    # Level 3 and 4: Converter, event source and engine
    "XmlToJsonConverter",
    "XmlEventSource",
    "EventDriver",
    "EventType",
    "MarkupEvent",

    # Configuration and errors
    "ConversionConfig",
    "ConversionError",
    "InputUnavailableError",
    "MalformedDocumentError",
    "TokenizationFailureError",
]
