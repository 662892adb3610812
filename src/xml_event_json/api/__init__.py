"""Public API for event-driven XML to JSON conversion."""

from .converter import (
    XmlToJsonConverter,
    convert,
    convert_events,
    convert_file,
    convert_string,
    try_convert,
)

__all__ = [
    "XmlToJsonConverter",
    "convert",
    "convert_events",
    "convert_file",
    "convert_string",
    "try_convert",
]
