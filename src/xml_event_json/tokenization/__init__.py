"""Markup events and the lxml-backed source that produces them."""

from .events import (
    EventPosition,
    EventType,
    MarkupEvent,
    element_close,
    element_open,
    end_of_stream,
    text,
)
from .source import SourceType, XmlEventSource, open_source

__all__ = [
    "EventPosition",
    "EventType",
    "MarkupEvent",
    "element_close",
    "element_open",
    "end_of_stream",
    "text",
    "SourceType",
    "XmlEventSource",
    "open_source",
]
