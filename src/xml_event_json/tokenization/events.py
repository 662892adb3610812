"""Markup events consumed by the conversion engine.

The tokenizer is an external collaborator; whatever produces markup, the
engine only sees this forward-only sequence of events.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Mapping, Optional, Tuple, Union


class EventType(Enum):
    """Kinds of markup events."""

    ELEMENT_OPEN = auto()    # Start tag with its ordered attributes
    TEXT = auto()            # Character data, possibly whitespace only
    ELEMENT_CLOSE = auto()   # End tag
    END_OF_STREAM = auto()   # No further events follow


@dataclass(frozen=True)
class EventPosition:
    """Source position reported by the tokenizer, when available."""

    line: int
    column: int = 0

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 0:
            raise ValueError("Column number must be >= 0")


@dataclass(frozen=True)
class MarkupEvent:
    """Single markup event."""

    type: EventType
    name: Optional[str] = None
    attributes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    data: Optional[str] = None
    position: Optional[EventPosition] = None

    def __post_init__(self) -> None:
        """Validate that each event type carries its payload."""
        if self.type in (EventType.ELEMENT_OPEN, EventType.ELEMENT_CLOSE):
            if not self.name:
                raise ValueError(f"{self.type.name} event requires an element name")
        if self.type == EventType.TEXT and self.data is None:
            raise ValueError("TEXT event requires data")
        if self.attributes and self.type != EventType.ELEMENT_OPEN:
            raise ValueError("Only ELEMENT_OPEN events carry attributes")

    @property
    def is_whitespace(self) -> bool:
        """Check if this is a text event holding only whitespace."""
        return self.type == EventType.TEXT and not (self.data or "").strip()

    def __str__(self) -> str:
        if self.type == EventType.ELEMENT_OPEN:
            return f"<{self.name}>"
        if self.type == EventType.ELEMENT_CLOSE:
            return f"</{self.name}>"
        if self.type == EventType.TEXT:
            return repr(self.data)
        return "EOF"


def element_open(
    name: str,
    attributes: Union[Mapping[str, str], Iterable[Tuple[str, str]], None] = None,
    position: Optional[EventPosition] = None,
) -> MarkupEvent:
    """Create an ELEMENT_OPEN event; mapping attributes keep their order."""
    if attributes is None:
        pairs: Tuple[Tuple[str, str], ...] = ()
    elif isinstance(attributes, Mapping):
        pairs = tuple((str(key), str(value)) for key, value in attributes.items())
    else:
        pairs = tuple((str(key), str(value)) for key, value in attributes)
    return MarkupEvent(EventType.ELEMENT_OPEN, name=name, attributes=pairs,
                       position=position)


def text(data: str, position: Optional[EventPosition] = None) -> MarkupEvent:
    """Create a TEXT event."""
    return MarkupEvent(EventType.TEXT, data=data, position=position)


def element_close(name: str, position: Optional[EventPosition] = None) -> MarkupEvent:
    """Create an ELEMENT_CLOSE event."""
    return MarkupEvent(EventType.ELEMENT_CLOSE, name=name, position=position)


def end_of_stream() -> MarkupEvent:
    """Create the END_OF_STREAM event."""
    return MarkupEvent(EventType.END_OF_STREAM)
