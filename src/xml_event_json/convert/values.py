"""Typed intermediate values built while converting.

Partial results are kept as ``JsonScalar``, ``JsonObject`` or ``JsonArray``
and manipulated structurally; text is produced once, by ``serialize``, when
the document is emitted. An empty value (an element that has received no
content yet) is represented by ``None``.
"""

import json
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Union


class ValueKind(Enum):
    """Shapes a partial value can take."""

    SCALAR = auto()
    OBJECT = auto()
    ARRAY = auto()


@dataclass
class JsonScalar:
    """Quoted string value."""

    text: str

    @property
    def kind(self) -> ValueKind:
        return ValueKind.SCALAR


@dataclass
class JsonObject:
    """Object with fields in insertion order."""

    fields: Dict[str, "JsonValue"] = field(default_factory=dict)

    @property
    def kind(self) -> ValueKind:
        return ValueKind.OBJECT

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __len__(self) -> int:
        return len(self.fields)


@dataclass
class JsonArray:
    """Array of values in document order."""

    elements: List["JsonValue"] = field(default_factory=list)

    @property
    def kind(self) -> ValueKind:
        return ValueKind.ARRAY

    @property
    def has_objects(self) -> bool:
        """Check if any element of the array is an object."""
        return any(isinstance(element, JsonObject) for element in self.elements)

    def __len__(self) -> int:
        return len(self.elements)


JsonValue = Union[JsonScalar, JsonObject, JsonArray]

EMPTY_TEXT = ""


def is_value(candidate: Any) -> bool:
    """Check if ``candidate`` is a complete typed value."""
    if isinstance(candidate, JsonScalar):
        return isinstance(candidate.text, str)
    if isinstance(candidate, JsonObject):
        return all(
            isinstance(key, str) and is_value(value)
            for key, value in candidate.fields.items()
        )
    if isinstance(candidate, JsonArray):
        return all(is_value(element) for element in candidate.elements)
    return False


def serialize(value: Optional[JsonValue], ensure_ascii: bool = False) -> str:
    """Render a value as compact JSON text.

    An empty value renders as the empty string ``""``.
    """
    if value is None:
        return json.dumps(EMPTY_TEXT)
    if isinstance(value, JsonScalar):
        return json.dumps(value.text, ensure_ascii=ensure_ascii)
    if isinstance(value, JsonObject):
        members = (
            json.dumps(key, ensure_ascii=ensure_ascii) + ":"
            + serialize(member, ensure_ascii)
            for key, member in value.fields.items()
        )
        return "{" + ",".join(members) + "}"
    if isinstance(value, JsonArray):
        return "[" + ",".join(
            serialize(element, ensure_ascii) for element in value.elements
        ) + "]"
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def serialize_member(key: str, value: Optional[JsonValue],
                     ensure_ascii: bool = False) -> str:
    """Render a single ``"key":value`` object member."""
    return json.dumps(key, ensure_ascii=ensure_ascii) + ":" + serialize(value, ensure_ascii)


def to_python(value: Optional[JsonValue]) -> Any:
    """Convert a value into plain ``str``/``dict``/``list`` objects."""
    if value is None:
        return EMPTY_TEXT
    if isinstance(value, JsonScalar):
        return value.text
    if isinstance(value, JsonObject):
        return {key: to_python(member) for key, member in value.fields.items()}
    if isinstance(value, JsonArray):
        return [to_python(element) for element in value.elements]
    raise TypeError(f"Cannot convert {type(value).__name__}")
