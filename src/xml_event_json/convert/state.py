"""Per-run bookkeeping for the conversion engine.

``ElementContextStack`` holds the names eligible for folding into a parent,
``PartialValueTable`` the value accumulated for each of them, and
``AttributeStager`` the attributes waiting to be attached to their element.
All three are owned by a single ``EventDriver`` and live as long as one
conversion run.
"""

from collections import OrderedDict
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from xml_event_json.shared import MalformedDocumentError
from xml_event_json.shared.config import DEFAULT_ATTRIBUTE_PREFIX, DEFAULT_TEXT_KEY

from .normalizer import RawValue, make_object, merge, promote_to_array
from .values import JsonObject, JsonValue, is_value, serialize

# Reserved table key for text that sits between child elements. XML names
# cannot start with '#', so it never collides with an element.
TEXT_BUCKET = "#text"


class ElementContextStack:
    """Ordered element names, at most one entry per name.

    An entry outlives its element's close event so that a later sibling with
    the same name finds it again; entries are removed only when folded into
    a parent or emitted as the root.
    """

    def __init__(self) -> None:
        self._names: List[str] = []

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    @property
    def top(self) -> Optional[str]:
        """Most recent entry, or None when the stack is empty."""
        return self._names[-1] if self._names else None

    def push(self, name: str) -> None:
        """Add a name that has no entry yet."""
        if name in self._names:
            raise MalformedDocumentError(
                f"Element '{name}' already has a stack entry", element=name
            )
        self._names.append(name)

    def relocate(self, name: str) -> None:
        """Move the entry for ``name`` to the top, adding it if missing."""
        if name in self._names:
            self._names.remove(name)
        self._names.append(name)

    def pop(self) -> str:
        """Remove and return the top entry."""
        if not self._names:
            raise MalformedDocumentError("Element context stack is empty")
        return self._names.pop()

    def names(self) -> Tuple[str, ...]:
        """Snapshot of the entries, bottom first."""
        return tuple(self._names)


class PartialValueTable:
    """Mapping from element name to its accumulated value.

    A value is ``None`` until the element receives content; afterwards it is
    always a complete scalar, object or array.
    """

    def __init__(self, text_key: str = DEFAULT_TEXT_KEY) -> None:
        self.text_key = text_key
        self._values: "OrderedDict[str, Optional[JsonValue]]" = OrderedDict()

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._values)

    def seed(self, key: str) -> None:
        """Create an empty entry for ``key`` if there is none."""
        self._values.setdefault(key, None)

    def get(self, key: str) -> Optional[JsonValue]:
        """Return the value for ``key``; the entry must exist."""
        self._require(key)
        return self._values[key]

    def merge(self, key: str, value: RawValue) -> JsonValue:
        """Merge ``value`` into the entry for ``key`` and return the result."""
        self._require(key)
        merged = merge(self._values[key], value, self.text_key)
        self._values[key] = merged
        return merged

    def promote(self, key: str) -> Optional[JsonValue]:
        """Apply array promotion to the entry for ``key``."""
        self._require(key)
        promoted = promote_to_array(self._values[key])
        self._values[key] = promoted
        return promoted

    def reset(self, key: str) -> None:
        """Empty the entry for ``key`` without removing it."""
        self._require(key)
        self._values[key] = None

    def take(self, key: str) -> Optional[JsonValue]:
        """Remove the entry for ``key`` and return its value."""
        self._require(key)
        return self._values.pop(key)

    def discard(self, key: str) -> Optional[JsonValue]:
        """Remove the entry for ``key`` if present and return its value."""
        return self._values.pop(key, None)

    def is_consistent(self) -> bool:
        """Check that every stored value is empty or a complete value."""
        return all(value is None or is_value(value) for value in self._values.values())

    def snapshot(self, ensure_ascii: bool = False) -> Dict[str, str]:
        """Render every entry as JSON text, for logging and inspection."""
        return {
            key: serialize(value, ensure_ascii) for key, value in self._values.items()
        }

    def _require(self, key: str) -> None:
        if key not in self._values:
            raise MalformedDocumentError(
                f"No accumulated value for '{key}'", element=key
            )


class AttributeStager:
    """Attributes captured at element open, waiting for their element.

    A staged entry is consumed exactly once, by the first text event of the
    element or by its close event, whichever comes first.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_ATTRIBUTE_PREFIX,
        text_key: str = DEFAULT_TEXT_KEY,
    ) -> None:
        self.prefix = prefix
        self.text_key = text_key
        self._staged: Dict[str, List[Tuple[str, str]]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._staged

    def __len__(self) -> int:
        return len(self._staged)

    def stage(self, name: str, attributes: Sequence[Tuple[str, str]]) -> int:
        """Stage attributes for ``name`` after any unconsumed leftovers.

        Returns:
            Number of attributes staged by this call
        """
        if not attributes:
            return 0
        pending = self._staged.setdefault(name, [])
        pending.extend(
            (f"{self.prefix}{attr_name}", attr_value)
            for attr_name, attr_value in attributes
        )
        return len(attributes)

    def peek(self, name: str) -> Tuple[Tuple[str, str], ...]:
        """Return the staged fields for ``name`` without consuming them."""
        return tuple(self._staged.get(name, ()))

    def consume(self, name: str) -> Optional[JsonObject]:
        """Remove the staged attributes of ``name`` and return them as an object."""
        pending = self._staged.pop(name, None)
        if not pending:
            return None
        return make_object(pending, self.text_key)

    def leftovers(self) -> Tuple[str, ...]:
        """Names whose attributes were never consumed."""
        return tuple(self._staged)
