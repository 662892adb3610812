"""Value combination rules for the conversion engine.

These functions hold no state. Given the value accumulated so far for a key
and a new value for the same key, they produce the combined value:

1. Nothing accumulated yet: the new value is taken as-is.
2. An object accumulated: the new value is added to the same object, as its
   fields (object) or as the text field (anything else).
3. Anything else: the accumulated value becomes (or stays) an array and the
   new value joins it. Arrays never mix bare scalars and objects; scalars in
   front of a new object are coalesced into one ``{"text": ...}`` object
   that the new object is placed before, and a scalar arriving after objects goes into the last object's text
   field.

Containers owned by the caller may be modified in place; the merged value is
always returned.
"""

from typing import Iterable, Optional, Tuple, Union

from xml_event_json.shared.config import DEFAULT_TEXT_KEY

from .values import EMPTY_TEXT, JsonArray, JsonObject, JsonScalar, JsonValue

RawValue = Union[str, JsonValue]


def as_value(raw: RawValue) -> JsonValue:
    """Wrap a bare string as a scalar; typed values are returned unchanged."""
    if isinstance(raw, str):
        return JsonScalar(raw)
    if isinstance(raw, (JsonScalar, JsonObject, JsonArray)):
        return raw
    raise TypeError(f"Unsupported value type: {type(raw).__name__}")


def promote_to_array(value: Optional[JsonValue]) -> Optional[JsonValue]:
    """Prepare a value to receive another sibling occurrence.

    Arrays are returned unchanged and an empty value stays empty, so applying
    the promotion twice has the same effect as applying it once.
    """
    if value is None or isinstance(value, JsonArray):
        return value
    return JsonArray([value])


def merge(
    existing: Optional[JsonValue],
    new: RawValue,
    text_key: str = DEFAULT_TEXT_KEY,
) -> JsonValue:
    """Combine ``new`` into the value accumulated for the same key."""
    value = as_value(new)
    if existing is None:
        return value
    if isinstance(existing, JsonObject):
        return merge_into_object(existing, value, text_key)
    array = existing if isinstance(existing, JsonArray) else JsonArray([existing])
    return merge_into_array(array, value, text_key)


def add_occurrence(
    existing: Optional[JsonValue],
    new: RawValue,
    text_key: str = DEFAULT_TEXT_KEY,
) -> JsonValue:
    """Record ``new`` as a further occurrence next to ``existing``.

    Unlike ``merge``, an existing object is not extended but wrapped into an
    array first.
    """
    return merge(promote_to_array(existing), new, text_key)


def merge_into_object(
    target: JsonObject, new: JsonValue, text_key: str = DEFAULT_TEXT_KEY
) -> JsonObject:
    """Add ``new`` to ``target`` as fields, or as the text field.

    A field name already present receives the new value as another
    occurrence.
    """
    if isinstance(new, JsonObject):
        for key, member in new.fields.items():
            add_field(target, key, member, text_key)
    else:
        add_field(target, text_key, new, text_key)
    return target


def add_field(
    target: JsonObject,
    key: str,
    value: Optional[JsonValue],
    text_key: str = DEFAULT_TEXT_KEY,
) -> JsonObject:
    """Set ``key`` on ``target``, turning a repeated key into an array."""
    member = value if value is not None else JsonScalar(EMPTY_TEXT)
    if key in target.fields:
        target.fields[key] = add_occurrence(target.fields[key], member, text_key)
    else:
        target.fields[key] = member
    return target


def merge_into_array(
    array: JsonArray, new: JsonValue, text_key: str = DEFAULT_TEXT_KEY
) -> JsonArray:
    """Add ``new`` to ``array`` without mixing scalars and objects."""
    if isinstance(new, JsonObject):
        if array.elements and not isinstance(array.elements[0], JsonObject):
            # The new object goes in front of the coalesced text object
            coalesce_leading_scalars(array, text_key)
            array.elements.insert(0, new)
        else:
            array.elements.append(new)
    elif isinstance(new, JsonArray):
        for element in new.elements:
            merge_into_array(array, element, text_key)
    elif array.has_objects:
        last_object = next(
            element for element in reversed(array.elements)
            if isinstance(element, JsonObject)
        )
        add_field(last_object, text_key, new, text_key)
    else:
        array.elements.append(new)
    return array


def coalesce_leading_scalars(
    array: JsonArray, text_key: str = DEFAULT_TEXT_KEY
) -> JsonArray:
    """Replace the non-object elements at the front by one text object.

    ``["a", "b", {...}]`` becomes ``[{"text": ["a", "b"]}, {...}]`` and
    ``["a"]`` becomes ``[{"text": "a"}]``.
    """
    count = 0
    for element in array.elements:
        if isinstance(element, JsonObject):
            break
        count += 1
    if count == 0:
        return array

    leading = array.elements[:count]
    text_value: JsonValue = leading[0] if count == 1 else JsonArray(list(leading))
    array.elements[:count] = [JsonObject({text_key: text_value})]
    return array


def make_object(
    pairs: Iterable[Tuple[str, RawValue]], text_key: str = DEFAULT_TEXT_KEY
) -> JsonObject:
    """Build an object from key/value pairs, keeping repeated keys."""
    result = JsonObject()
    for key, raw in pairs:
        add_field(result, key, as_value(raw), text_key)
    return result
