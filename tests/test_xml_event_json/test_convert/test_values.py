"""Tests for typed intermediate values."""

import json

import pytest

from xml_event_json.convert.values import (
    JsonArray,
    JsonObject,
    JsonScalar,
    ValueKind,
    is_value,
    serialize,
    serialize_member,
    to_python,
)


@pytest.fixture
def nested():
    return JsonObject({
        "b": JsonArray([JsonScalar("1"), JsonScalar("2")]),
        "c": JsonObject({"@x": JsonScalar("y")}),
    })


class TestValueKinds:
    """Test value classification."""

    def test_kinds(self):
        """Test the kind reported by each value type."""
        assert JsonScalar("a").kind == ValueKind.SCALAR
        assert JsonObject().kind == ValueKind.OBJECT
        assert JsonArray().kind == ValueKind.ARRAY

    def test_has_objects(self):
        """Test detection of objects inside arrays."""
        assert not JsonArray([JsonScalar("a")]).has_objects
        assert JsonArray([JsonScalar("a"), JsonObject()]).has_objects

    def test_is_value(self, nested):
        """Test completeness checks."""
        assert is_value(nested)
        assert not is_value(None)
        assert not is_value("raw")
        assert not is_value(JsonArray([JsonScalar("a"), "raw"]))


class TestSerialize:
    """Test compact JSON rendering."""

    def test_empty_value(self):
        """Test that an empty value renders as an empty string."""
        assert serialize(None) == '""'

    def test_nested(self, nested):
        """Test rendering of nested values without whitespace."""
        assert serialize(nested) == '{"b":["1","2"],"c":{"@x":"y"}}'

    def test_escaping(self):
        """Test that control characters and quotes are escaped."""
        rendered = serialize(JsonScalar('a"b\\c\td'))
        assert json.loads(rendered) == 'a"b\\c\td'

    def test_ensure_ascii(self):
        """Test escaping of non-ASCII characters."""
        assert serialize(JsonScalar("ü")) == '"ü"'
        assert serialize(JsonScalar("ü"), ensure_ascii=True) == '"\\u00fc"'

    def test_member(self):
        """Test rendering of a single object member."""
        assert serialize_member("a", JsonScalar("1")) == '"a":"1"'
        assert serialize_member("a", None) == '"a":""'

    def test_unsupported(self):
        """Test that other types are rejected."""
        with pytest.raises(TypeError):
            serialize("raw")

    def test_to_python(self, nested):
        """Test conversion to plain Python objects."""
        assert to_python(nested) == {"b": ["1", "2"], "c": {"@x": "y"}}
        assert to_python(None) == ""
