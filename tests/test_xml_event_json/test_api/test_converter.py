"""Tests for the public conversion API."""

import io
import json
from pathlib import Path

import pytest

from xml_event_json.api.converter import (
    XmlToJsonConverter,
    convert,
    convert_events,
    convert_file,
    convert_string,
    try_convert,
)
from xml_event_json.shared import (
    ConversionConfig,
    ConversionError,
    DiagnosticSeverity,
    InputUnavailableError,
    MalformedDocumentError,
    TokenizationFailureError,
)
from xml_event_json.tokenization import (
    element_close,
    element_open,
    end_of_stream,
    text,
)

CATALOG = """<?xml version="1.0" encoding="UTF-8"?>
<catalog>
    <book id="bk101">
        <author>Gambardella, Matthew</author>
        <title>XML Developer's Guide</title>
    </book>
    <book id="bk102">
        <author>Ralls, Kim</author>
        <title>Midnight Rain</title>
    </book>
</catalog>
"""


class TestConvert:
    """Test the simple conversion functions."""

    def test_string(self):
        """Test conversion of XML text."""
        assert convert_string("<r>t</r>") == '{"r":"t"}'

    def test_repeated_siblings(self):
        """Test that repeated siblings keep document order."""
        assert convert("<a><b>1</b><b>2</b></a>") == '{"a":{"b":["1","2"]}}'

    def test_attributes(self):
        """Test attributes next to text."""
        assert convert('<a x="1">hi</a>') == '{"a":{"@x":"1","text":"hi"}}'

    def test_document(self):
        """Test a realistic document with indentation."""
        expected = {
            "catalog": {
                "book": [
                    {"author": "Gambardella, Matthew",
                     "title": "XML Developer's Guide", "@id": "bk101"},
                    {"author": "Ralls, Kim", "title": "Midnight Rain", "@id": "bk102"},
                ]
            }
        }
        assert json.loads(convert(CATALOG)) == expected

    def test_mixed_content(self):
        """Test text interleaved with child elements."""
        result = convert("<p>Hello <b>big</b> world</p>")
        assert json.loads(result) == {"p": {"text": ["Hello", "world"], "b": "big"}}

    def test_bytes(self):
        """Test conversion of encoded XML."""
        assert convert("<a>ü</a>".encode("utf-8")) == '{"a":"ü"}'

    def test_stream(self):
        """Test conversion of a caller-owned stream."""
        stream = io.StringIO("<a>1</a>")
        assert convert(stream) == '{"a":"1"}'
        assert not stream.closed

    def test_config(self):
        """Test that configuration is applied."""
        config = ConversionConfig.legacy()
        assert convert('<a x="1">hi</a>', config) == '{"a":{"@x":"1","#text":"hi"}}'

    def test_invalid_xml(self):
        """Test that malformed XML fails."""
        with pytest.raises(TokenizationFailureError):
            convert("<a><b></a>")

    def test_empty_input(self):
        """Test that empty input fails."""
        with pytest.raises(ConversionError):
            convert("")

    def test_convert_string_type_check(self):
        """Test that convert_string only accepts strings."""
        with pytest.raises(InputUnavailableError):
            convert_string(b"<a/>")

    def test_none(self):
        """Test that a missing input is rejected."""
        with pytest.raises(InputUnavailableError):
            convert(None)


class TestConvertFile:
    """Test file conversion."""

    def test_file(self, tmp_path):
        """Test conversion of a file given as string path."""
        path = tmp_path / "catalog.xml"
        path.write_text(CATALOG, encoding="utf-8")
        assert json.loads(convert_file(str(path)))["catalog"]["book"][1]["@id"] == "bk102"

    def test_missing_file(self, tmp_path):
        """Test that a missing file fails before conversion."""
        with pytest.raises(InputUnavailableError):
            convert_file(tmp_path / "missing.xml")

    def test_none(self):
        """Test that a None path is rejected."""
        with pytest.raises(InputUnavailableError):
            convert_file(None)


class TestConvertEvents:
    """Test conversion of event streams."""

    def test_events(self):
        """Test conversion of a prepared event list."""
        events = [element_open("a", {"x": "1"}), text("hi"), element_close("a"),
                  end_of_stream()]
        assert convert_events(events) == '{"a":{"@x":"1","text":"hi"}}'

    def test_generator(self):
        """Test conversion of a generated event stream."""
        def generate():
            yield element_open("r")
            for value in ("1", "2"):
                yield element_open("v")
                yield text(value)
                yield element_close("v")
            yield element_close("r")
            yield end_of_stream()

        assert convert_events(generate()) == '{"r":{"v":["1","2"]}}'

    def test_none(self):
        """Test that a None stream is rejected."""
        with pytest.raises(InputUnavailableError):
            convert_events(None)


class TestTryConvert:
    """Test the result-object API."""

    def test_success(self):
        """Test a successful conversion result."""
        result = try_convert("<a>1</a>", ConversionConfig(correlation_id="run-1"))
        assert result.success
        assert result.document == '{"a":"1"}'
        assert result.correlation_id == "run-1"
        assert result.metrics.elements_opened == 1
        assert result.get_diagnostics_by_severity(DiagnosticSeverity.INFO)

    def test_failure(self):
        """Test that errors are captured instead of raised."""
        result = try_convert("<a/><b/>")
        assert not result.success
        assert isinstance(result.error, TokenizationFailureError)
        assert result.has_errors()

    def test_malformed_event_stream(self):
        """Test that event stream errors are captured."""
        events = [element_open("a"), element_close("a"),
                  element_open("b"), element_close("b"), end_of_stream()]
        result = try_convert(events)
        assert isinstance(result.error, MalformedDocumentError)
        assert result.metrics.events_processed == 5

    def test_missing_file(self, tmp_path):
        """Test that unavailable input is captured."""
        result = try_convert(tmp_path / "missing.xml")
        assert isinstance(result.error, InputUnavailableError)
        assert result.source_name == str(tmp_path / "missing.xml")


class TestXmlToJsonConverter:
    """Test the converter bound to one input."""

    def test_convert_is_cached(self):
        """Test that repeated calls return the same document."""
        converter = XmlToJsonConverter("<a>1</a>")
        first = converter.convert()
        assert converter.convert() is first
        converter.close()

    def test_file_closed(self, tmp_path):
        """Test that files opened by the converter are closed."""
        path = tmp_path / "doc.xml"
        path.write_text("<a>1</a>", encoding="utf-8")
        with XmlToJsonConverter.from_file(path) as converter:
            assert converter.convert() == '{"a":"1"}'
        assert converter.source.closed

    def test_missing_file_at_setup(self, tmp_path):
        """Test that availability is checked when the converter is created."""
        with pytest.raises(InputUnavailableError):
            XmlToJsonConverter(Path(tmp_path / "missing.xml"))

    def test_metrics(self):
        """Test access to the driver counters."""
        with XmlToJsonConverter("<a><b>1</b><b>2</b></a>") as converter:
            converter.convert()
            assert converter.metrics.promotions == 1
