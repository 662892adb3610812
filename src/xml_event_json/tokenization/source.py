"""Markup event source backed by lxml's incremental parser.

Input is read in chunks and pushed into an ``lxml.etree.XMLParser`` whose
parser target records start, data and end callbacks as ``MarkupEvent``
objects. Events are handed out as soon as each chunk has been parsed, so the
whole document is never held as a tree. Adjacent character data callbacks
are coalesced into one TEXT event; comments and processing instructions are
not reported.
"""

import io
import os
import re
from collections import deque
from pathlib import Path
from typing import IO, Any, Deque, Dict, Iterator, List, Optional, Union

from lxml import etree

from xml_event_json.shared import (
    ConversionConfig,
    InputUnavailableError,
    TokenizationFailureError,
    get_logger,
)

from .events import MarkupEvent, element_close, element_open, end_of_stream, text

# Type definitions for input data
SourceType = Union[str, bytes, Path, IO[bytes], IO[str]]

# lxml appends the position to its messages; it is reported separately
_POSITION_SUFFIX = re.compile(r",\s*line \d+, column \d+\s*$")


class _EventCollector:
    """lxml parser target that queues markup events in document order."""

    def __init__(self) -> None:
        self._events: Deque[MarkupEvent] = deque()
        self._text: List[str] = []

    def start(self, tag: str, attrib: Dict[str, str]) -> None:
        self._flush_text()
        self._events.append(element_open(tag, attrib))

    def end(self, tag: str) -> None:
        self._flush_text()
        self._events.append(element_close(tag))

    def data(self, data: str) -> None:
        self._text.append(data)

    def close(self) -> None:
        self._flush_text()

    def drain(self) -> Iterator[MarkupEvent]:
        while self._events:
            yield self._events.popleft()

    def _flush_text(self) -> None:
        if self._text:
            self._events.append(text("".join(self._text)))
            self._text = []


class XmlEventSource:
    """Forward-only stream of markup events read from an XML input.

    The source owns the underlying stream only when it opened it itself
    (``from_path``); streams handed in by the caller are left open.

    Examples:
        >>> with XmlEventSource.from_string("<a>hi</a>") as source:
        ...     [str(event) for event in source]
        ['<a>', "'hi'", '</a>', 'EOF']
    """

    def __init__(
        self,
        stream: IO[Any],
        config: Optional[ConversionConfig] = None,
        name: Optional[str] = None,
        owns_stream: bool = False,
    ) -> None:
        """Initialize the event source.

        Args:
            stream: Readable binary or text stream holding XML
            config: Conversion configuration (chunk size, tokenizer limits)
            name: Human readable name of the input, used in logs and errors
            owns_stream: Close ``stream`` when this source is closed
        """
        if stream is None:
            raise InputUnavailableError("Input stream can't be None")
        if not hasattr(stream, "read"):
            raise InputUnavailableError(
                f"Unsupported input type: {type(stream).__name__}"
            )
        self.stream = stream
        self.config = config or ConversionConfig()
        self.name = name or getattr(stream, "name", None) or "<stream>"
        self.owns_stream = owns_stream
        self.units_read = 0
        self.logger = get_logger(__name__, self.config.correlation_id, "event_source")
        self._consumed = False
        self._closed = False

    @classmethod
    def from_path(
        cls, path: Union[str, Path], config: Optional[ConversionConfig] = None
    ) -> "XmlEventSource":
        """Open an XML file, checking that it exists and is readable."""
        if path is None:
            raise InputUnavailableError("Input path can't be None")
        path_obj = Path(path)
        if not path_obj.exists():
            raise InputUnavailableError(f"File '{path_obj}' is not found", str(path_obj))
        if not path_obj.is_file():
            raise InputUnavailableError(f"Path '{path_obj}' is not a file", str(path_obj))
        if not os.access(path_obj, os.R_OK):
            raise InputUnavailableError(
                f"File '{path_obj}' is not readable", str(path_obj)
            )
        try:
            stream = path_obj.open("rb")
        except OSError as e:
            raise InputUnavailableError(
                f"File '{path_obj}' could not be opened: {e}", str(path_obj)
            ) from e
        return cls(stream, config, name=str(path_obj), owns_stream=True)

    @classmethod
    def from_string(
        cls, xml_string: str, config: Optional[ConversionConfig] = None
    ) -> "XmlEventSource":
        """Create a source over XML held in a string."""
        if xml_string is None:
            raise InputUnavailableError("Input string can't be None")
        return cls(io.StringIO(xml_string), config, name="<string>", owns_stream=True)

    @classmethod
    def from_bytes(
        cls, xml_bytes: bytes, config: Optional[ConversionConfig] = None
    ) -> "XmlEventSource":
        """Create a source over encoded XML; the declared encoding is honoured."""
        if xml_bytes is None:
            raise InputUnavailableError("Input bytes can't be None")
        return cls(io.BytesIO(xml_bytes), config, name="<bytes>", owns_stream=True)

    def __iter__(self) -> Iterator[MarkupEvent]:
        return self.events()

    def __enter__(self) -> "XmlEventSource":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        """Check if the source has been closed."""
        return self._closed

    def close(self) -> None:
        """Release the underlying stream if this source opened it."""
        if self._closed:
            return
        self._closed = True
        if self.owns_stream:
            self.stream.close()

    def events(self) -> Iterator[MarkupEvent]:
        """Yield markup events, ending with END_OF_STREAM.

        Raises:
            TokenizationFailureError: The input could not be read or is not
                well-formed XML. Raised at the point of failure.
        """
        if self._closed:
            raise InputUnavailableError(f"Source {self.name} is closed", self.name)
        if self._consumed:
            raise InputUnavailableError(
                f"Source {self.name} has already been consumed", self.name
            )
        self._consumed = True

        collector = _EventCollector()
        parser = self._create_parser(collector)
        self.logger.debug(
            "Starting event stream",
            extra={"source": self.name, "chunk_size": self.config.chunk_size}
        )

        for chunk in self._read_chunks():
            self._feed(parser, chunk)
            yield from collector.drain()

        try:
            parser.close()
        except etree.LxmlError as e:
            raise self._tokenization_failure(e) from e
        yield from collector.drain()

        self.logger.debug(
            "Event stream finished",
            extra={"source": self.name, "units_read": self.units_read}
        )
        yield end_of_stream()

    def _create_parser(self, collector: _EventCollector) -> etree.XMLParser:
        # Text chunks are re-encoded as UTF-8 below, so the declared encoding
        # must not be trusted for them.
        encoding = None if self._is_binary() else "utf-8"
        return etree.XMLParser(
            target=collector,
            encoding=encoding,
            huge_tree=self.config.huge_tree,
            resolve_entities=False,
            no_network=True,
        )

    def _is_binary(self) -> bool:
        if isinstance(self.stream, io.TextIOBase):
            return False
        mode = getattr(self.stream, "mode", None)
        if isinstance(mode, str):
            return "b" in mode
        return not isinstance(self.stream, io.StringIO)

    def _read_chunks(self) -> Iterator[bytes]:
        while True:
            try:
                chunk = self.stream.read(self.config.chunk_size)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                self.logger.error(
                    "Reading input failed", extra={"source": self.name}
                )
                raise TokenizationFailureError(
                    f"Failed to read from {self.name}: {e}"
                ) from e
            if not chunk:
                return
            self.units_read += len(chunk)
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            yield chunk

    def _feed(self, parser: etree.XMLParser, chunk: bytes) -> None:
        try:
            parser.feed(chunk)
        except etree.LxmlError as e:
            raise self._tokenization_failure(e) from e

    def _tokenization_failure(self, error: Exception) -> TokenizationFailureError:
        line, column = getattr(error, "position", (None, None))
        self.logger.error(
            "Tokenizer rejected input",
            extra={"source": self.name, "line": line, "column": column},
            exc_info=False,
        )
        message = _POSITION_SUFFIX.sub("", str(getattr(error, "msg", None) or error))
        return TokenizationFailureError(
            f"Invalid XML in {self.name}: {message}",
            line=line,
            column=column,
        )


def open_source(
    source: SourceType, config: Optional[ConversionConfig] = None
) -> XmlEventSource:
    """Create an event source for any supported input type.

    ``str`` and ``bytes`` are treated as XML content and ``Path`` as a file;
    anything with a ``read`` method is used as a stream and left open.
    """
    if source is None:
        raise InputUnavailableError("Input source can't be None")
    if isinstance(source, XmlEventSource):
        return source
    if isinstance(source, str):
        return XmlEventSource.from_string(source, config)
    if isinstance(source, (bytes, bytearray)):
        return XmlEventSource.from_bytes(bytes(source), config)
    if isinstance(source, Path):
        return XmlEventSource.from_path(source, config)
    return XmlEventSource(source, config)
