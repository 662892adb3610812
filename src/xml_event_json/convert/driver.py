"""Event-driven conversion engine.

``EventDriver`` consumes markup events one at a time and keeps, per element
name, the value accumulated so far. Child values are folded into their
parent when a closing event finds other names above the parent on the
context stack; the document is emitted once, at end of stream.
"""

import time
from typing import Any, Dict, Iterable, Optional, cast

from xml_event_json.shared import (
    ConversionConfig,
    ConversionMetrics,
    MalformedDocumentError,
    get_logger,
)
from xml_event_json.tokenization.events import EventType, MarkupEvent

from .normalizer import (
    add_field,
    make_object,
    merge,
    merge_into_object,
)
from .state import TEXT_BUCKET, AttributeStager, ElementContextStack, PartialValueTable
from .values import JsonArray, JsonObject, JsonScalar, JsonValue, serialize_member

MS_PER_SECOND = 1000


class EventDriver:
    """State machine turning a markup event stream into one JSON document.

    A driver serves a single conversion run. Feed it events with ``feed`` or
    hand it a whole iterable with ``run``; after the END_OF_STREAM event the
    document is available and no further events are accepted.

    Examples:
        >>> from xml_event_json.tokenization import (
        ...     element_close, element_open, end_of_stream, text)
        >>> driver = EventDriver()
        >>> driver.run([element_open("a", {"x": "1"}), text("hi"),
        ...             element_close("a"), end_of_stream()])
        '{"a":{"@x":"1","text":"hi"}}'
    """

    def __init__(self, config: Optional[ConversionConfig] = None) -> None:
        """Initialize the driver.

        Args:
            config: Conversion configuration; defaults are used when omitted
        """
        self.config = config or ConversionConfig()
        self.text_key = self.config.text_key
        self.logger = get_logger(__name__, self.config.correlation_id, "event_driver")

        self.stack = ElementContextStack()
        self.table = PartialValueTable(self.text_key)
        self.stager = AttributeStager(self.config.attribute_prefix, self.text_key)
        self.metrics = ConversionMetrics()

        self._previous: Optional[MarkupEvent] = None
        # Value merged by the own text of the current instance, per name
        self._leading_text: Dict[str, JsonValue] = {}
        self._document: Optional[str] = None
        self._event_index = 0

    @property
    def finished(self) -> bool:
        """Check if the end of the stream has been processed."""
        return self._document is not None

    @property
    def document(self) -> Optional[str]:
        """The emitted document, or None before end of stream."""
        return self._document

    def run(self, events: Iterable[MarkupEvent]) -> str:
        """Drive a complete event stream and return the document.

        Events after END_OF_STREAM are not read.

        Raises:
            MalformedDocumentError: The stream does not form exactly one
                document, or ends without END_OF_STREAM
        """
        start_time = time.time()
        self.logger.debug("Starting event stream conversion")
        try:
            for event in events:
                if self.feed(event) is not None:
                    break
        finally:
            self.metrics.processing_time_ms += (time.time() - start_time) * MS_PER_SECOND

        if self._document is None:
            raise MalformedDocumentError(
                "Event stream ended without an end-of-stream event",
                event_index=self._event_index,
            )
        return self._document

    def feed(self, event: MarkupEvent) -> Optional[str]:
        """Process one event.

        Returns:
            The document when ``event`` is END_OF_STREAM, otherwise None
        """
        index = self._event_index
        if self._document is not None:
            raise MalformedDocumentError(
                f"Event {event} received after end of stream", event_index=index
            )
        self._event_index += 1
        self.metrics.events_processed += 1

        try:
            if event.type == EventType.ELEMENT_OPEN:
                self._handle_open(event)
            elif event.type == EventType.TEXT:
                if not self._handle_text(event):
                    # Whitespace does not count as the preceding event
                    return None
            elif event.type == EventType.ELEMENT_CLOSE:
                self._handle_close(event)
            elif event.type == EventType.END_OF_STREAM:
                return self._handle_end()
            else:
                raise MalformedDocumentError(f"Unsupported event type: {event.type}")
        except MalformedDocumentError as e:
            if e.event_index is None:
                e.event_index = index
            self.logger.error(
                "Conversion aborted",
                extra={"event_index": index, "event": str(event),
                       "stack": list(self.stack.names())},
                exc_info=False,
            )
            raise

        self._previous = event
        return None

    def snapshot(self) -> Dict[str, Any]:
        """Current bookkeeping state, rendered as plain data."""
        return {
            "stack": list(self.stack.names()),
            "values": self.table.snapshot(self.config.ensure_ascii),
            "staged": {name: list(self.stager.peek(name))
                       for name in self.stager.leftovers()},
            "finished": self.finished,
        }

    def _handle_open(self, event: MarkupEvent) -> None:
        name = cast(str, event.name)
        if name == TEXT_BUCKET:
            raise MalformedDocumentError(
                f"Element name '{name}' is reserved", element=name
            )

        self.metrics.attributes_staged += self.stager.stage(name, event.attributes)

        if name in self.table:
            # Another occurrence of a known name: make room for a sibling value
            self.table.promote(name)
            self.stack.relocate(name)
            self.metrics.promotions += 1
        else:
            self.stack.push(name)
            self.table.seed(name)

        self._leading_text.pop(name, None)
        self.metrics.elements_opened += 1
        self.logger.debug(
            "Element opened",
            extra={"element": name, "depth": len(self.stack),
                   "attributes": len(event.attributes)}
        )

    def _handle_text(self, event: MarkupEvent) -> bool:
        raw = event.data or ""
        if not raw.strip():
            self.metrics.whitespace_skipped += 1
            return False
        data = raw.strip() if self.config.strip_text else raw

        previous = self._previous
        if previous is not None and previous.type == EventType.ELEMENT_OPEN:
            owner = cast(str, previous.name)
            attributes = self.stager.consume(owner)
        else:
            owner = TEXT_BUCKET
            self.table.seed(owner)
            attributes = None

        value: JsonValue = JsonScalar(data)
        if attributes is not None:
            value = merge_into_object(attributes, value, self.text_key)
        self.table.merge(owner, value)

        if owner != TEXT_BUCKET:
            self._leading_text[owner] = value
        self.metrics.text_events += 1
        return True

    def _handle_close(self, event: MarkupEvent) -> None:
        name = cast(str, event.name)
        if self.stack.top is None:
            raise MalformedDocumentError(
                f"Closing element '{name}' with an empty context stack", element=name
            )
        self.metrics.elements_closed += 1

        if self.stack.top == name:
            self._close_leaf(name)
        else:
            self._close_with_children(name)
        self._leading_text.pop(name, None)

    def _close_leaf(self, name: str) -> None:
        # The entry stays on the stack for a possible sibling re-open
        attributes = self.stager.consume(name)
        if attributes is not None:
            self.table.merge(name, attributes)

    def _close_with_children(self, name: str) -> None:
        folded = JsonObject()
        while self.stack.top != name:
            if not self.stack:
                raise MalformedDocumentError(
                    f"Closing element '{name}' has no open context", element=name
                )
            child = self.stack.pop()
            add_field(folded, child, self.table.take(child), self.text_key)
            self.metrics.folds += 1

        interleaved = self.table.discard(TEXT_BUCKET)
        if interleaved is not None:
            add_field(folded, self.text_key, interleaved, self.text_key)

        attributes = self.stager.consume(name)
        if attributes is not None:
            merge_into_object(folded, attributes, self.text_key)

        own = self._take_leading(name)
        if own is not None:
            # Leading text of this same instance shares the object with its
            # children instead of becoming a separate array element.
            folded = merge_into_object(own, folded, self.text_key)
        self.table.merge(name, folded)

        self.logger.debug(
            "Folded children",
            extra={"element": name, "fields": len(folded), "depth": len(self.stack)}
        )

    def _take_leading(self, name: str) -> Optional[JsonObject]:
        """Remove the value merged by the current instance's own text.

        Returns None when the instance had no own text, or when the text was
        absorbed into a sibling object's text field and is no element of its
        own.
        """
        own = self._leading_text.pop(name, None)
        if own is None:
            return None
        existing = self.table.get(name)
        if existing is own:
            self.table.reset(name)
        elif isinstance(existing, JsonArray) and any(
            element is own for element in existing.elements
        ):
            existing.elements = [
                element for element in existing.elements if element is not own
            ]
        else:
            return None
        if isinstance(own, JsonObject):
            return own
        return make_object([(self.text_key, own)], self.text_key)

    def _handle_end(self) -> str:
        if len(self.stack) != 1:
            raise MalformedDocumentError(
                "Expected exactly one top-level element at end of stream, "
                f"found {len(self.stack)}"
            )
        root = self.stack.pop()
        value = self.table.take(root)

        interleaved = self.table.discard(TEXT_BUCKET)
        if interleaved is not None:
            value = merge(value, interleaved, self.text_key)

        leftovers = self.stager.leftovers()
        if leftovers:
            self.logger.warning(
                "Attributes were never attached to an element",
                extra={"elements": list(leftovers)}
            )

        document = "{" + serialize_member(root, value, self.config.ensure_ascii) + "}"
        self._document = document
        self.metrics.output_length = len(document)
        self.logger.debug(
            "Document emitted",
            extra={"root": root, "output_length": len(document)}
        )
        return document
