"""Command-line interface for xml-event-json."""
