"""Configuration for event-driven XML to JSON conversion.

A single dataclass controls naming of the synthetic fields in the output,
text handling, and how the input is fed to the tokenizer.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

DEFAULT_TEXT_KEY = "text"
LEGACY_TEXT_KEY = "#text"
DEFAULT_ATTRIBUTE_PREFIX = "@"
DEFAULT_CHUNK_SIZE = 64 * 1024


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ConversionConfig:
    """Settings for one conversion run.

    Attributes:
        text_key: Field name used for text that shares an object with
            attributes or child elements
        attribute_prefix: Prefix prepended to attribute names in the output
        strip_text: Trim surrounding whitespace from text events
        ensure_ascii: Escape non-ASCII characters in the emitted document
        chunk_size: Number of bytes (or characters) fed to the tokenizer at once
        huge_tree: Disable the tokenizer's limits on depth and text size
        correlation_id: Optional ID attached to log records and results
    """

    text_key: str = DEFAULT_TEXT_KEY
    attribute_prefix: str = DEFAULT_ATTRIBUTE_PREFIX
    strip_text: bool = True
    ensure_ascii: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    huge_tree: bool = False
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate conversion configuration."""
        if not self.text_key:
            raise ConfigValidationError(
                "text_key must be a non-empty string", field_name="text_key"
            )
        if self.attribute_prefix and self.text_key.startswith(self.attribute_prefix):
            raise ConfigValidationError(
                "text_key must not start with attribute_prefix",
                field_name="text_key",
                suggestions=[
                    f"Use a text_key without the '{self.attribute_prefix}' prefix",
                    "Change attribute_prefix",
                ],
            )
        if self.chunk_size <= 0:
            raise ConfigValidationError(
                "chunk_size must be > 0", field_name="chunk_size"
            )

    def override(self, **kwargs: Any) -> "ConversionConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ConversionConfig().override(text_key="#text")
            >>> config.text_key
            '#text'
        """
        unknown = set(kwargs) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {sorted(unknown)}"
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionConfig":
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, json_str: str) -> "ConversionConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ConversionConfig":
        """Load configuration from a JSON file."""
        path = Path(config_path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(
                f"Could not read configuration file {path}: {e}"
            ) from e
        return cls.from_json(content)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ConversionConfig":
        """Create the default configuration."""
        return cls()

    @classmethod
    def legacy(cls) -> "ConversionConfig":
        """Create configuration using ``#text`` for text fields."""
        return cls(text_key=LEGACY_TEXT_KEY)
