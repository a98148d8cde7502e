"""Configuration classes for strict markup parsing.

This module provides validated configuration objects controlling the grammar
policies, resource limits and logging behaviour of the parser.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .logging import LOG_LEVELS

# Children collection, the adapters and the json encoder recurse once or twice
# per nesting level; the cap leaves headroom under the default recursion limit.
DEFAULT_MAX_DEPTH = 256
MAX_SUPPORTED_DEPTH = 400

_COMPONENTS = ("grammar", "limits", "global_")


@dataclass(frozen=True)
class GrammarConfig:
    """Policies for the ambiguous corners of the markup grammar."""

    # Closing tag names must equal the name of the element they close
    check_closing_tags: bool = True
    # End of input inside an element is an error instead of an implicit close
    require_closing_tags: bool = False
    # Elide text children made only of ASCII whitespace
    drop_whitespace_text: bool = False

    def __post_init__(self) -> None:
        """Validate grammar configuration."""
        for name in ("check_closing_tags", "require_closing_tags", "drop_whitespace_text"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a bool")


@dataclass(frozen=True)
class LimitsConfig:
    """Resource limits applied to a single parse call."""

    max_depth: int = DEFAULT_MAX_DEPTH
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate limits configuration."""
        if not (0 < self.max_depth <= MAX_SUPPORTED_DEPTH):
            raise ValueError(f"max_depth must be between 1 and {MAX_SUPPORTED_DEPTH}")
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ValueError("max_input_size_bytes must be > 0 or None")


@dataclass(frozen=True)
class GlobalConfig:
    """Global settings that apply across all components."""

    logging_level: str = "INFO"
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in LOG_LEVELS:
            raise ValueError(f"logging_level must be one of {list(LOG_LEVELS)}")


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
class ParserConfig:
    """Complete, immutable configuration for the markup parser.

    Instances are frozen, so a single configuration can be shared by any
    number of parsers running on separate inputs.
    """

    grammar: GrammarConfig = field(default_factory=GrammarConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    version: str = "1.0.0"
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete parser configuration."""
        try:
            self.grammar.__post_init__()
            self.limits.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.grammar.require_closing_tags and not self.grammar.check_closing_tags:
            raise ConfigValidationError(
                "require_closing_tags needs check_closing_tags",
                field_name="grammar.require_closing_tags",
                suggestions=[
                    "Enable grammar.check_closing_tags",
                    "Disable grammar.require_closing_tags",
                ],
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; nested fields use ``component__field``

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> new_config = config.override(
            ...     limits__max_depth=32,
            ...     grammar__check_closing_tags=False
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            component = next(
                (name for name in _COMPONENTS if key.startswith(name + "__")), None
            )
            if component is not None:
                field_name = key[len(component) + 2:]
                nested_overrides.setdefault(component, {})[field_name] = value
            elif "__" in key:
                raise ConfigValidationError(
                    f"Unknown configuration component in: {key}",
                    field_name=key,
                )
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS and isinstance(value, dict):
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected rather than silently dropped.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            fields = target_class.__dataclass_fields__
            unknown = set(data_dict) - set(fields)
            if unknown:
                raise ConfigValidationError(
                    f"Unknown configuration keys for {target_class.__name__}: "
                    f"{sorted(unknown)}"
                )

            field_values: Dict[str, Any] = {}
            for field_name, value in data_dict.items():
                field_type = fields[field_name].type
                if hasattr(field_type, "__dataclass_fields__"):
                    if not isinstance(value, dict):
                        raise ConfigValidationError(
                            f"{field_name} must be a mapping", field_name=field_name
                        )
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                else:
                    field_values[field_name] = value
            try:
                return target_class(**field_values)
            except ValueError as e:
                raise ConfigValidationError(str(e)) from e

        return _dict_to_dataclass(data, cls)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def strict(cls) -> "ParserConfig":
        """Every element must be closed by a matching closing tag."""
        return cls(
            grammar=GrammarConfig(
                check_closing_tags=True,
                require_closing_tags=True,
            ),
            name="strict",
            description="Closing tags are mandatory and must match their element",
        )

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Accept any closing tag name and unclosed elements at end of input."""
        return cls(
            grammar=GrammarConfig(
                check_closing_tags=False,
                require_closing_tags=False,
            ),
            name="lenient",
            description="Closing tag names are not verified",
        )

    @classmethod
    def performance_optimized(cls) -> "ParserConfig":
        """Drop whitespace-only text and keep logging quiet."""
        return cls(
            grammar=GrammarConfig(drop_whitespace_text=True),
            global_=GlobalConfig(
                logging_level="WARNING",
                enable_correlation_tracking=False,
            ),
            name="performance_optimized",
            description="Smaller trees and minimal logging for bulk parsing",
        )
