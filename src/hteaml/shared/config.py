"""Configuration classes for hteaml.

Each layer has its own small configuration object validated on construction;
:class:`HteamlConfig` aggregates them into one immutable value that can be
overridden field by field and serialized to and from JSON.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

_COMPONENTS = ("lexer", "grammar", "render", "global_")
_LOGGING_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class MissingSlotPolicy(Enum):
    """What the renderer does with a slot that has no bound value."""

    ERROR = "error"     # raise SlotBindingError
    EMPTY = "empty"     # render nothing in the slot's place


@dataclass
class LexerConfig:
    """Configuration for the default template lexer."""

    # Characters allowed in an identifier after its first character, in
    # addition to letters, digits and underscore.
    identifier_chars: str = "-"
    max_input_size: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate lexer configuration."""
        reserved = set("(){}:=\"'/") | {" ", "\t", "\n", "\r"}
        clash = sorted(reserved.intersection(self.identifier_chars))
        if clash:
            raise ValueError(
                f"identifier_chars cannot contain reserved characters: {clash}"
            )
        if self.max_input_size is not None and self.max_input_size <= 0:
            raise ValueError("max_input_size must be > 0 or None")


@dataclass
class GrammarConfig:
    """Configuration for the grammar parser."""

    allow_bare_attributes: bool = True
    max_nesting_depth: int = 256

    def __post_init__(self) -> None:
        """Validate grammar configuration."""
        if self.max_nesting_depth <= 0:
            raise ValueError("max_nesting_depth must be > 0")


@dataclass
class RenderConfig:
    """Configuration for the markup renderer."""

    missing_slots: MissingSlotPolicy = MissingSlotPolicy.ERROR

    def __post_init__(self) -> None:
        """Validate render configuration."""
        if not isinstance(self.missing_slots, MissingSlotPolicy):
            raise ValueError("missing_slots must be a MissingSlotPolicy")


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "WARNING"
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in _LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {list(_LOGGING_LEVELS)}")


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
class HteamlConfig:
    """Immutable configuration for every hteaml component.

    Component configurations validate themselves; this class re-raises their
    failures as :class:`ConfigValidationError`.
    """

    lexer: LexerConfig = field(default_factory=LexerConfig)
    grammar: GrammarConfig = field(default_factory=GrammarConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            for component in _COMPONENTS:
                getattr(self, component).__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "HteamlConfig":
        """Create a new configuration with specific overrides.

        Nested fields are addressed as ``component__field``.

        Example:
            >>> config = HteamlConfig().override(
            ...     grammar__allow_bare_attributes=False,
            ...     render__missing_slots=MissingSlotPolicy.EMPTY,
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                # global_ ends in an underscore, so match known prefixes first.
                component = next(
                    (name for name in _COMPONENTS if key.startswith(name + "__")), None
                )
                if component is None:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {key.split('__', 1)[0]}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                field_name = key[len(component) + 2:]
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        try:
            for component, values in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **values)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HteamlConfig":
        """Create configuration from dictionary."""
        component_types = {
            "lexer": LexerConfig,
            "grammar": GrammarConfig,
            "render": RenderConfig,
            "global_": GlobalConfig,
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_types:
                component_data = dict(value)
                if key == "render" and isinstance(component_data.get("missing_slots"), str):
                    component_data["missing_slots"] = MissingSlotPolicy[
                        component_data["missing_slots"]
                    ]
                try:
                    values[key] = component_types[key](**component_data)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key == "name":
                values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}", field_name=key
                )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "HteamlConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def default(cls) -> "HteamlConfig":
        """Configuration matching the documented grammar and renderer."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "HteamlConfig":
        """Only ``key:value`` attributes and plain identifiers."""
        return cls(
            lexer=LexerConfig(identifier_chars=""),
            grammar=GrammarConfig(allow_bare_attributes=False),
            name="strict",
        )

    @classmethod
    def lenient(cls) -> "HteamlConfig":
        """Unbound slots render as nothing instead of raising."""
        return cls(
            render=RenderConfig(missing_slots=MissingSlotPolicy.EMPTY),
            name="lenient",
        )
