"""Shared utilities for hteaml.

This package provides the configuration objects, exception hierarchy,
diagnostic records and logging helpers used by every other layer.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    GrammarConfig,
    HteamlConfig,
    LexerConfig,
    MissingSlotPolicy,
    RenderConfig,
)
from .errors import (
    HteamlError,
    ParseError,
    RenderError,
    SlotBindingError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    TokenPosition,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "GrammarConfig",
    "HteamlConfig",
    "LexerConfig",
    "MissingSlotPolicy",
    "RenderConfig",
    "HteamlError",
    "ParseError",
    "RenderError",
    "SlotBindingError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "TokenPosition",
]
