"""Progressive-disclosure entry points for parsing and rendering templates."""

from .template import (
    HteamlEngine,
    ParseResult,
    Template,
    parse,
    parse_file,
    parse_string,
    render,
    render_template,
)

__all__ = [
    "HteamlEngine",
    "ParseResult",
    "Template",
    "parse",
    "parse_file",
    "parse_string",
    "render",
    "render_template",
]
