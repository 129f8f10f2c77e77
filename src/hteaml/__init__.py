"""hteaml - markup templates written as nested parenthesized groups.

A template such as ``(a href:{url} = "home")`` parses into a document tree
of tags, comments and slots; rendering the tree with slot values produces
markup text. The same tree can be built directly with the fluent builder
API (``Tag("a").attr("href", "/").content("home")``).

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), render(),
  render_template()
- Level 2: Configured engine - HteamlEngine class
- Level 3: Custom token sources - any Cursor implementation fed to
  HteamlEngine.parse_tokens()
"""

__version__ = "0.1.0"
__author__ = "hteaml Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured engine
from .api import (
    HteamlEngine,
    ParseResult,
    Template,
    parse,
    parse_file,
    parse_string,
    render,
    render_template,
)

# Builder API and document model
from .document import Comment, Sequence, Slot, SlotBindings, StrRef, Tag

# Custom token sources
from .grammar import Cursor, Token, TokenCursor, TokenType

# Configuration and errors
from .shared import (
    HteamlConfig,
    HteamlError,
    MissingSlotPolicy,
    ParseError,
    RenderError,
    SlotBindingError,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions (progressive disclosure entry point)
    "parse",
    "parse_string",
    "parse_file",
    "render",
    "render_template",

    # Level 2: Configured engine
    "HteamlEngine",

    # Result objects
    "ParseResult",
    "Template",

    # Builder API and document model
    "Tag",
    "Comment",
    "Sequence",
    "Slot",
    "SlotBindings",
    "StrRef",

    # Custom token sources
    "Cursor",
    "Token",
    "TokenCursor",
    "TokenType",

    # Configuration and errors
    "HteamlConfig",
    "MissingSlotPolicy",
    "HteamlError",
    "ParseError",
    "RenderError",
    "SlotBindingError",
]
