"""Exception hierarchy for hteaml.

Parsing and rendering are terminal on failure: the first error aborts the
operation and nothing partial is handed back to the caller.
"""

from typing import Any, Dict, Optional

from .result import TokenPosition


class HteamlError(Exception):
    """Base exception for all hteaml errors."""


class ParseError(HteamlError):
    """Raised when template source does not match the grammar.

    Attributes:
        message: Human-readable description of what went wrong
        position: Where in the source the problem was detected
        expected: What the parser was looking for
        found: Text of the token actually encountered, if any
    """

    def __init__(
        self,
        message: str,
        position: Optional[TokenPosition] = None,
        expected: Optional[str] = None,
        found: Optional[str] = None
    ) -> None:
        self.message = message
        self.position = position
        self.expected = expected
        self.found = found
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.found is not None:
            text = f"{text} (found {self.found!r})"
        if self.position is not None:
            text = f"{text} at {self.position}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "position": self.position.to_dict() if self.position else None,
            "expected": self.expected,
            "found": self.found,
        }


class RenderError(HteamlError):
    """Raised when the output sink fails while a tree is being written."""


class SlotBindingError(HteamlError, LookupError):
    """Raised when a slot has no value in the supplied bindings."""

    def __init__(self, key: Any, position: Optional[TokenPosition] = None) -> None:
        self.key = key
        self.position = position
        where = f" at {position}" if position is not None else ""
        super().__init__(f"No value bound for slot {key!r}{where}")
