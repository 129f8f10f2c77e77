"""Token types for the template grammar."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Any

from hteaml.document.strings import StringValue
from hteaml.shared.result import TokenPosition


class TokenType(Enum):
    """Token classes the parser can peek at."""

    PAREN_OPEN = auto()     # (
    PAREN_CLOSE = auto()    # )
    BRACE_OPEN = auto()     # {
    BRACE_CLOSE = auto()    # }
    EXPRESSION = auto()     # opaque text between braces
    COLON = auto()          # :
    EQUALS = auto()         # =
    IDENTIFIER = auto()     # tag, key or value name
    STRING = auto()         # quoted string literal, unescaped
    EOF = auto()            # end of input


@dataclass(frozen=True)
class Token:
    """A single token with its source span.

    ``value`` is the token's meaning (the unescaped text of a string literal,
    the name of an identifier); ``end`` is the offset just past its source text.
    """

    type: TokenType
    value: StringValue
    position: TokenPosition
    end: int

    @property
    def length(self) -> int:
        """Get the length of the token's source text."""
        return self.end - self.position.offset

    def describe(self) -> str:
        """Describe the token for error messages."""
        if self.type is TokenType.EOF:
            return "end of input"
        return str(self.value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert token to dictionary representation."""
        return {
            "type": self.type.name,
            "value": str(self.value),
            "position": self.position.to_dict(),
            "end": self.end,
        }
