"""Token cursors with speculative forking.

The parser reads tokens only through the :class:`Cursor` interface: one token
of lookahead, and forks that can be advanced independently and then either
committed with :meth:`Cursor.advance_to` or simply dropped.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from hteaml.shared.errors import ParseError
from hteaml.shared.result import TokenPosition

from .tokens import Token, TokenType


class Cursor(ABC):
    """Abstract token cursor consumed by the grammar parser.

    A fork must hand out the same token objects as its parent; the parser
    identifies slots by token identity when an attribute attempt is retried.
    """

    @abstractmethod
    def peek(self) -> Token:
        """Return the current token without consuming it."""

    @abstractmethod
    def advance(self) -> Token:
        """Consume and return the current token."""

    @abstractmethod
    def fork(self) -> "Cursor":
        """Return an independent cursor at the same position."""

    @abstractmethod
    def advance_to(self, fork: "Cursor") -> None:
        """Move this cursor to the position of ``fork``."""

    def peek_type(self) -> TokenType:
        """Return the type of the current token."""
        return self.peek().type

    def at_end(self) -> bool:
        """Check if the cursor has reached end of input."""
        return self.peek_type() is TokenType.EOF

    @property
    def position(self) -> TokenPosition:
        """Position of the current token."""
        return self.peek().position

    def expect(self, token_type: TokenType, expected: str) -> Token:
        """Consume a token of ``token_type`` or raise ParseError."""
        token = self.peek()
        if token.type is not token_type:
            message = "Unterminated group" if token.type is TokenType.EOF else "Unexpected token"
            raise ParseError(
                f"{message}: expected {expected}",
                token.position,
                expected=expected,
                found=token.describe(),
            )
        return self.advance()


class TokenCursor(Cursor):
    """Cursor over an in-memory token list.

    Forks share the token list and copy only the index. A list that does not
    end with an EOF token gets one appended.
    """

    def __init__(self, tokens: Sequence[Token], index: int = 0) -> None:
        token_list: List[Token] = list(tokens)
        if not token_list or token_list[-1].type is not TokenType.EOF:
            end = token_list[-1].end if token_list else 0
            position = (
                TokenPosition(
                    token_list[-1].position.line,
                    token_list[-1].position.column + token_list[-1].length,
                    end,
                )
                if token_list else TokenPosition(1, 1, 0)
            )
            token_list.append(Token(TokenType.EOF, "", position, end))
        self._tokens = token_list
        self._index = index

    @classmethod
    def _shared(cls, tokens: List[Token], index: int) -> "TokenCursor":
        cursor = cls.__new__(cls)
        cursor._tokens = tokens
        cursor._index = index
        return cursor

    @property
    def index(self) -> int:
        """Index of the current token."""
        return self._index

    @property
    def tokens(self) -> List[Token]:
        """The underlying token list, ending with EOF."""
        return self._tokens

    def peek(self) -> Token:
        return self._tokens[self._index]

    def advance(self) -> Token:
        token = self._tokens[self._index]
        if token.type is not TokenType.EOF:
            self._index += 1
        return token

    def fork(self) -> "TokenCursor":
        return TokenCursor._shared(self._tokens, self._index)

    def advance_to(self, fork: Cursor) -> None:
        if not isinstance(fork, TokenCursor) or fork._tokens is not self._tokens:
            raise ValueError("Can only advance to a fork of the same cursor")
        if fork._index < self._index:
            raise ValueError("Fork is behind this cursor")
        self._index = fork._index

    def __repr__(self) -> str:
        return f"TokenCursor(index={self._index}, token={self.peek().type.name})"
