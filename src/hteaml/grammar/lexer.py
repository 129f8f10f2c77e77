"""Default token source for template text.

The parser consumes tokens through a cursor and never looks at characters;
this lexer is the token source used when a template is given as text. It
recognizes:

* punctuation ``(`` ``)`` ``:`` ``=``
* identifiers: a letter or ``_`` followed by letters, digits, ``_`` and the
  configured extra identifier characters (``-`` by default)
* string literals in single or double quotes with ``\\\\ \\" \\' \\n \\r
  \\t \\0 \\uXXXX`` escapes
* slots: ``{`` opaque text ``}``, emitted as BRACE_OPEN, EXPRESSION and
  BRACE_CLOSE tokens; braces inside the text must balance

Whitespace separates tokens and ``//`` comments run to the end of the line.
Identifiers and escape-free string literals are emitted as
:class:`~hteaml.document.strings.StrRef` spans of the input.
"""

from typing import List, Optional

from hteaml.document.strings import StringValue, StrRef
from hteaml.shared.config import LexerConfig
from hteaml.shared.errors import ParseError
from hteaml.shared.logging import get_logger
from hteaml.shared.result import TokenPosition

from .tokens import Token, TokenType

_PUNCTUATION = {
    "(": TokenType.PAREN_OPEN,
    ")": TokenType.PAREN_CLOSE,
    ":": TokenType.COLON,
    "=": TokenType.EQUALS,
}
_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
}
_UNICODE_ESCAPE_LENGTH = 4
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class TemplateLexer:
    """Converts template text into a list of tokens ending with EOF."""

    def __init__(
        self,
        config: Optional[LexerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or LexerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "template_lexer")
        self._reset_state("")

    def _reset_state(self, text: str) -> None:
        self.text = text
        self.index = 0
        self.line = 1
        self.column = 1

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize ``text``.

        Raises:
            ParseError: on unterminated strings or slots, invalid escapes,
                stray characters, or input over ``max_input_size``
        """
        if self.config.max_input_size is not None and len(text) > self.config.max_input_size:
            raise ParseError(
                f"Template of {len(text)} characters exceeds the "
                f"{self.config.max_input_size} character limit",
                TokenPosition(1, 1, 0),
            )

        self._reset_state(text)
        tokens: List[Token] = []

        while True:
            self._skip_trivia()
            if self.index >= len(self.text):
                position = self._position()
                tokens.append(Token(TokenType.EOF, "", position, position.offset))
                break

            char = self.text[self.index]
            if char in _PUNCTUATION:
                tokens.append(self._single(_PUNCTUATION[char]))
            elif char == "{":
                tokens.extend(self._lex_slot())
            elif char in "\"'":
                tokens.append(self._lex_string(char))
            elif char.isalpha() or char == "_":
                tokens.append(self._lex_identifier())
            else:
                raise ParseError(
                    "Unexpected character",
                    self._position(),
                    expected="a token",
                    found=char,
                )

        self.logger.debug(
            "Tokenization completed",
            extra={"char_count": len(text), "token_count": len(tokens)}
        )
        return tokens

    def _position(self) -> TokenPosition:
        return TokenPosition(self.line, self.column, self.index)

    def _advance(self) -> str:
        char = self.text[self.index]
        self.index += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _peek(self, ahead: int = 0) -> Optional[str]:
        index = self.index + ahead
        if index < len(self.text):
            return self.text[index]
        return None

    def _skip_trivia(self) -> None:
        while self.index < len(self.text):
            char = self.text[self.index]
            if char.isspace():
                self._advance()
            elif char == "/" and self._peek(1) == "/":
                while self.index < len(self.text) and self.text[self.index] != "\n":
                    self._advance()
            else:
                break

    def _single(self, token_type: TokenType) -> Token:
        position = self._position()
        char = self._advance()
        return Token(token_type, char, position, self.index)

    def _lex_identifier(self) -> Token:
        position = self._position()
        extra = self.config.identifier_chars
        while self.index < len(self.text):
            char = self.text[self.index]
            if not (char.isalnum() or char == "_" or char in extra):
                break
            self._advance()
        value = StrRef(self.text, position.offset, self.index)
        return Token(TokenType.IDENTIFIER, value, position, self.index)

    def _lex_string(self, quote: str) -> Token:
        position = self._position()
        self._advance()
        content_start = self.index
        parts: List[str] = []
        chunk_start = content_start
        escaped = False

        while True:
            if self.index >= len(self.text):
                raise ParseError(
                    "Unterminated string literal",
                    position,
                    expected=f"closing {quote}",
                    found="end of input",
                )
            char = self.text[self.index]
            if char == quote:
                break
            if char == "\\":
                parts.append(self.text[chunk_start:self.index])
                parts.append(self._lex_escape())
                chunk_start = self.index
                escaped = True
            else:
                self._advance()

        content_end = self.index
        self._advance()

        value: StringValue
        if escaped:
            parts.append(self.text[chunk_start:content_end])
            value = "".join(parts)
        else:
            value = StrRef(self.text, content_start, content_end)
        return Token(TokenType.STRING, value, position, self.index)

    def _lex_escape(self) -> str:
        position = self._position()
        self._advance()
        if self.index >= len(self.text):
            raise ParseError("Unterminated escape sequence", position, found="end of input")
        char = self._advance()
        if char in _ESCAPES:
            return _ESCAPES[char]
        if char == "u":
            digits = self.text[self.index:self.index + _UNICODE_ESCAPE_LENGTH]
            if len(digits) != _UNICODE_ESCAPE_LENGTH or not set(digits) <= _HEX_DIGITS:
                raise ParseError(
                    "Invalid unicode escape",
                    position,
                    expected="\\u followed by 4 hex digits",
                    found="\\u" + digits,
                )
            for _ in range(_UNICODE_ESCAPE_LENGTH):
                self._advance()
            return chr(int(digits, 16))
        raise ParseError("Invalid escape sequence", position, found="\\" + char)

    def _lex_slot(self) -> List[Token]:
        open_token = self._single(TokenType.BRACE_OPEN)
        expression_position = self._position()
        depth = 1

        while True:
            if self.index >= len(self.text):
                raise ParseError(
                    "Unterminated slot",
                    open_token.position,
                    expected="'}'",
                    found="end of input",
                )
            char = self.text[self.index]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    break
            elif char in "\"'":
                self._skip_quoted(char)
                continue
            self._advance()

        expression = Token(
            TokenType.EXPRESSION,
            StrRef(self.text, expression_position.offset, self.index),
            expression_position,
            self.index,
        )
        close_token = self._single(TokenType.BRACE_CLOSE)
        return [open_token, expression, close_token]

    def _skip_quoted(self, quote: str) -> None:
        position = self._position()
        self._advance()
        while self.index < len(self.text):
            char = self._advance()
            if char == "\\" and self.index < len(self.text):
                self._advance()
            elif char == quote:
                return
        raise ParseError(
            "Unterminated string inside slot",
            position,
            expected=f"closing {quote}",
            found="end of input",
        )


def tokenize(text: str, config: Optional[LexerConfig] = None) -> List[Token]:
    """Tokenize template text with a fresh :class:`TemplateLexer`."""
    return TemplateLexer(config).tokenize(text)
