"""Tests for token cursors."""

import pytest

from hteaml.grammar.cursor import TokenCursor
from hteaml.grammar.lexer import tokenize
from hteaml.grammar.tokens import Token, TokenType
from hteaml.shared.errors import ParseError
from hteaml.shared.result import TokenPosition


class TestTokenCursor:
    """Test suite for TokenCursor."""

    def setup_method(self):
        """Set up test fixtures."""
        self.cursor = TokenCursor(tokenize("(a b)"))

    def test_peek_does_not_consume(self):
        """Test one-token lookahead."""
        assert self.cursor.peek_type() is TokenType.PAREN_OPEN
        assert self.cursor.peek_type() is TokenType.PAREN_OPEN
        assert self.cursor.index == 0

    def test_advance(self):
        """Test consuming tokens."""
        assert self.cursor.advance().type is TokenType.PAREN_OPEN
        assert self.cursor.advance().value == "a"
        assert self.cursor.position.column == 4

    def test_advance_stops_at_eof(self):
        """Test that advancing at EOF keeps returning EOF."""
        for _ in range(10):
            self.cursor.advance()
        assert self.cursor.at_end()
        assert self.cursor.advance().type is TokenType.EOF

    def test_fork_is_independent(self):
        """Test that a fork moves without moving its origin."""
        fork = self.cursor.fork()
        fork.advance()
        fork.advance()

        assert self.cursor.index == 0
        assert fork.index == 2
        assert fork.tokens is self.cursor.tokens

    def test_advance_to_commits_fork(self):
        """Test committing a fork."""
        fork = self.cursor.fork()
        fork.advance()
        self.cursor.advance_to(fork)
        assert self.cursor.index == 1

    def test_advance_to_rejects_foreign_cursor(self):
        """Test that only forks of the same token list can be committed."""
        other = TokenCursor(tokenize("(a b)"))
        with pytest.raises(ValueError, match="fork of the same cursor"):
            self.cursor.advance_to(other)

    def test_advance_to_rejects_backwards(self):
        """Test that a cursor never moves backwards."""
        fork = self.cursor.fork()
        self.cursor.advance()
        with pytest.raises(ValueError, match="behind"):
            self.cursor.advance_to(fork)

    def test_expect(self):
        """Test expect on a matching token."""
        assert self.cursor.expect(TokenType.PAREN_OPEN, "'('").type is TokenType.PAREN_OPEN

    def test_expect_mismatch(self):
        """Test expect on an unexpected token."""
        with pytest.raises(ParseError, match="Unexpected token: expected an identifier") as exc_info:
            self.cursor.expect(TokenType.IDENTIFIER, "an identifier")
        assert exc_info.value.found == "("

    def test_expect_at_eof(self):
        """Test that running out of tokens is reported as an unterminated group."""
        cursor = TokenCursor(tokenize("(a"))
        cursor.advance()
        cursor.advance()
        with pytest.raises(ParseError, match="Unterminated group: expected '\\)'"):
            cursor.expect(TokenType.PAREN_CLOSE, "')'")


class TestExternalTokens:
    """Test suite for token lists that do not come from the lexer."""

    def test_eof_appended(self):
        """Test that a list without EOF gets one after its last token."""
        tokens = [Token(TokenType.PAREN_OPEN, "(", TokenPosition(1, 1, 0), 1)]
        cursor = TokenCursor(tokens)

        eof = cursor.tokens[-1]
        assert eof.type is TokenType.EOF
        assert (eof.position.column, eof.position.offset) == (2, 1)
        assert len(tokens) == 1

    def test_empty_list(self):
        """Test a cursor over no tokens at all."""
        cursor = TokenCursor([])
        assert cursor.at_end()
        assert cursor.position == TokenPosition(1, 1, 0)

    def test_repr(self):
        """Test the debugging representation."""
        assert repr(TokenCursor([])) == "TokenCursor(index=0, token=EOF)"
