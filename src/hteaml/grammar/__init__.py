"""Template grammar: tokens, lexer, cursors and parser.

Key Components:
    TemplateLexer: default token source for template text
    Cursor, TokenCursor: token streams with speculative forking
    TemplateParser: builds a document tree from a cursor
"""

from .cursor import Cursor, TokenCursor
from .lexer import TemplateLexer, tokenize
from .parser import TemplateParser
from .tokens import Token, TokenType

__all__ = [
    "Cursor",
    "TokenCursor",
    "TemplateLexer",
    "tokenize",
    "TemplateParser",
    "Token",
    "TokenType",
]
