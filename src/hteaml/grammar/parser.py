"""Grammar parser producing document trees.

Grammar::

    Html      := Element | Slot | Html Html+
    Element   := '(' Value Attr* TagBody? ')'
    Attr      := Value ':' Value | Value
    TagBody   := '=' Content | Content
    Content   := (String | Slot | Element)+
    Value     := Identifier | String | Slot
    Slot      := '{' expression '}'

The attribute list and the tag body start with the same tokens, so after the
tag name the parser forks the cursor and tries attributes one at a time on
the fork. Only if at least one attribute parsed is the main cursor moved up
to the fork; otherwise whatever follows the name is read as the tag body.
A tag without a body is self-closing.

Bare attributes (a key with no ``:value``) follow ``GrammarConfig``; when
they are allowed, ``(tag "text")`` is a tag with a ``text`` attribute and
content must be introduced with ``=`` unless it is a nested tag.
"""

import logging
from typing import Dict, List, Optional, Tuple

from hteaml.document.model import (
    Attribute,
    Content,
    Element,
    Nested,
    Sequence,
    Slot,
    SlotKey,
    Tag,
    Text,
    Value,
)
from hteaml.shared.config import GrammarConfig
from hteaml.shared.errors import ParseError
from hteaml.shared.logging import get_logger
from hteaml.shared.result import TokenPosition

from .cursor import Cursor
from .tokens import Token, TokenType

_GROUP_OPENERS = (TokenType.PAREN_OPEN, TokenType.BRACE_OPEN)
_CONTENT_OPENERS = (TokenType.PAREN_OPEN, TokenType.BRACE_OPEN, TokenType.STRING)
_VALUE_EXPECTATION = "an identifier, a string literal or a {slot}"
_CONTENT_EXPECTATION = "a string literal, a {slot} or a nested tag"
_ATTRIBUTE_MESSAGE = "Expected key:value pairs for attributes"

_AUTOMATIC = "automatic"
_MANUAL = "manual"


class TemplateParser:
    """Parses a token cursor into a document tree with slot holes.

    A parser instance can be reused; each :meth:`parse` call starts fresh.
    After a successful parse, :attr:`slots` lists the slots found in document
    order and :attr:`elements_built` counts the tags created.
    """

    def __init__(
        self,
        config: Optional[GrammarConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or GrammarConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "template_parser")
        self._reset_state()

    def _reset_state(self) -> None:
        self._depth = 0
        # Holds the token too so its id stays unique for the whole parse.
        self._slot_cache: Dict[int, Tuple[Token, Slot]] = {}
        self._next_index = 0
        self._numbering: Optional[str] = None
        self.elements_built = 0

    @property
    def slots(self) -> List[Slot]:
        """Slots of the last parse in document order."""
        return [slot for _, slot in self._slot_cache.values()]

    def parse(self, cursor: Cursor) -> Element:
        """Parse one template from ``cursor``, which must then be exhausted.

        A single top-level element is returned as is; two or more are wrapped
        in a :class:`Sequence`.

        Raises:
            ParseError: on any grammar violation; no partial tree is returned
        """
        self._reset_state()
        root = self._parse_html(cursor)
        if not cursor.at_end():
            token = cursor.peek()
            raise ParseError(
                "Unexpected token after template",
                token.position,
                expected="end of input",
                found=token.describe(),
            )
        self.logger.debug(
            "Template parsed",
            extra={
                "elements_built": self.elements_built,
                "slot_count": len(self._slot_cache),
                "root_type": type(root).__name__,
            }
        )
        return root

    def _parse_html(self, cursor: Cursor) -> Element:
        first = self._parse_html_item(cursor)
        if cursor.peek_type() not in _GROUP_OPENERS:
            return first
        items = [first]
        while cursor.peek_type() in _GROUP_OPENERS:
            items.append(self._parse_html_item(cursor))
        return Sequence(items)

    def _parse_html_item(self, cursor: Cursor) -> Element:
        token_type = cursor.peek_type()
        if token_type is TokenType.PAREN_OPEN:
            return self._parse_tag(cursor)
        if token_type is TokenType.BRACE_OPEN:
            return self._parse_slot(cursor)
        token = cursor.peek()
        raise ParseError(
            "Expected a tag or a slot",
            token.position,
            expected="'(' or '{'",
            found=token.describe(),
        )

    def _parse_tag(self, cursor: Cursor) -> Tag:
        open_token = cursor.expect(TokenType.PAREN_OPEN, "'('")
        self._enter(open_token.position)

        name = self._parse_value(cursor, "a tag name")
        tag = Tag(name, attributes=self._parse_attributes(cursor))

        if cursor.peek_type() is TokenType.EQUALS:
            cursor.advance()
            tag.body.extend(self._parse_content(cursor))
        elif cursor.peek_type() in _CONTENT_OPENERS:
            tag.body.extend(self._parse_content(cursor))
        else:
            tag.self_closing()

        label = "{slot}" if isinstance(name, Slot) else str(name)
        cursor.expect(TokenType.PAREN_CLOSE, f"')' to close tag {label}")
        self._depth -= 1
        self.elements_built += 1
        return tag

    def _enter(self, position: TokenPosition) -> None:
        self._depth += 1
        if self._depth > self.config.max_nesting_depth:
            raise ParseError(
                f"Tags nested deeper than {self.config.max_nesting_depth} levels",
                position,
            )

    def _parse_attributes(self, cursor: Cursor) -> List[Attribute]:
        attributes: List[Attribute] = []
        fork = cursor.fork()
        while True:
            attempt = fork.fork()
            attribute = self._try_parse_attribute(attempt)
            if attribute is None:
                break
            fork.advance_to(attempt)
            attributes.append(attribute)

        if attributes:
            cursor.advance_to(fork)
        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Attribute list committed" if attributes else "Attribute list discarded",
                extra={"attribute_count": len(attributes), "position": str(cursor.position)}
            )
        return attributes

    def _try_parse_attribute(self, cursor: Cursor) -> Optional[Attribute]:
        if cursor.peek_type() is TokenType.COLON:
            token = cursor.peek()
            raise ParseError(
                _ATTRIBUTE_MESSAGE,
                token.position,
                expected="an attribute key",
                found=token.describe(),
            )
        key = self._try_parse_value(cursor)
        if key is None:
            return None
        if cursor.peek_type() is TokenType.COLON:
            cursor.advance()
            value = self._try_parse_value(cursor)
            if value is None:
                token = cursor.peek()
                raise ParseError(
                    _ATTRIBUTE_MESSAGE,
                    token.position,
                    expected="an attribute value",
                    found=token.describe(),
                )
            return Attribute(key, value)
        if self.config.allow_bare_attributes:
            return Attribute(key, "")
        return None

    def _parse_content(self, cursor: Cursor) -> List[Content]:
        if cursor.peek_type() not in _CONTENT_OPENERS:
            token = cursor.peek()
            raise ParseError(
                "Expected tag content",
                token.position,
                expected=_CONTENT_EXPECTATION,
                found=token.describe(),
            )
        items = [self._parse_content_item(cursor)]
        while cursor.peek_type() in _CONTENT_OPENERS:
            items.append(self._parse_content_item(cursor))
        return items

    def _parse_content_item(self, cursor: Cursor) -> Content:
        token_type = cursor.peek_type()
        if token_type is TokenType.STRING:
            return Text(cursor.advance().value)
        if token_type is TokenType.BRACE_OPEN:
            return self._parse_slot(cursor)
        return Nested(self._parse_tag(cursor))

    def _try_parse_value(self, cursor: Cursor) -> Optional[Value]:
        token_type = cursor.peek_type()
        if token_type is TokenType.IDENTIFIER:
            return cursor.advance().value
        if token_type is TokenType.STRING:
            return cursor.advance().value
        if token_type is TokenType.BRACE_OPEN:
            return self._parse_slot(cursor)
        return None

    def _parse_value(self, cursor: Cursor, what: str) -> Value:
        value = self._try_parse_value(cursor)
        if value is None:
            token = cursor.peek()
            raise ParseError(
                f"Expected {what}",
                token.position,
                expected=_VALUE_EXPECTATION,
                found=token.describe(),
            )
        return value

    def _parse_slot(self, cursor: Cursor) -> Slot:
        open_token = cursor.expect(TokenType.BRACE_OPEN, "'{'")
        expression = ""
        if cursor.peek_type() is TokenType.EXPRESSION:
            expression = str(cursor.advance().value)
        cursor.expect(TokenType.BRACE_CLOSE, "'}'")

        # Speculative attribute attempts may read the same slot twice. Forks
        # share token objects, so the opening brace identifies the slot even
        # when a token source repeats positions.
        cached = self._slot_cache.get(id(open_token))
        if cached is not None:
            return cached[1]
        slot = Slot(
            self._slot_key(expression, open_token.position),
            position=open_token.position,
            expression=expression,
        )
        self._slot_cache[id(open_token)] = (open_token, slot)
        return slot

    def _slot_key(self, expression: str, position: TokenPosition) -> SlotKey:
        text = expression.strip()
        if text and not text.isdecimal():
            return text
        numbering = _MANUAL if text else _AUTOMATIC
        if self._numbering is not None and self._numbering != numbering:
            raise ParseError(
                f"Cannot switch from {self._numbering} to {numbering} slot numbering",
                position,
                found="{" + expression + "}",
            )
        self._numbering = numbering
        if text:
            return int(text)
        key = self._next_index
        self._next_index += 1
        return key
