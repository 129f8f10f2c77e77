"""Markup renderer.

Serializes a document tree with a single depth-first walk that writes every
fragment straight into one shared sink, so deep trees are never rebuilt as
intermediate strings. The output format is fixed:

* ``<name`` then `` key`` or `` key="value"`` per attribute, then ``>``
* a self-closing tag stops there; otherwise its content follows and then
  ``</name>``
* comments are ``<!-- text -->``
* sequences, text and slot values are written back to back with nothing
  in between

Nothing is escaped: attribute values, text and comment bodies are written
exactly as stored.
"""

import io
from typing import Any, Callable, Optional

from hteaml.shared.config import RenderConfig
from hteaml.shared.errors import RenderError
from hteaml.shared.logging import get_logger

from .model import Comment, Content, Element, Empty, Nested, Sequence, Slot, Tag, Text
from .slots import SlotBindings, resolve_content, resolve_element, resolve_value

Write = Callable[[str], Any]


class MarkupRenderer:
    """Render document trees to markup text."""

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or RenderConfig()
        self.logger = get_logger(__name__, correlation_id, "markup_renderer")

    def render(self, node: Element, bindings: Optional[SlotBindings] = None) -> str:
        """Render ``node`` to a string.

        Raises:
            SlotBindingError: if a slot is unbound and the policy is ERROR
        """
        buffer = io.StringIO()
        self.render_to(node, buffer, bindings)
        return buffer.getvalue()

    def render_to(
        self,
        node: Element,
        sink: Any,
        bindings: Optional[SlotBindings] = None
    ) -> None:
        """Render ``node`` into ``sink``, any object with a ``write(str)`` method.

        On failure the sink is left partially written.

        Raises:
            RenderError: if writing to the sink fails
            SlotBindingError: if a slot is unbound and the policy is ERROR
        """
        self.logger.debug(
            "Rendering started",
            extra={"node_type": type(node).__name__, "sink_type": type(sink).__name__}
        )
        write = _checked_writer(sink)
        self._render_element(node, write, bindings or SlotBindings())

    def _render_element(self, node: Element, write: Write, bindings: SlotBindings) -> None:
        if isinstance(node, Tag):
            self._render_tag(node, write, bindings)
        elif isinstance(node, Sequence):
            for item in node.flatten():
                self._render_element(item, write, bindings)
        elif isinstance(node, Comment):
            write("<!-- ")
            write(str(resolve_value(node.text, bindings, self.config.missing_slots)))
            write(" -->")
        elif isinstance(node, Slot):
            element = resolve_element(node, bindings, self.config.missing_slots)
            # Bound values are opaque: their own slots are never filled from
            # these bindings, matching bind_slots.
            self._render_element(element, write, SlotBindings())
        else:
            raise TypeError(f"{type(node).__name__} is not an element")

    def _render_tag(self, tag: Tag, write: Write, bindings: SlotBindings) -> None:
        policy = self.config.missing_slots
        name = str(resolve_value(tag.name, bindings, policy))
        write("<")
        write(name)
        for attribute in tag.attributes:
            write(" ")
            write(str(resolve_value(attribute.key, bindings, policy)))
            value = resolve_value(attribute.value, bindings, policy)
            if len(value):
                write('="')
                write(str(value))
                write('"')
        write(">")
        if tag.is_self_closing:
            return
        for item in tag.body:
            self._render_content(item, write, bindings)
        write("</")
        write(name)
        write(">")

    def _render_content(self, item: Content, write: Write, bindings: SlotBindings) -> None:
        if isinstance(item, Text):
            write(str(resolve_value(item.value, bindings, self.config.missing_slots)))
        elif isinstance(item, Nested):
            self._render_element(item.element, write, bindings)
        elif isinstance(item, Slot):
            for resolved in resolve_content(item, bindings, self.config.missing_slots):
                self._render_content(resolved, write, SlotBindings())
        elif not isinstance(item, Empty):
            raise TypeError(f"{type(item).__name__} is not tag content")


def _checked_writer(sink: Any) -> Write:
    sink_write = sink.write

    def write(text: str) -> None:
        try:
            sink_write(text)
        except (OSError, ValueError) as e:
            raise RenderError(f"Writing to {type(sink).__name__} failed: {e}") from e

    return write


def render(node: Element, bindings: Optional[SlotBindings] = None) -> str:
    """Render ``node`` to a string with the default configuration."""
    return MarkupRenderer().render(node, bindings)


def render_to(node: Element, sink: Any, bindings: Optional[SlotBindings] = None) -> None:
    """Render ``node`` into ``sink`` with the default configuration."""
    MarkupRenderer().render_to(node, sink, bindings)
