"""Document model, builder API, slot binding and renderer.

Key Components:
    Tag, Comment, Sequence, Slot: the element types of a document tree
    Text, Nested, Empty: the content items of a tag
    StrRef: zero-copy view of a span of a larger string
    SlotBindings: values bound to a template's slots
    MarkupRenderer: serializes a tree to markup text
"""

from .model import (
    Attribute,
    Comment,
    Content,
    Element,
    Empty,
    Nested,
    Sequence,
    Slot,
    Tag,
    Text,
    to_content,
    to_element,
)
from .render import MarkupRenderer, render, render_to
from .slots import SlotBindings, bind_slots, collect_slots
from .strings import StringValue, StrRef, to_str

__all__ = [
    "Attribute",
    "Comment",
    "Content",
    "Element",
    "Empty",
    "Nested",
    "Sequence",
    "Slot",
    "Tag",
    "Text",
    "to_content",
    "to_element",
    "MarkupRenderer",
    "render",
    "render_to",
    "SlotBindings",
    "bind_slots",
    "collect_slots",
    "StringValue",
    "StrRef",
    "to_str",
]
