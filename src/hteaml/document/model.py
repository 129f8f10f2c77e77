"""Document model and builder API.

A document is a plain ownership tree of elements:

* :class:`Tag` - a markup tag with ordered attributes and ordered content
* :class:`Comment` - a markup comment
* :class:`Sequence` - a flat run of elements with no wrapping markup
* :class:`Slot` - a hole left by the parser for a value supplied at render time

A Tag's content items are :class:`Text`, :class:`Nested` (an element),
:class:`Empty`, or a :class:`Slot`. The same classes double as the fluent
builder API::

    >>> Tag("div").attr("class", "box").content("hello").render()
    '<div class="box">hello</div>'
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, TextIO, Union

from hteaml.shared.result import TokenPosition

from .strings import StringValue, is_string_like, to_str

SlotKey = Union[int, str]


class Renderable:
    """Mixin giving every node ``render()`` and ``render_to()`` shortcuts."""

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render this node to a string.

        Positional and keyword arguments bind the node's slots, if any.
        """
        from .render import MarkupRenderer
        from .slots import split_bindings

        return MarkupRenderer().render(self, split_bindings(args, kwargs))

    def render_to(self, sink: TextIO, *args: Any, **kwargs: Any) -> None:
        """Render this node into ``sink`` (any object with ``write(str)``)."""
        from .render import MarkupRenderer
        from .slots import split_bindings

        MarkupRenderer().render_to(self, sink, split_bindings(args, kwargs))


@dataclass
class Slot(Renderable):
    """Placeholder for a value bound at render time.

    ``key`` is an ``int`` for positional slots and a ``str`` for named ones.
    ``expression`` keeps the opaque text written between the braces.
    """

    key: SlotKey
    position: Optional[TokenPosition] = field(default=None, compare=False)
    expression: Optional[str] = field(default=None, compare=False)


Value = Union[StringValue, Slot]


def _to_value(value: Any) -> Value:
    if isinstance(value, Slot):
        return value
    return to_str(value)


@dataclass
class Attribute:
    """A tag attribute; an empty value renders as the bare key."""

    key: Value
    value: Value = ""

    def __post_init__(self) -> None:
        self.key = _to_value(self.key)
        self.value = "" if self.value is None else _to_value(self.value)


@dataclass
class Text:
    """Verbatim text inside a tag."""

    value: Value

    def __post_init__(self) -> None:
        self.value = _to_value(self.value)


@dataclass
class Nested:
    """An element inside a tag."""

    element: "Element"


@dataclass(frozen=True)
class Empty:
    """Content that renders as nothing."""


@dataclass
class Comment(Renderable):
    """A markup comment, rendered as ``<!-- text -->``."""

    text: Value

    def __post_init__(self) -> None:
        self.text = _to_value(self.text)


@dataclass
class Sequence(Renderable):
    """Ordered run of elements rendered back to back."""

    items: List["Element"] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.items = list(self.items)

    def push(self, element: "Element") -> "Sequence":
        """Append an element and return the sequence."""
        if not isinstance(element, (Tag, Comment, Sequence, Slot)):
            raise TypeError(f"{type(element).__name__} is not an element")
        self.items.append(element)
        return self

    def flatten(self) -> List["Element"]:
        """Return the elements of this sequence with nested sequences inlined."""
        flat: List[Element] = []
        for item in self.items:
            if isinstance(item, Sequence):
                flat.extend(item.flatten())
            else:
                flat.append(item)
        return flat

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class Tag(Renderable):
    """A markup tag.

    Content is kept even after :meth:`self_closing` is called; a self-closing
    tag simply never emits it.
    """

    name: Value
    attributes: List[Attribute] = field(default_factory=list)
    body: List["Content"] = field(default_factory=list)
    is_self_closing: bool = False

    def __post_init__(self) -> None:
        self.name = _to_value(self.name)

    def attr(self, key: Any, value: Any = None) -> "Tag":
        """Append an attribute. Duplicate keys are kept and all rendered."""
        self.attributes.append(Attribute(key, value))
        return self

    def content(self, content: Any) -> "Tag":
        """Append content.

        Strings become text, elements are nested, sequences are flattened
        into one item per element, and ``None`` appends empty content.
        """
        self.body.extend(to_content(content))
        return self

    def self_closing(self) -> "Tag":
        """Render as a single opening marker with no content."""
        self.is_self_closing = True
        return self


Element = Union[Tag, Comment, Sequence, Slot]
Content = Union[Text, Nested, Empty, Slot]

ELEMENT_TYPES = (Tag, Comment, Sequence, Slot)
CONTENT_TYPES = (Text, Nested, Empty)


def to_content(value: Any) -> List[Content]:
    """Convert a value into the content items it contributes to a tag.

    Objects implementing ``__markup_content__()`` are converted through the
    value that hook returns.

    Raises:
        TypeError: if ``value`` cannot be used as tag content
    """
    if value is None:
        return [Empty()]
    if isinstance(value, CONTENT_TYPES) or isinstance(value, Slot):
        return [value]
    if is_string_like(value):
        return [Text(to_str(value))]
    if isinstance(value, (Tag, Comment)):
        return [Nested(value)]
    if isinstance(value, Sequence):
        items: List[Content] = []
        for element in value.flatten():
            items.extend(to_content(element))
        return items
    if isinstance(value, (list, tuple)):
        items = []
        for element in value:
            items.extend(to_content(element))
        return items
    hook = getattr(value, "__markup_content__", None)
    if hook is not None:
        return to_content(hook())
    raise TypeError(f"{type(value).__name__} cannot be used as tag content")


def to_element(value: Any) -> Element:
    """Convert a value into a single element.

    Lists and tuples of elements become a :class:`Sequence`.

    Raises:
        TypeError: if ``value`` is not an element
    """
    if isinstance(value, ELEMENT_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        return Sequence([to_element(item) for item in value])
    raise TypeError(f"{type(value).__name__} cannot be used as an element")
