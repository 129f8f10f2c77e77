"""String ownership for the document model.

Every name, attribute and text in a document is a :data:`StringValue`: either
an owned ``str`` or a :class:`StrRef`, a borrowed span of some larger source
text (the template the parser read). A ``StrRef`` is only sliced out of its
source when it is written, so parsing a template never copies identifiers or
escape-free literals.
"""

from typing import Any, Union


class StrRef:
    """Borrowed view of ``source[start:end]``.

    Compares and hashes like the text it spans, so a tree holding references
    into a template equals one built from plain strings.
    """

    __slots__ = ("source", "start", "end")

    def __init__(self, source: str, start: int = 0, end: Union[int, None] = None) -> None:
        if end is None:
            end = len(source)
        if not (0 <= start <= end <= len(source)):
            raise ValueError("StrRef span must lie within its source")
        self.source = source
        self.start = start
        self.end = end

    def __len__(self) -> int:
        return self.end - self.start

    def __bool__(self) -> bool:
        return self.end > self.start

    def __str__(self) -> str:
        if self.start == 0 and self.end == len(self.source):
            return self.source
        return self.source[self.start:self.end]

    def __repr__(self) -> str:
        return f"StrRef({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (str, StrRef)):
            return str(self) == str(other)
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(str(self))

    def write_to(self, sink: Any) -> None:
        """Write the referenced text to ``sink``."""
        sink.write(str(self))


StringValue = Union[str, StrRef]


def is_string_like(value: Any) -> bool:
    """Check whether ``value`` can be converted by :func:`to_str`."""
    return isinstance(value, (str, StrRef)) or hasattr(value, "__markup_str__")


def to_str(value: Any) -> StringValue:
    """Convert a string-like value into a :data:`StringValue`.

    Accepts ``str``, :class:`StrRef`, and any object implementing
    ``__markup_str__()``, which must itself return a ``str`` or ``StrRef``.
    This is the hook third-party types implement to be usable as tag names,
    attribute keys and values, and text.

    Raises:
        TypeError: if ``value`` is not string-like
    """
    if isinstance(value, (str, StrRef)):
        return value
    hook = getattr(value, "__markup_str__", None)
    if hook is not None:
        converted = hook()
        if not isinstance(converted, (str, StrRef)):
            raise TypeError(
                f"__markup_str__ of {type(value).__name__} returned "
                f"{type(converted).__name__}, expected str"
            )
        return converted
    raise TypeError(f"{type(value).__name__} cannot be used as a markup string")
