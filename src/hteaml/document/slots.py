"""Slot bindings.

The parser leaves a :class:`~hteaml.document.model.Slot` wherever the
template has a ``{...}`` group. Before or while rendering, each slot is
looked up in a :class:`SlotBindings` and the value found there is converted
according to where the slot sits:

* element position (top level): an element, or a list of elements
* content position (inside a tag): anything ``Tag.content`` accepts
* value position (tag name, attribute key or value): a string-like value
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from hteaml.shared.config import MissingSlotPolicy
from hteaml.shared.errors import SlotBindingError

from .model import (
    Attribute,
    Comment,
    Content,
    Element,
    Empty,
    Nested,
    Sequence,
    Slot,
    SlotKey,
    Tag,
    Text,
    Value,
    to_content,
    to_element,
)
from .strings import StringValue, to_str

_MISSING = object()


class SlotBindings:
    """Values for a template's slots.

    Positional values bind integer slot keys by index; keyword values bind
    named slots. A mapping passed to :meth:`from_mapping` may mix both kinds
    of keys.
    """

    def __init__(
        self,
        args: Iterable[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None
    ) -> None:
        self._values: Dict[SlotKey, Any] = dict(enumerate(args))
        if kwargs:
            self._values.update(kwargs)

    @classmethod
    def from_mapping(cls, values: Mapping[SlotKey, Any]) -> "SlotBindings":
        """Create bindings from a mapping of slot keys to values."""
        bindings = cls()
        bindings._values.update(values)
        return bindings

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[SlotKey]:
        """Return the bound slot keys."""
        return list(self._values)

    def lookup(self, slot: Slot, policy: MissingSlotPolicy = MissingSlotPolicy.ERROR) -> Any:
        """Return the value bound to ``slot``.

        Returns a private sentinel when the slot is unbound and ``policy`` is
        :attr:`MissingSlotPolicy.EMPTY`.

        Raises:
            SlotBindingError: if the slot is unbound and ``policy`` is ERROR
        """
        value = self._values.get(slot.key, _MISSING)
        if value is _MISSING and policy is MissingSlotPolicy.ERROR:
            raise SlotBindingError(slot.key, slot.position)
        return value

    def resolve(self, slot: Slot) -> Any:
        """Return the value bound to ``slot`` or raise SlotBindingError."""
        return self.lookup(slot, MissingSlotPolicy.ERROR)


def resolve_value(
    value: Value,
    bindings: SlotBindings,
    policy: MissingSlotPolicy = MissingSlotPolicy.ERROR
) -> StringValue:
    """Resolve a value position to a string."""
    if not isinstance(value, Slot):
        return value
    bound = bindings.lookup(value, policy)
    if bound is _MISSING:
        return ""
    return to_str(bound)


def resolve_element(
    slot: Slot,
    bindings: SlotBindings,
    policy: MissingSlotPolicy = MissingSlotPolicy.ERROR
) -> Element:
    """Resolve a slot in element position."""
    bound = bindings.lookup(slot, policy)
    if bound is _MISSING:
        return Sequence()
    return to_element(bound)


def resolve_content(
    slot: Slot,
    bindings: SlotBindings,
    policy: MissingSlotPolicy = MissingSlotPolicy.ERROR
) -> List[Content]:
    """Resolve a slot in content position."""
    bound = bindings.lookup(slot, policy)
    if bound is _MISSING:
        return []
    return to_content(bound)


def bind_slots(
    node: Element,
    bindings: SlotBindings,
    policy: MissingSlotPolicy = MissingSlotPolicy.ERROR
) -> Element:
    """Return a copy of ``node`` with every slot replaced by its bound value.

    The input tree is left untouched. Bound values are inserted as given;
    slots inside them are not resolved again.
    """
    if isinstance(node, Slot):
        return resolve_element(node, bindings, policy)
    if isinstance(node, Comment):
        return Comment(resolve_value(node.text, bindings, policy))
    if isinstance(node, Sequence):
        return Sequence([bind_slots(item, bindings, policy) for item in node.items])
    if isinstance(node, Tag):
        body: List[Content] = []
        for item in node.body:
            body.extend(_bind_content(item, bindings, policy))
        return Tag(
            resolve_value(node.name, bindings, policy),
            attributes=[
                Attribute(
                    resolve_value(attribute.key, bindings, policy),
                    resolve_value(attribute.value, bindings, policy),
                )
                for attribute in node.attributes
            ],
            body=body,
            is_self_closing=node.is_self_closing,
        )
    raise TypeError(f"{type(node).__name__} is not an element")


def _bind_content(
    item: Content,
    bindings: SlotBindings,
    policy: MissingSlotPolicy
) -> List[Content]:
    if isinstance(item, Slot):
        return resolve_content(item, bindings, policy)
    if isinstance(item, Text):
        return [Text(resolve_value(item.value, bindings, policy))]
    if isinstance(item, Nested):
        return [Nested(bind_slots(item.element, bindings, policy))]
    if isinstance(item, Empty):
        return [item]
    raise TypeError(f"{type(item).__name__} is not tag content")


def collect_slots(node: Element) -> List[Slot]:
    """Return every slot in ``node`` in document order."""
    found: List[Slot] = []

    def visit_value(value: Value) -> None:
        if isinstance(value, Slot):
            found.append(value)

    def visit(element: Element) -> None:
        if isinstance(element, Slot):
            found.append(element)
        elif isinstance(element, Comment):
            visit_value(element.text)
        elif isinstance(element, Sequence):
            for item in element.items:
                visit(item)
        elif isinstance(element, Tag):
            visit_value(element.name)
            for attribute in element.attributes:
                visit_value(attribute.key)
                visit_value(attribute.value)
            for item in element.body:
                if isinstance(item, Slot):
                    found.append(item)
                elif isinstance(item, Text):
                    visit_value(item.value)
                elif isinstance(item, Nested):
                    visit(item.element)

    visit(node)
    return found


def split_bindings(args: Tuple[Any, ...], kwargs: Mapping[str, Any]) -> SlotBindings:
    """Build bindings from call arguments.

    A single positional :class:`SlotBindings` is used as is.
    """
    if len(args) == 1 and not kwargs and isinstance(args[0], SlotBindings):
        return args[0]
    return SlotBindings(args, kwargs)
