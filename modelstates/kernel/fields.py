"""Attribute casting between stored short names and state instances."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, overload

if TYPE_CHECKING:
    from modelstates.kernel.state import State


class StateField:
    """Descriptor exposing a stored short name as a state instance.

    The persisted representation lives in a backing attribute (``_<name>``
    by default, or *attribute*), which may be a plain attribute or a mapped
    ORM column. Reading returns a state bound to the entity, or ``None``
    while unset; writing accepts anything the family can resolve and stores
    the canonical short name.

    Example
    -------
    .. code-block:: python

        class Order(HasStates):
            state = StateField(OrderState)

        order.state = "paid"
        order.state.equals(Paid)  # True
        order._state              # "paid"
    """

    def __init__(self, family: type[State], *, attribute: str | None = None) -> None:
        self.family = family
        self.attribute = attribute
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        if self.attribute is None:
            self.attribute = f"_{name}"

    @overload
    def __get__(self, instance: None, owner: type) -> StateField: ...

    @overload
    def __get__(self, instance: object, owner: type) -> State | None: ...

    def __get__(self, instance: object | None, owner: type) -> StateField | State | None:
        if instance is None:
            return self
        return self.deserialize(self.get_raw(instance), instance)

    def __set__(self, instance: object, value: Any) -> None:
        setattr(instance, self._attribute, self.serialize(value))

    def get_raw(self, instance: object) -> Any:
        """Return the stored representation without casting."""
        return getattr(instance, self._attribute, None)

    def serialize(self, value: Any) -> str | None:
        """Convert a state, class or identifier to its stored short name.

        Raises
        ------
        UnresolvedStateError
            If *value* does not resolve within the family
        """
        if value is None:
            return None
        return self.family.resolve_state_class(value).short_name()

    def deserialize(self, raw: Any, instance: object) -> State | None:
        """Convert a stored value back to a state bound to *instance*."""
        if raw is None:
            return None
        return self.family.make(raw, instance, self.name)

    @property
    def _attribute(self) -> str:
        if self.attribute is None:
            raise AttributeError("StateField used outside of a class body")
        return self.attribute

    def __repr__(self) -> str:
        return f"StateField({self.family.__qualname__}, attribute={self.attribute!r})"
