"""Dependency container for transition handler parameters.

Transition handlers receive collaborators (mailers, clocks, repositories,
...) as parameters of their ``handle`` method. The container maps a
parameter's annotated type, or its name, to the value to pass.

Example
-------
.. code-block:: python

    container = DependencyContainer()
    container.bind(Mailer, SmtpMailer())
    container.bind_factory(Clock, SystemClock)
    container.bind("currency", "EUR")

    set_default_container(container)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from collections.abc import Callable

type DependencyKey = type[Any] | str


class DependencyContainer:
    """Maps types or parameter names to values or factories.

    Factories are called on every resolution; use :meth:`bind` for shared
    instances.
    """

    def __init__(self) -> None:
        self._values: dict[DependencyKey, Any] = {}
        self._factories: dict[DependencyKey, Callable[[], Any]] = {}

    def bind(self, key: DependencyKey, value: Any) -> Self:
        """Register a value for a type or parameter name."""
        self._factories.pop(key, None)
        self._values[key] = value
        return self

    def bind_factory(self, key: DependencyKey, factory: Callable[[], Any]) -> Self:
        """Register a zero-argument factory for a type or parameter name."""
        self._values.pop(key, None)
        self._factories[key] = factory
        return self

    def unbind(self, key: DependencyKey) -> bool:
        """Remove a binding. Returns True if one existed."""
        found = key in self._values or key in self._factories
        self._values.pop(key, None)
        self._factories.pop(key, None)
        return found

    def has(self, key: DependencyKey) -> bool:
        """Return True if *key* can be resolved."""
        return key in self._values or key in self._factories

    def resolve(self, key: DependencyKey) -> Any:
        """Return the value bound to *key*.

        Raises
        ------
        LookupError
            If nothing is bound to *key*
        """
        if key in self._values:
            return self._values[key]
        if key in self._factories:
            return self._factories[key]()
        raise LookupError(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values or key in self._factories

    def __len__(self) -> int:
        return len(self._values) + len(self._factories)


_default_container = DependencyContainer()


def get_default_container() -> DependencyContainer:
    """Return the process-wide container used when none is passed explicitly."""
    return _default_container


def set_default_container(container: DependencyContainer) -> None:
    """Replace the process-wide container."""
    global _default_container
    _default_container = container
