"""State base class.

A *state family* is a direct subclass of :class:`State`; its concrete
(non-abstract) subclasses are the states an entity field can hold. A state
instance is bound to the entity that holds it and answers identity and
transition questions for it.

Defining a family
-----------------
.. code-block:: python

    class PaymentState(State):
        @classmethod
        def config(cls) -> StateConfig:
            return StateConfig(cls).default(Pending).allow_transition(Pending, [Paid, Failed])

        def color(self) -> str:
            raise NotImplementedError

    class Pending(PaymentState):
        def color(self) -> str:
            return "orange"

    class Paid(PaymentState):
        name = "paid"

        def color(self) -> str:
            return "green"

Concrete states register themselves with their family when the class is
created, so a family without ``register_state`` finds every state defined in
its module and in the modules alongside it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

from modelstates.kernel import registry
from modelstates.kernel.domain.state_config import StateConfig
from modelstates.kernel.exceptions import (
    CannotTransitionError,
    ConfigurationError,
    UnresolvedStateError,
)
from modelstates.kernel.transition import (
    DefaultTransition,
    Transition,
    execute_transition,
    make_transition,
)


class State:
    """Base class for state families and their concrete states.

    Attributes
    ----------
    name : ClassVar[str | None]
        Explicit short name. When unset, one is derived from the class name.
    transitions_to : ClassVar[Sequence | None]
        States reachable from this one when the family declares no
        transitions itself. ``None`` allows every other state, an empty
        sequence makes the state terminal.
    model : Any
        Entity holding the state. Read it from state logic, do not own it.
    field : str | None
        Name of the entity attribute holding the state, when known.
    """

    name: ClassVar[str | None] = None
    transitions_to: ClassVar[Sequence[object] | None] = None

    _family: ClassVar[type[State]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if State in cls.__bases__:
            cls._family = cls
        registry.register_state_class(cls, cls._family)

    def __init__(self, model: Any = None, field: str | None = None) -> None:
        self.model = model
        self.field = field

    # ------------------------------------------------------------------
    # Family-level API
    # ------------------------------------------------------------------

    @classmethod
    def family(cls) -> type[State]:
        """Return the state family *cls* belongs to."""
        try:
            return cls._family
        except AttributeError:
            raise ConfigurationError(cls.__qualname__, "State itself is not a state family") from None

    @classmethod
    def config(cls) -> StateConfig:
        """Declare the family configuration. Override on the family."""
        return StateConfig(cls)

    @classmethod
    def get_config(cls) -> StateConfig:
        """Return the cached configuration of the family."""
        return registry.get_family_config(cls.family())

    @classmethod
    def get_state_mapping(cls) -> Mapping[str, type[State]]:
        """Return the ordered short-name → class mapping of the family."""
        return registry.get_state_mapping(cls.family())

    @classmethod
    def all(cls) -> Mapping[str, type[State]]:
        """Alias of :meth:`get_state_mapping`."""
        return registry.all_states(cls.family())

    @classmethod
    def resolve_state_class(cls, identifier: object) -> type[State]:
        """Resolve a class, short name, dotted path or 1-based ordinal."""
        return registry.resolve_state_class(identifier, cls.family())

    @classmethod
    def make(cls, identifier: object, model: Any, field: str | None = None) -> State:
        """Resolve *identifier* and build the state bound to *model*.

        Raises
        ------
        UnresolvedStateError
            If the identifier does not match a state of the family
        """
        state_class = cls.resolve_state_class(identifier)
        return state_class(model, field)

    @classmethod
    def short_name(cls) -> str:
        """Return the canonical, storable name of this state."""
        return registry.short_name_of(cls, cls.family())

    @classmethod
    def ordinal(cls) -> int:
        """Return the 1-based position of this state in the family mapping."""
        return registry.ordinal_of(cls, cls.family())

    @classmethod
    def default_state(cls) -> type[State] | None:
        """Return the family's default state class, if one is declared."""
        return cls.get_config().get_default_state_class()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def equals(self, other: object) -> bool:
        """Return True if *other* denotes the same concrete state.

        *other* may be a state instance (bound to any entity), a state class,
        a short name, a dotted path or an ordinal. Identifiers that do not
        resolve are never equal.
        """
        if isinstance(other, State):
            return type(other) is type(self)
        try:
            return self.resolve_state_class(other) is type(self)
        except UnresolvedStateError:
            return False

    def is_state(self, identifier: object) -> bool:
        """Identifier-based equality check."""
        return self.equals(identifier)

    def is_one_of(self, *identifiers: object) -> bool:
        """Return True if any identifier denotes this state."""
        return any(self.equals(identifier) for identifier in identifiers)

    def __eq__(self, other: object) -> bool:
        # Short names and other identifiers go through equals()
        if isinstance(other, (State, type)):
            return self.equals(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(type(self))

    def __str__(self) -> str:
        return self.short_name()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.short_name()!r}>"

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transitionable_states(self) -> list[str]:
        """Short names of the states reachable from this one."""
        return self.get_config().transitionable_states(type(self))

    def can_transition_to(self, identifier: object) -> bool:
        """Return True if the graph allows moving to *identifier*.

        Unresolvable identifiers return False instead of raising.
        """
        return self.get_config().can_transition_to(type(self), identifier)

    def transition(self, transition: object, *args: Any, **kwargs: Any) -> Any:
        """Run a transition on the entity holding this state.

        Parameters
        ----------
        transition : Transition subclass, dotted path or Transition instance
            The transition to run. Classes are constructed with the entity
            first, then ``*args`` and ``**kwargs``.

        Returns
        -------
        Any
            Whatever the transition handler returns

        Raises
        ------
        CannotTransitionError
            If the transition graph or the guard rejects the transition
        DependencyResolutionError
            If a handler parameter cannot be supplied
        """
        instance = make_transition(transition, self.model, *args, **kwargs)
        return execute_transition(instance, from_state=self)

    def transition_to(self, identifier: object, *args: Any, **kwargs: Any) -> Any:
        """Move the entity to another state of the family.

        Uses the transition class registered for the pair when there is one
        (constructed with the entity, ``*args`` and ``**kwargs``), otherwise
        :class:`DefaultTransition`.
        """
        config = self.get_config()
        target = config.resolve(identifier)
        transition_class = config.transition_class_for(type(self), target)

        if not config.is_valid_transition(type(self), target):
            raise CannotTransitionError(
                transition_class or DefaultTransition,
                self.model,
                f"'{self}' cannot transition to '{target.short_name()}'",
            )

        transition: Transition
        if transition_class is not None:
            transition = transition_class(self.model, *args, **kwargs)
        else:
            if args or kwargs:
                raise TypeError(
                    f"No transition class is registered from '{self}' to "
                    f"'{target.short_name()}'; extra arguments are not accepted"
                )
            field = self._holding_field()
            transition = DefaultTransition(self.model, field, target(self.model, field))
        return execute_transition(transition)

    def _holding_field(self) -> str:
        if self.field is not None:
            return self.field
        state_fields = getattr(type(self.model), "state_fields", None)
        if callable(state_fields):
            candidates = [
                name
                for name, descriptor in state_fields().items()
                if descriptor.family.family() is self.family()
            ]
            if len(candidates) == 1:
                return candidates[0]
        raise ConfigurationError(
            type(self).__qualname__,
            "cannot determine which entity field holds this state; pass field= to make()",
        )
