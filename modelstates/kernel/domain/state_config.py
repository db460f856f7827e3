"""Domain model for the configuration of one state family.

A family returns its configuration from ``config()``; the result is built
once and cached (see :func:`modelstates.kernel.registry.get_family_config`).

Example::

    class OrderState(State):
        @classmethod
        def config(cls) -> StateConfig:
            return (
                StateConfig(cls)
                .default(Pending)
                .allow_transition(Pending, [Paid, Cancelled])
                .allow_transition(Paid, Shipped, ShipOrder)
            )

Graph policy
------------
When the family declares any ``allow_transition`` the graph is exactly the
declared adjacency and states without an entry are terminal. Without
declarations each concrete state's ``transitions_to`` is used: ``None``
means "any other state of the family", a sequence lists the reachable
states and an empty sequence makes the state terminal.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

from modelstates.kernel import registry
from modelstates.kernel.exceptions import UnresolvedStateError
from modelstates.kernel.transition import Transition, resolve_transition_class

if TYPE_CHECKING:
    from collections.abc import Mapping


def _as_list(value: object) -> list[object]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


@dataclass(slots=True)
class _Graph:
    """Resolved adjacency and per-pair transition classes."""

    edges: Mapping[type, frozenset[type]]
    transition_classes: Mapping[tuple[type, type], type[Transition]]


@dataclass(slots=True)
class StateConfig:
    """Default state, registered states and transition graph of a family."""

    base_state_class: type
    default_state: object | None = None
    registered_states: list[object] = field(default_factory=list)
    declared_transitions: list[tuple[object, object, object | None]] = field(default_factory=list)
    _graph: _Graph | None = field(default=None, repr=False, compare=False)

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def default(self, identifier: object) -> Self:
        """Declare the state assigned to new entities."""
        self.default_state = identifier
        self._graph = None
        return self

    def register_state(self, *identifiers: object) -> Self:
        """Register concrete states explicitly (classes or dotted paths), in order."""
        for identifier in identifiers:
            self.registered_states.extend(_as_list(identifier))
        self._graph = None
        return self

    def register_states(self, identifiers: Iterable[object]) -> Self:
        """Register an iterable of concrete states explicitly."""
        return self.register_state(*identifiers)

    def allow_transition(
        self, from_: object, to: object, transition: object | None = None
    ) -> Self:
        """Allow moving from one state (or several) to another (or several).

        Parameters
        ----------
        from_ : identifier or list of identifiers
            Source state(s)
        to : identifier or list of identifiers
            Target state(s)
        transition : Transition subclass or dotted path, optional
            Transition used by ``State.transition_to`` for these pairs
        """
        for source in _as_list(from_):
            for target in _as_list(to):
                self.declared_transitions.append((source, target, transition))
        self._graph = None
        return self

    def allow_transitions(self, pairs: Iterable[tuple[object, ...]]) -> Self:
        """Allow several ``(from, to)`` or ``(from, to, transition)`` pairs."""
        for pair in pairs:
            self.allow_transition(*pair)
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_declared_transitions(self) -> bool:
        return bool(self.declared_transitions)

    def resolve(self, identifier: object) -> type[Any]:
        """Resolve *identifier* within this family."""
        return registry.resolve_state_class(identifier, self.base_state_class)

    def get_default_state_class(self) -> type[Any] | None:
        """Return the resolved default state class, or None."""
        if self.default_state is None:
            return None
        return self.resolve(self.default_state)

    def state_mapping(self) -> Mapping[str, type[Any]]:
        return registry.get_state_mapping(self.base_state_class)

    def transitionable_states(self, from_state: object) -> list[str]:
        """Short names reachable from *from_state*, in mapping order, excluding itself."""
        source = self.resolve(from_state)
        reachable = self._build_graph().edges.get(source, frozenset())
        return [
            name
            for name, cls in self.state_mapping().items()
            if cls in reachable and cls is not source
        ]

    def can_transition_to(self, from_state: object, to: object) -> bool:
        """Return True if *to* is reachable from *from_state*.

        An unresolvable *to* is not a valid target and yields False.
        """
        try:
            target = self.resolve(to)
        except UnresolvedStateError:
            return False
        return self.is_valid_transition(self.resolve(from_state), target)

    def is_valid_transition(self, from_class: type, to_class: type) -> bool:
        """Check an edge between two resolved classes."""
        if from_class is to_class:
            return False
        return to_class in self._build_graph().edges.get(from_class, frozenset())

    def transition_class_for(self, from_state: object, to: object) -> type[Transition] | None:
        """Return the transition class registered for a pair of states, if any."""
        key = (self.resolve(from_state), self.resolve(to))
        return self._build_graph().transition_classes.get(key)

    def edges(self) -> Mapping[type, frozenset[type]]:
        """Return the resolved adjacency of the family."""
        return self._build_graph().edges

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def _build_graph(self) -> _Graph:
        if self._graph is not None:
            return self._graph

        members = list(self.state_mapping().values())
        edges: dict[type, set[type]] = {cls: set() for cls in members}
        transition_classes: dict[tuple[type, type], type[Transition]] = {}

        if self.declared_transitions:
            for source, target, transition in self.declared_transitions:
                from_class = self.resolve(source)
                to_class = self.resolve(target)
                edges.setdefault(from_class, set()).add(to_class)
                if transition is not None:
                    transition_classes[(from_class, to_class)] = resolve_transition_class(
                        transition
                    )
        else:
            for cls in members:
                targets = getattr(cls, "transitions_to", None)
                if targets is None:
                    edges[cls] = {other for other in members if other is not cls}
                else:
                    edges[cls] = {self.resolve(target) for target in _as_list(targets)}

        graph = _Graph(
            edges=MappingProxyType({cls: frozenset(targets) for cls, targets in edges.items()}),
            transition_classes=MappingProxyType(transition_classes),
        )
        self._graph = graph
        return graph
