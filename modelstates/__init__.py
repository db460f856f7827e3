"""modelstates: state fields and guarded transitions for domain entities.

An entity field holds one state of a closed family of state classes. Each
state can carry its own behaviour; transitions move the entity between
states with a graph check, a guard and a handler.

Quick start::

    from modelstates import HasStates, State, StateConfig, StateField

    class OrderState(State):
        @classmethod
        def config(cls) -> StateConfig:
            return StateConfig(cls).default(Pending).allow_transition(Pending, Paid)

    class Pending(OrderState): ...
    class Paid(OrderState): ...

    class Order(HasStates):
        state = StateField(OrderState)

    order = Order.create()
    order.state.transition_to(Paid)
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("modelstates")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts

from modelstates.kernel import (
    CannotTransitionError,
    ConfigurationError,
    DefaultTransition,
    DependencyContainer,
    DependencyResolutionError,
    DuplicateStateNameError,
    HasStates,
    ModelStatesError,
    NoStatesDeclaredError,
    State,
    StateConfig,
    StateField,
    SupportsStateQuery,
    Transition,
    UnresolvedStateError,
    UnresolvedTransitionError,
    clear_entity_cache,
    clear_state_cache,
    configure_logging,
    execute_transition,
    get_default_container,
    resolve_state_class,
    set_default_container,
)
from modelstates.kernel.discovery import clear_discovery_cache


def clear_caches() -> None:
    """Drop cached state mappings, family configurations, entity fields and module listings."""
    clear_state_cache()
    clear_entity_cache()
    clear_discovery_cache()


__all__ = [
    "CannotTransitionError",
    "ConfigurationError",
    "DefaultTransition",
    "DependencyContainer",
    "DependencyResolutionError",
    "DuplicateStateNameError",
    "HasStates",
    "ModelStatesError",
    "NoStatesDeclaredError",
    "State",
    "StateConfig",
    "StateField",
    "SupportsStateQuery",
    "Transition",
    "UnresolvedStateError",
    "UnresolvedTransitionError",
    "__version__",
    "clear_caches",
    "configure_logging",
    "execute_transition",
    "get_default_container",
    "resolve_state_class",
    "set_default_container",
]
