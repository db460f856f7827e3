"""Transitions: guarded, parameterized state changes.

A transition is a short-lived object built for one invocation. It receives
the entity as its first constructor argument, followed by whatever the
caller passes. Execution runs the guard (:meth:`Transition.can_transition`),
resolves the parameters of :meth:`Transition.handle` from a
:class:`~modelstates.kernel.dependencies.DependencyContainer`, calls the
handler and returns its result untouched.

Creating a transition
---------------------
.. code-block:: python

    class PayOrder(Transition):
        to_state = Paid

        def __init__(self, order: Order, amount: Decimal) -> None:
            super().__init__(order)
            self.amount = amount

        def can_transition(self) -> bool:
            return self.amount >= self.model.total

        def handle(self, mailer: Mailer) -> Order:
            self.model.state = Paid
            self.model.save()
            mailer.send_receipt(self.model)
            return self.model

    order.state.transition(PayOrder, Decimal("10.00"))

Nothing is rolled back when ``handle`` fails halfway, and no history is kept.
"""

from __future__ import annotations

import inspect
import typing
from typing import Any, ClassVar

from modelstates.kernel.config import get_config
from modelstates.kernel.dependencies import DependencyContainer, get_default_container
from modelstates.kernel.exceptions import (
    CannotTransitionError,
    DependencyResolutionError,
    ResolveError,
    UnresolvedTransitionError,
)
from modelstates.kernel.logging import get_logger
from modelstates.kernel.resolver import resolve_class

logger = get_logger(__name__)


class Transition:
    """Base class for transitions.

    Attributes
    ----------
    to_state : ClassVar
        Optional target state identifier. When set and the transition is run
        from a state instance, the family's transition graph must allow the
        move before the guard is consulted.
    """

    to_state: ClassVar[object | None] = None

    def __init__(self, model: Any, *args: Any, **kwargs: Any) -> None:
        self.model = model
        self.args = args
        self.kwargs = kwargs

    def can_transition(self) -> bool:
        """Guard evaluated before the handler runs. Defaults to allowing."""
        return True

    def handle(self, *args: Any, **kwargs: Any) -> Any:
        """Perform the state change. Subclasses must implement this."""
        raise NotImplementedError(f"{type(self).__name__} must implement handle()")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={type(self.model).__name__})"


class DefaultTransition(Transition):
    """Moves an entity field to a new state and saves the entity.

    Used by ``State.transition_to`` when no transition class is registered
    for the pair of states.
    """

    def __init__(self, model: Any, field: str, new_state: Any) -> None:
        super().__init__(model)
        self.field = field
        self.new_state = new_state

    def handle(self) -> Any:
        setattr(self.model, self.field, self.new_state)
        save = getattr(self.model, "save", None)
        if callable(save):
            save()
        return self.model


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def resolve_transition_class(identifier: object) -> type[Transition]:
    """Resolve a Transition subclass or its dotted import path.

    Raises
    ------
    UnresolvedTransitionError
        If the identifier does not name a Transition subclass
    """
    if isinstance(identifier, str):
        if not get_config().allow_import_paths:
            raise UnresolvedTransitionError(identifier, "import paths are disabled")
        try:
            identifier = resolve_class(identifier)
        except ResolveError as e:
            raise UnresolvedTransitionError(identifier, e.reason) from e

    if isinstance(identifier, type) and issubclass(identifier, Transition):
        return identifier
    raise UnresolvedTransitionError(identifier, "not a Transition subclass")


def make_transition(identifier: object, model: Any, *args: Any, **kwargs: Any) -> Transition:
    """Build a transition for *model*, or return a pre-built one unchanged."""
    if isinstance(identifier, Transition):
        if args or kwargs:
            raise TypeError("Arguments cannot be supplied together with a transition instance")
        return identifier
    transition_class = resolve_transition_class(identifier)
    return transition_class(model, *args, **kwargs)


# ---------------------------------------------------------------------------
# Handler parameters
# ---------------------------------------------------------------------------


def _type_hints(handler: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(handler)
    except (NameError, TypeError) as e:
        # Unresolvable forward references: fall back to name-based lookup
        logger.debug("Cannot evaluate annotations of {handler}: {error}", handler=handler, error=e)
        return {}


def resolve_handler_arguments(
    transition: Transition, container: DependencyContainer
) -> dict[str, Any]:
    """Resolve the keyword arguments for ``transition.handle``.

    Each parameter is looked up in *container* by its annotated type, then
    by its name. Parameters with a default are left to the default.

    Raises
    ------
    DependencyResolutionError
        If a required parameter cannot be resolved
    """
    handler = transition.handle
    owner = f"{type(transition).__qualname__}.handle"
    hints = _type_hints(handler)
    kwargs: dict[str, Any] = {}

    for name, param in inspect.signature(handler).parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            raise DependencyResolutionError(name, owner, "positional-only parameters cannot be injected")

        annotation = hints.get(name, param.annotation)
        if isinstance(annotation, type) and annotation in container:
            kwargs[name] = container.resolve(annotation)
        elif name in container:
            kwargs[name] = container.resolve(name)
        elif param.default is inspect.Parameter.empty:
            type_name = (
                getattr(annotation, "__name__", str(annotation))
                if annotation is not inspect.Parameter.empty
                else "unannotated"
            )
            raise DependencyResolutionError(name, owner, f"no binding for {type_name}")

    return kwargs


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def execute_transition(
    transition: Transition,
    *,
    from_state: Any = None,
    container: DependencyContainer | None = None,
) -> Any:
    """Run a transition: graph check, guard, parameter resolution, handler.

    Parameters
    ----------
    transition : Transition
        The transition to run
    from_state : State | None
        Current state of the entity. Required for the graph check of
        transitions that declare ``to_state``.
    container : DependencyContainer | None
        Source of handler parameters; the default container when omitted

    Returns
    -------
    Any
        Whatever ``handle`` returns

    Raises
    ------
    CannotTransitionError
        If the graph or the guard rejects the transition
    DependencyResolutionError
        If a handler parameter cannot be supplied
    """
    model = transition.model
    target = transition.to_state

    if from_state is not None and target is not None and not from_state.can_transition_to(target):
        raise CannotTransitionError(
            transition, model, f"'{from_state}' cannot transition to {target!r}"
        )

    if not transition.can_transition():
        logger.debug(
            "Guard rejected {transition} on {model}",
            transition=type(transition).__qualname__,
            model=type(model).__name__,
        )
        raise CannotTransitionError(transition, model)

    if container is None:
        container = get_default_container()
    kwargs = resolve_handler_arguments(transition, container)

    logger.debug(
        "Executing {transition} on {model}",
        transition=type(transition).__qualname__,
        model=type(model).__name__,
    )
    return transition.handle(**kwargs)
