"""Core exception hierarchy for modelstates.

All library errors inherit from ModelStatesError so callers can catch
everything the state layer raises in one place. CannotTransitionError is the
only error that signals an expected, recoverable condition; the others point
at misconfiguration or programming defects.
"""

from __future__ import annotations

from typing import Any

# ============================================================================
# Base Exception
# ============================================================================


class ModelStatesError(Exception):
    """Base exception for all modelstates errors.

    Catch this to handle every error raised by the state layer.
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(ModelStatesError):
    """Raised when library or state-family configuration is invalid.

    Examples
    --------
    Example usage::

        raise ConfigurationError("PaymentState", "default state is not a family member")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ResolveError(ModelStatesError):
    """Raised when a dotted module path cannot be resolved."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Cannot resolve '{kind}': {reason}")


# ============================================================================
# State Resolution Errors
# ============================================================================


def _family_name(family: Any) -> str:
    return getattr(family, "__qualname__", None) or str(family)


class UnresolvedStateError(ModelStatesError):
    """Raised when an identifier does not map to a concrete state of a family.

    Examples
    --------
    Example usage::

        raise UnresolvedStateError("shipped", PaymentState, ["pending", "paid"])
    """

    def __init__(
        self, identifier: object, family: type, available: list[str] | None = None
    ) -> None:
        """Initialize unresolved state error.

        Args
        ----
            identifier: The identifier that failed to resolve
            family: The state family that was searched
            available: Short names known to the family (optional)
        """
        msg = f"Cannot resolve state {identifier!r} in family '{_family_name(family)}'"
        if available:
            msg += f". Available: {', '.join(available[:10])}"
            if len(available) > 10:
                msg += f" ... and {len(available) - 10} more"
        super().__init__(msg)
        self.identifier = identifier
        self.family = family
        self.available = available


class NoStatesDeclaredError(ModelStatesError):
    """Raised when a family has neither registered nor discoverable states."""

    def __init__(self, family: type) -> None:
        super().__init__(
            f"State family '{_family_name(family)}' declares no states and none "
            "could be discovered"
        )
        self.family = family


class DuplicateStateNameError(ModelStatesError):
    """Raised when two concrete states of one family share a short name."""

    def __init__(self, family: type, name: str, classes: list[type]) -> None:
        names = ", ".join(_family_name(c) for c in classes)
        super().__init__(
            f"Short name {name!r} is used by more than one state of "
            f"'{_family_name(family)}': {names}"
        )
        self.family = family
        self.name = name
        self.classes = classes


# ============================================================================
# Transition Errors
# ============================================================================


class CannotTransitionError(ModelStatesError):
    """Raised when a transition is rejected by its guard or by the graph.

    This is an expected condition: the entity is left untouched and the
    caller decides what to do next. It is never retried automatically.
    """

    def __init__(self, transition: object, model: object, reason: str | None = None) -> None:
        """Initialize cannot-transition error.

        Args
        ----
            transition: Transition class or instance that was rejected
            model: The entity the transition was attempted on
            reason: Optional explanation
        """
        transition_name = (
            transition.__name__ if isinstance(transition, type) else type(transition).__name__
        )
        msg = f"Transition '{transition_name}' is not allowed on {model!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.transition = transition
        self.model = model
        self.reason = reason


class UnresolvedTransitionError(ModelStatesError):
    """Raised when a transition identifier does not name a Transition class."""

    def __init__(self, identifier: object, reason: str) -> None:
        super().__init__(f"Cannot resolve transition {identifier!r}: {reason}")
        self.identifier = identifier
        self.reason = reason


class DependencyResolutionError(ModelStatesError):
    """Raised when a transition handler parameter cannot be supplied.

    Examples
    --------
    Example usage::

        raise DependencyResolutionError("mailer", "PayTransition.handle", "no binding")
    """

    def __init__(self, parameter: str, owner: str, reason: str) -> None:
        """Initialize dependency resolution error.

        Args
        ----
            parameter: Name of the handler parameter
            owner: Qualified name of the handler
            reason: Why it could not be resolved
        """
        super().__init__(f"Cannot resolve parameter '{parameter}' of {owner}: {reason}")
        self.parameter = parameter
        self.owner = owner
        self.reason = reason
