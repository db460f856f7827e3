"""Entity binding: default states, state enumeration and query translation.

Entities mix in :class:`HasStates` and declare their state fields with
:class:`~modelstates.kernel.fields.StateField`. Defaults are applied by an
explicit call (:meth:`HasStates.apply_default_states`) or by the
:meth:`HasStates.create` factory, never by a hidden hook.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

from modelstates.kernel.exceptions import ConfigurationError, UnresolvedStateError
from modelstates.kernel.fields import StateField
from modelstates.kernel.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from modelstates.kernel.domain.state_config import StateConfig

logger = get_logger(__name__)

# entity class → {field: StateField}
_field_cache: dict[type, Mapping[str, StateField]] = {}


@runtime_checkable
class SupportsStateQuery(Protocol):
    """Query builder primitives used by the state query scopes."""

    def where_in(self, column: str, values: list[str]) -> Any:
        """Restrict *column* to *values*."""
        ...

    def where_not_in(self, column: str, values: list[str]) -> Any:
        """Exclude *values* from *column*."""
        ...


def _as_identifiers(states: object) -> list[object]:
    if isinstance(states, (list, tuple, set, frozenset)):
        return list(states)
    return [states]


class HasStates:
    """Mixin for entities with one or more state fields."""

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @classmethod
    def state_fields(cls) -> Mapping[str, StateField]:
        """Return ``{field name: StateField}`` declared on the class and its bases."""
        cached = _field_cache.get(cls)
        if cached is None:
            fields: dict[str, StateField] = {}
            for klass in reversed(cls.__mro__):
                for name, value in vars(klass).items():
                    if isinstance(value, StateField):
                        fields[name] = value
            cached = MappingProxyType(fields)
            _field_cache[cls] = cached
        return cached

    @classmethod
    def get_state_configs(cls) -> dict[str, StateConfig]:
        """Return the configuration of every state field."""
        return {name: field.family.get_config() for name, field in cls.state_fields().items()}

    @classmethod
    def _state_config_for(cls, field: str) -> StateConfig:
        descriptor = cls.state_fields().get(field)
        if descriptor is None:
            raise ConfigurationError(cls.__qualname__, f"'{field}' is not a state field")
        return descriptor.family.get_config()

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    @classmethod
    def get_states(cls) -> dict[str, list[str]]:
        """Return the short names of every state field, in mapping order."""
        return {
            name: list(config.state_mapping()) for name, config in cls.get_state_configs().items()
        }

    @classmethod
    def get_states_for(cls, field: str) -> list[str]:
        """Return the short names of one field; empty for unknown fields."""
        return cls.get_states().get(field, [])

    @classmethod
    def get_default_states(cls) -> dict[str, str | None]:
        """Return the default short name of every state field (None when undeclared)."""
        defaults: dict[str, str | None] = {}
        for name, config in cls.get_state_configs().items():
            default_class = config.get_default_state_class()
            defaults[name] = default_class.short_name() if default_class is not None else None
        return defaults

    @classmethod
    def get_default_state_for(cls, field: str) -> str | None:
        """Return the default short name of one field, or None."""
        return cls.get_default_states().get(field)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def apply_default_states(self) -> Self:
        """Assign declared defaults to every unset state field.

        Fields that already hold a value, and fields whose family declares
        no default, are left untouched.
        """
        for name, descriptor in type(self).state_fields().items():
            if descriptor.get_raw(self) is not None:
                continue
            default_class = descriptor.family.get_config().get_default_state_class()
            if default_class is None:
                continue
            setattr(self, name, default_class)
        return self

    @classmethod
    def create(cls, *args: Any, **attributes: Any) -> Self:
        """Construct an entity and apply default states."""
        return cls(*args, **attributes).apply_default_states()

    # ------------------------------------------------------------------
    # Query translation
    # ------------------------------------------------------------------

    @classmethod
    def get_state_names_for_query(cls, field: str, states: object) -> list[str]:
        """Translate identifiers into the short names to filter *field* on.

        Identifiers may mix classes, short names, dotted paths and ordinals.
        Those that do not resolve are dropped; duplicates collapse.
        """
        config = cls._state_config_for(field)
        matched: set[type] = set()
        for identifier in _as_identifiers(states):
            try:
                matched.add(config.resolve(identifier))
            except UnresolvedStateError:
                logger.debug(
                    "Ignoring unknown state {identifier!r} in filter on {field}",
                    identifier=identifier,
                    field=field,
                )
        return [name for name, cls_ in config.state_mapping().items() if cls_ in matched]

    @classmethod
    def where_state(cls, query: SupportsStateQuery, column: str, states: object) -> Any:
        """Restrict *query* to rows whose *column* holds one of *states*.

        *column* may be qualified (``"orders.state"``); the state field is
        its last segment.
        """
        field = column.rsplit(".", 1)[-1]
        return query.where_in(column, cls.get_state_names_for_query(field, states))

    @classmethod
    def where_not_state(cls, query: SupportsStateQuery, column: str, states: object) -> Any:
        """Exclude rows whose *column* holds one of *states*."""
        field = column.rsplit(".", 1)[-1]
        return query.where_not_in(column, cls.get_state_names_for_query(field, states))


def clear_entity_cache() -> None:
    """Forget the state fields collected per entity class."""
    _field_cache.clear()
