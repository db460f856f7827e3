"""State registry: short names, state mappings and identifier resolution.

Every concrete state registers itself with its family when the class is
created. The *state mapping* of a family (short name → concrete class) is
computed once, from the family's explicit registration list when it has one
and from discovery otherwise, and then cached for the life of the process.
Cache entries are replaced whole, never mutated.
"""

from __future__ import annotations

import inspect
import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from modelstates.kernel.config import get_config
from modelstates.kernel.discovery import discover_sibling_modules
from modelstates.kernel.exceptions import (
    ConfigurationError,
    DuplicateStateNameError,
    NoStatesDeclaredError,
    ResolveError,
    UnresolvedStateError,
)
from modelstates.kernel.logging import get_logger
from modelstates.kernel.resolver import class_path, looks_like_import_path, resolve_class

if TYPE_CHECKING:
    from collections.abc import Mapping

    from modelstates.kernel.domain.state_config import StateConfig

logger = get_logger(__name__)

type StateMapping = Mapping[str, type[Any]]

# family → concrete subclasses in definition order
_registered: dict[type, list[type]] = {}

_mapping_cache: dict[type, MappingProxyType[str, type[Any]]] = {}
_config_cache: dict[type, StateConfig] = {}

_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_state_class(cls: type, family: type) -> None:
    """Record *cls* as a member of *family* (called from ``__init_subclass__``)."""
    members = _registered.setdefault(family, [])
    if cls is not family and cls not in members:
        members.append(cls)


def registered_members(family: type) -> list[type]:
    """Return concrete classes registered for *family*, in definition order."""
    return [cls for cls in _registered.get(family, []) if is_concrete_state(cls, family)]


def is_concrete_state(cls: type, family: type) -> bool:
    """Return True if *cls* is an instantiable member of *family*."""
    return (
        isinstance(cls, type)
        and cls is not family
        and issubclass(cls, family)
        and not inspect.isabstract(cls)
    )


# ---------------------------------------------------------------------------
# Short names
# ---------------------------------------------------------------------------


def _snake_case(name: str) -> str:
    return "_".join(word.lower() for word in _WORDS.findall(name))


def derive_short_name(cls: type, family: type) -> str:
    """Derive the default short name of *cls* from its class name.

    The family's trailing CamelCase word is stripped when the class name
    ends with it (``PaidState`` in ``PaymentState`` → ``paid``) and the rest
    is converted to snake_case.
    """
    class_name = cls.__name__
    family_words = _WORDS.findall(family.__name__)
    if family_words:
        suffix = family_words[-1]
        if class_name.endswith(suffix) and len(class_name) > len(suffix):
            class_name = class_name[: -len(suffix)]
    return _snake_case(class_name)


def short_name_of(cls: type, family: type) -> str:
    """Return the canonical short name of *cls*: its own ``name`` or the derived one."""
    explicit = cls.__dict__.get("name")
    if isinstance(explicit, str) and explicit:
        return explicit
    return derive_short_name(cls, family)


# ---------------------------------------------------------------------------
# Family configuration
# ---------------------------------------------------------------------------


def get_family_config(family: type) -> StateConfig:
    """Return the cached :class:`StateConfig` declared by *family*."""
    config = _config_cache.get(family)
    if config is None:
        config = family.config()
        if config.base_state_class is not family:
            raise ConfigurationError(
                family.__qualname__,
                f"config() must describe the family itself, got {config.base_state_class!r}",
            )
        _config_cache[family] = config
    return config


# ---------------------------------------------------------------------------
# State mapping
# ---------------------------------------------------------------------------


def _declared_member(identifier: object, family: type) -> type:
    """Resolve an entry of an explicit registration list (class or dotted path)."""
    if isinstance(identifier, str):
        try:
            identifier = resolve_class(identifier)
        except ResolveError as e:
            raise UnresolvedStateError(identifier, family) from e
    if not isinstance(identifier, type) or not is_concrete_state(identifier, family):
        raise UnresolvedStateError(identifier, family)
    return identifier


def _discover(family: type) -> list[type]:
    if get_config().auto_discover_modules:
        modules = discover_sibling_modules(family.__module__)
    else:
        modules = [family.__module__]

    members = registered_members(family)
    ordered: list[type] = []
    for module_name in modules:
        ordered.extend(cls for cls in members if cls.__module__ == module_name)
    ordered.extend(cls for cls in members if cls not in ordered)
    return ordered


def get_state_mapping(family: type) -> StateMapping:
    """Return the ordered short-name → class mapping of *family*.

    Raises
    ------
    NoStatesDeclaredError
        If the family has no explicit states and none are discovered
    DuplicateStateNameError
        If two concrete states share a short name
    """
    cached = _mapping_cache.get(family)
    if cached is not None:
        return cached

    declared = get_family_config(family).registered_states
    if declared:
        classes = [_declared_member(identifier, family) for identifier in declared]
        source = "registered"
    else:
        classes = _discover(family)
        source = "discovered"

    if not classes:
        raise NoStatesDeclaredError(family)

    mapping: dict[str, type] = {}
    for cls in classes:
        name = short_name_of(cls, family)
        existing = mapping.get(name)
        if existing is not None and existing is not cls:
            raise DuplicateStateNameError(family, name, [existing, cls])
        mapping[name] = cls

    frozen = MappingProxyType(mapping)
    _mapping_cache[family] = frozen
    logger.debug(
        "Built state mapping for {family} ({source}): {names}",
        family=family.__qualname__,
        source=source,
        names=list(mapping),
    )
    return frozen


def all_states(family: type) -> StateMapping:
    """Alias of :func:`get_state_mapping` for enumeration callers."""
    return get_state_mapping(family)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_state_class(identifier: object, family: type) -> type[Any]:
    """Resolve *identifier* to a concrete state class of *family*.

    Accepted identifiers: a concrete class of the family, a state instance,
    a short name, a dotted import path, or a 1-based ordinal into the state
    mapping.

    Raises
    ------
    UnresolvedStateError
        If nothing in the family matches
    """
    if isinstance(identifier, type):
        if is_concrete_state(identifier, family):
            return identifier
        raise UnresolvedStateError(identifier, family)

    if isinstance(identifier, family):
        return type(identifier)

    mapping = get_state_mapping(family)

    if isinstance(identifier, str):
        match = mapping.get(identifier)
        if match is not None:
            return match
        if looks_like_import_path(identifier):
            for cls in mapping.values():
                if class_path(cls) == identifier:
                    return cls
            if get_config().allow_import_paths:
                try:
                    cls = resolve_class(identifier)
                except ResolveError as e:
                    raise UnresolvedStateError(identifier, family, list(mapping)) from e
                if is_concrete_state(cls, family):
                    return cls
    elif isinstance(identifier, int) and not isinstance(identifier, bool):
        if 1 <= identifier <= len(mapping):
            return list(mapping.values())[identifier - 1]

    raise UnresolvedStateError(identifier, family, list(mapping))


def ordinal_of(cls: type, family: type) -> int:
    """Return the 1-based position of *cls* in the mapping of *family*."""
    for position, member in enumerate(get_state_mapping(family).values(), start=1):
        if member is cls:
            return position
    raise UnresolvedStateError(cls, family, list(get_state_mapping(family)))


# ---------------------------------------------------------------------------
# Cache control
# ---------------------------------------------------------------------------


def clear_state_cache(family: type | None = None) -> None:
    """Drop cached mappings and configurations (all, or one family)."""
    if family is None:
        _mapping_cache.clear()
        _config_cache.clear()
        return
    _mapping_cache.pop(family, None)
    _config_cache.pop(family, None)
