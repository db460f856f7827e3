"""Module path resolver for state and transition classes.

Persisted state values and transition identifiers may be given as full
module paths. This module turns such a path into the class it names using
Python's import system.

Examples
--------
>>> from modelstates.kernel.resolver import resolve_class
>>> resolve_class("modelstates.kernel.transition.DefaultTransition")  # doctest: +SKIP
<class 'modelstates.kernel.transition.DefaultTransition'>
"""

from __future__ import annotations

import importlib
import re
from typing import Any

from modelstates.kernel.exceptions import ResolveError

_DOTTED_PATH = re.compile(r"^[A-Za-z_][\w]*(\.[A-Za-z_][\w]*)+$")


def looks_like_import_path(value: str) -> bool:
    """Return True if *value* has the shape ``package.module.ClassName``."""
    return bool(_DOTTED_PATH.match(value))


def class_path(cls: type) -> str:
    """Return the dotted import path of *cls*."""
    return f"{cls.__module__}.{cls.__qualname__}"


def resolve_class(kind: str) -> type[Any]:
    """Resolve a dotted path to a Python class.

    Nested classes are supported (``"app.models.Order.Paid"``): the longest
    importable module prefix is imported and the rest is walked as
    attributes.

    Parameters
    ----------
    kind : str
        Full module path to the class

    Returns
    -------
    type
        The resolved class

    Raises
    ------
    ResolveError
        If the path is malformed, the module cannot be imported, or the
        target is not a class
    """
    if not looks_like_import_path(kind):
        raise ResolveError(kind, "Invalid format - expected 'module.path.ClassName'")

    parts = kind.split(".")
    module = None
    attr_parts: list[str] = []
    for split in range(len(parts) - 1, 0, -1):
        module_path = ".".join(parts[:split])
        try:
            module = importlib.import_module(module_path)
        except ModuleNotFoundError as e:
            # Only swallow "this prefix is not a module"; a missing import inside it is real
            if e.name is not None and not module_path.startswith(e.name):
                raise ResolveError(kind, f"Failed to import '{module_path}': {e}") from e
            continue
        except ImportError as e:
            raise ResolveError(kind, f"Failed to import '{module_path}': {e}") from e
        except Exception as e:
            raise ResolveError(
                kind, f"Importing '{module_path}' raised {type(e).__name__}: {e}"
            ) from e
        attr_parts = parts[split:]
        break

    if module is None:
        raise ResolveError(kind, f"Module '{parts[0]}' not found")

    target: Any = module
    for attr in attr_parts:
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            available = [name for name in dir(target) if not name.startswith("_")]
            raise ResolveError(
                kind,
                f"'{attr}' not found in '{getattr(target, '__name__', target)}'. "
                f"Available: {', '.join(available[:10])}",
            ) from e

    if not isinstance(target, type):
        raise ResolveError(kind, f"'{attr_parts[-1]}' is not a class (got {type(target).__name__})")

    return target
