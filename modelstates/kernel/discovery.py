"""Sibling module discovery for state families.

A family that does not register its states explicitly gets them collected
from the modules that live next to it. This module finds those modules with
``pkgutil`` and imports them so their state classes register themselves.

Examples
--------
>>> from modelstates.kernel.discovery import discover_sibling_modules
>>> discover_sibling_modules("app.states.payment")  # doctest: +SKIP
['app.states.payment', 'app.states.failed', 'app.states.paid']
"""

from __future__ import annotations

import importlib
import pkgutil
import sys
from functools import lru_cache

from modelstates.kernel.logging import get_logger

logger = get_logger(__name__)


def alongside_package(module_name: str) -> str | None:
    """Return the package whose modules count as "alongside" *module_name*.

    A family defined in a package ``__init__`` owns that package; a family
    defined in a plain module shares its parent package. Top-level modules
    have no package to scan.
    """
    module = sys.modules.get(module_name)
    if module is not None and hasattr(module, "__path__"):
        return module_name
    package, _, _ = module_name.rpartition(".")
    return package or None


@lru_cache(maxsize=128)
def discover_modules(package_path: str) -> tuple[str, ...]:
    """List the direct submodules of a package, in enumeration order.

    Private modules (``_``-prefixed, including ``__main__``) are skipped.

    Parameters
    ----------
    package_path : str
        Dotted path of the package

    Returns
    -------
    tuple[str, ...]
        Fully qualified module names (not recursive)
    """
    try:
        package = importlib.import_module(package_path)
    except ImportError:
        logger.warning("Cannot import package {package} for discovery", package=package_path)
        return ()
    if not hasattr(package, "__path__"):
        return ()
    return tuple(
        name
        for _finder, name, _ispkg in pkgutil.iter_modules(package.__path__, f"{package_path}.")
        if not name.rpartition(".")[2].startswith("_")
    )


def discover_sibling_modules(module_name: str, import_modules: bool = True) -> list[str]:
    """Return *module_name* followed by the modules alongside it.

    Parameters
    ----------
    module_name : str
        Module in which a state family is defined
    import_modules : bool, default=True
        Import every sibling so that classes defined there register
        themselves. Import errors propagate: a broken state module is a
        configuration defect.

    Returns
    -------
    list[str]
        Module names in discovery order, starting with *module_name*
    """
    ordered = [module_name]
    package = alongside_package(module_name)
    if package is None:
        return ordered

    if package != module_name:
        ordered.append(package)
    for name in discover_modules(package):
        if name not in ordered:
            ordered.append(name)

    if import_modules:
        for name in ordered:
            if name not in sys.modules:
                logger.debug("Importing {module} for state discovery", module=name)
                importlib.import_module(name)
    return ordered


def clear_discovery_cache() -> None:
    """Clear cached module listings."""
    discover_modules.cache_clear()
