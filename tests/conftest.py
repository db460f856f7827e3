"""Configuration file for pytest containing fixtures and configuration.

This module provides fixtures that can be used across multiple test files:
- reset_modelstates: Restores default configuration, a fresh dependency
  container and empty caches around every test
- container: The dependency container transitions resolve handler parameters from
"""

from collections.abc import Iterator

import pytest

import modelstates
from modelstates import DependencyContainer, set_default_container
from modelstates.kernel.config import ModelStatesConfig, clear_config_cache, set_config


@pytest.fixture(autouse=True)
def reset_modelstates() -> Iterator[None]:
    """Isolate tests from each other's configuration and cached state data."""
    set_config(ModelStatesConfig())
    set_default_container(DependencyContainer())
    modelstates.clear_caches()
    yield
    modelstates.clear_caches()
    clear_config_cache()


@pytest.fixture
def container() -> DependencyContainer:
    """Fresh container installed as the process default."""
    container = DependencyContainer()
    set_default_container(container)
    return container
