"""Configuration loading and management for modelstates."""

from modelstates.kernel.config.loader import (
    ConfigLoader,
    clear_config_cache,
    get_config,
    load_config,
    set_config,
)
from modelstates.kernel.config.models import LoggingConfig, ModelStatesConfig

__all__ = [
    "ConfigLoader",
    "LoggingConfig",
    "ModelStatesConfig",
    "clear_config_cache",
    "get_config",
    "load_config",
    "set_config",
]
