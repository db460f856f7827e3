"""modelstates kernel.

Exports grouped by concern:
- States and their configuration
- Transitions and dependency resolution
- Entity binding
- Registry and resolution
- Exceptions
- Logging and configuration
"""

# ============================================================================
# Exceptions
# ============================================================================
from modelstates.kernel.exceptions import (
    CannotTransitionError,
    ConfigurationError,
    DependencyResolutionError,
    DuplicateStateNameError,
    ModelStatesError,
    NoStatesDeclaredError,
    ResolveError,
    UnresolvedStateError,
    UnresolvedTransitionError,
)

# ============================================================================
# Logging and configuration
# ============================================================================
from modelstates.kernel.config import (
    LoggingConfig,
    ModelStatesConfig,
    clear_config_cache,
    get_config,
    load_config,
    set_config,
)
from modelstates.kernel.logging import configure_logging, get_logger, set_correlation_id

# ============================================================================
# Registry and resolution
# ============================================================================
from modelstates.kernel.registry import (
    all_states,
    clear_state_cache,
    derive_short_name,
    get_state_mapping,
    resolve_state_class,
)

# ============================================================================
# States, transitions and entity binding
# ============================================================================
from modelstates.kernel.domain import StateConfig
from modelstates.kernel.dependencies import (
    DependencyContainer,
    get_default_container,
    set_default_container,
)
from modelstates.kernel.transition import (
    DefaultTransition,
    Transition,
    execute_transition,
    resolve_transition_class,
)
from modelstates.kernel.state import State
from modelstates.kernel.fields import StateField
from modelstates.kernel.has_states import HasStates, SupportsStateQuery, clear_entity_cache

__all__ = [
    "CannotTransitionError",
    "ConfigurationError",
    "DefaultTransition",
    "DependencyContainer",
    "DependencyResolutionError",
    "DuplicateStateNameError",
    "HasStates",
    "LoggingConfig",
    "ModelStatesConfig",
    "ModelStatesError",
    "NoStatesDeclaredError",
    "ResolveError",
    "State",
    "StateConfig",
    "StateField",
    "SupportsStateQuery",
    "Transition",
    "UnresolvedStateError",
    "UnresolvedTransitionError",
    "all_states",
    "clear_config_cache",
    "clear_entity_cache",
    "clear_state_cache",
    "configure_logging",
    "derive_short_name",
    "execute_transition",
    "get_config",
    "get_default_container",
    "get_logger",
    "get_state_mapping",
    "load_config",
    "resolve_state_class",
    "resolve_transition_class",
    "set_config",
    "set_correlation_id",
    "set_default_container",
]
