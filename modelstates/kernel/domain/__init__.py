"""Domain models for state families."""

from modelstates.kernel.domain.state_config import StateConfig

__all__ = ["StateConfig"]
