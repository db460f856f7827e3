"""Discovered state family: its states live in the modules of this package."""

from __future__ import annotations

from abc import ABC, abstractmethod

from modelstates import State, StateConfig


class PaymentState(State, ABC):
    @classmethod
    def config(cls) -> StateConfig:
        return StateConfig(cls).default("pending")

    @abstractmethod
    def color(self) -> str: ...
