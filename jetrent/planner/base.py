"""Dialogue policy abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jetrent.memory.models import SearchSlots
from jetrent.tools.base import DispatchResult

from .types import PolicyContext, PolicyDecision


class Policy(ABC):
    """Decides the next dialogue state given the latest conversational turn."""

    @abstractmethod
    def decide(self, context: PolicyContext) -> PolicyDecision:
        """Return the policy decision for a given context."""

    @abstractmethod
    def present(self, decision: PolicyDecision, slots: SearchSlots, result: DispatchResult) -> PolicyDecision:
        """Turn a completed search into the decision shown to the user."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable summary of policy strategy."""
