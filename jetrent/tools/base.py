"""Base classes and types for search tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from jetrent.memory.models import ListingResult, SearchSlots


@dataclass(slots=True)
class ToolContext:
    """Context provided to a tool invocation."""

    slots: SearchSlots


@dataclass(slots=True)
class ToolResponse:
    """Standard tool response payload."""

    content: str
    listings: list[ListingResult] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of one search dispatch. Failures carry an error, never raise."""

    listings: tuple[ListingResult, ...]
    source: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "error": self.error,
            "listings": [listing.to_dict() for listing in self.listings],
        }


class Tool(ABC):
    """Executable search tool interface."""

    name: str

    @abstractmethod
    async def run(self, context: ToolContext) -> ToolResponse:
        """Execute the tool given the provided context."""

    def describe(self) -> str:
        """Return a human-readable description for observability dashboards."""

        return self.__doc__ or self.name
