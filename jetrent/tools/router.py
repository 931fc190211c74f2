"""Search dispatcher mapping search sources to tool implementations."""

from __future__ import annotations

import logging
from typing import Mapping

from jetrent.memory.models import SearchSlots
from jetrent.tools.base import DispatchResult, Tool, ToolContext

logger = logging.getLogger("jetrent.tools")


class SearchDispatcher:
    """Run one search against the static table or the scrape API.

    ``dispatch`` never raises: every failure is folded into
    ``DispatchResult.error`` with an empty listing list.
    """

    def __init__(self, tools: Mapping[str, Tool], default_source: str = "static") -> None:
        if default_source not in tools:
            raise ValueError(f"unknown default search source: {default_source}")
        self._tools = tools
        self.default_source = default_source

    @property
    def sources(self) -> list[str]:
        return list(self._tools)

    def supports(self, source: str) -> bool:
        return source in self._tools

    def describe(self) -> dict[str, str]:
        return {source: tool.describe() for source, tool in self._tools.items()}

    async def dispatch(self, slots: SearchSlots, source: str | None = None) -> DispatchResult:
        source = source or self.default_source
        tool = self._tools.get(source)
        if tool is None:
            return DispatchResult(listings=(), source=source, error=f"Unknown search source '{source}'.")

        if not slots.location:
            return DispatchResult(listings=(), source=source, error="A location is required to search.")

        try:
            response = await tool.run(ToolContext(slots=slots))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Search dispatch failed", extra={"source": source})
            return DispatchResult(listings=(), source=source, error=f"Search failed: {exc}")

        if not response.success:
            return DispatchResult(
                listings=(),
                source=source,
                error=response.error or response.content,
            )

        logger.info("Dispatched %s search: %d listing(s)", source, len(response.listings))
        return DispatchResult(listings=tuple(response.listings), source=source)
