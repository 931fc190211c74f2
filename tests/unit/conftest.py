"""Pytest unit test fixtures."""

from __future__ import annotations

from collections import deque
from typing import Iterable

import pytest

from jetrent.core.errors import ExtractionError
from jetrent.llm.extractor import ParameterExtractor
from jetrent.memory.bookmarks import BookmarkStore
from jetrent.memory.models import ConversationState, ExtractionResult
from jetrent.memory.store import SQLiteStateStore
from jetrent.tools.listings import StaticListingsTool
from jetrent.tools.router import SearchDispatcher


class ScriptedExtractor(ParameterExtractor):
    """Returns queued results in order; queued exceptions are raised instead."""

    def __init__(self, results: Iterable[ExtractionResult | Exception]) -> None:
        self._results = deque(results)
        self.calls: list[str] = []

    async def extract(self, text: str) -> ExtractionResult:
        self.calls.append(text)
        result = self._results.popleft()
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture()
def state_store(tmp_path):
    return SQLiteStateStore(tmp_path / "state.db")


@pytest.fixture()
def bookmark_store(tmp_path):
    return BookmarkStore(tmp_path / "bookmarks.db")


@pytest.fixture()
def dispatcher():
    return SearchDispatcher({"static": StaticListingsTool()})


@pytest.fixture()
def empty_state():
    return ConversationState(conversation_id="conv-1")


@pytest.fixture()
def scripted_extractor():
    return ScriptedExtractor


@pytest.fixture()
def extraction_error():
    return ExtractionError("language model returned invalid JSON")
