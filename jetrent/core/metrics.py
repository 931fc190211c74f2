"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict


@dataclass
class MetricSnapshot:
    total_turns: int
    dialogue_states: Dict[str, int]
    intents: Dict[str, int]
    searches: Dict[str, int]
    search_failures: int


class MetricsCollector:
    """Thread-safe counter storage for basic service metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_turns = 0
        self._states: Counter[str] = Counter()
        self._intents: Counter[str] = Counter()
        self._searches: Counter[str] = Counter()
        self._search_failures = 0

    def record_turn(self, intent: str, state: str) -> None:
        with self._lock:
            self._total_turns += 1
            self._intents[intent] += 1
            self._states[state] += 1

    def record_search(self, source: str, ok: bool) -> None:
        with self._lock:
            self._searches[source] += 1
            if not ok:
                self._search_failures += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_turns=self._total_turns,
                dialogue_states=dict(self._states),
                intents=dict(self._intents),
                searches=dict(self._searches),
                search_failures=self._search_failures,
            )
