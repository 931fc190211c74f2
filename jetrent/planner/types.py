"""Planner-related enums and data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from jetrent.memory.models import ConversationState, ExtractionResult, SearchSlots


class Intent(str, Enum):
    """Classification of the current user message."""

    GREETING = "greeting"
    SEARCH_COMMAND = "search_command"
    FOLLOW_UP = "follow_up"


class DialogueState(str, Enum):
    """States of the slot-filling dialogue."""

    AWAITING_INPUT = "awaiting_input"
    GREETING = "greeting"
    ASKING_FOR_SLOTS = "asking_for_slots"
    ACKNOWLEDGING = "acknowledging"
    SEARCHING = "searching"
    PRESENTING = "presenting"


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Slots after merging an extraction, plus what is still required."""

    slots: SearchSlots
    missing_required: tuple[str, ...]

    @property
    def complete(self) -> bool:
        return not self.missing_required


@dataclass(slots=True)
class PolicyContext:
    """Inputs passed to the policy when deciding the next state."""

    message: str
    extraction: ExtractionResult
    merge: MergeResult
    conversation: ConversationState


@dataclass(slots=True)
class PolicyDecision:
    """Policy output describing the chosen state and the reply to show."""

    intent: Intent
    state: DialogueState
    message: str
    missing_slots: tuple[str, ...] = ()
    search_blocked: bool = False
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def should_search(self) -> bool:
        return self.state is DialogueState.SEARCHING
