"""Dataclasses representing conversation turns, search slots and listings."""

from __future__ import annotations

import math
import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

REQUIRED_SLOTS: tuple[str, ...] = ("location", "state", "bedrooms", "budget")
SLOT_NAMES: tuple[str, ...] = ("location", "state", "zipcode", "bedrooms", "budget")


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class SearchSlots:
    """Tracked search parameters. ``None`` means unknown, never a default."""

    location: str | None = None
    state: str | None = None
    zipcode: str | None = None
    bedrooms: int | None = None
    budget: float | None = None

    def get(self, name: str) -> Any:
        return getattr(self, name)

    def missing_required(self) -> list[str]:
        return [name for name in REQUIRED_SLOTS if self.get(name) is None]

    def is_empty(self) -> bool:
        return all(self.get(name) is None for name in SLOT_NAMES)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """One turn's worth of extracted parameters."""

    location: str | None = None
    state: str | None = None
    zipcode: str | None = None
    bedrooms: int | None = None
    budget: float | None = None
    missing_fields: tuple[str, ...] = ()
    is_greeting: bool = False

    def get(self, name: str) -> Any:
        return getattr(self, name)

    def provides(self, name: str) -> bool:
        """True when the field carries a value the extractor vouches for."""

        return self.get(name) is not None and name not in self.missing_fields

    def has_values(self) -> bool:
        return any(self.provides(name) for name in SLOT_NAMES)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["missing_fields"] = list(self.missing_fields)
        return payload


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """Single conversational turn. Never mutated once created."""

    role: Role
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.USER, text=text)

    @classmethod
    def assistant(cls, text: str, **metadata: Any) -> "ConversationTurn":
        return cls(role=Role.ASSISTANT, text=text, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class ListingResult:
    """A single apartment listing returned by a search."""

    id: str
    title: str
    address: str
    bedrooms: int | None
    rent: float | None
    price_text: str
    description: str = ""
    external_url: str | None = None
    image_url: str | None = None
    source: str = "static"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ConversationState:
    """Aggregated view of a conversation: log, slots and dialogue flags."""

    conversation_id: str
    turns: tuple[ConversationTurn, ...] = ()
    slots: SearchSlots = field(default_factory=SearchSlots)
    all_slots_filled: bool = False
    search_performed: bool = False
    last_extraction: ExtractionResult | None = None
    show_results: bool = False

    def with_turns(self, *turns: ConversationTurn) -> "ConversationState":
        return replace(self, turns=self.turns + tuple(turns))

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "turns": [turn.to_dict() for turn in self.turns],
            "slots": self.slots.to_dict(),
            "missing_slots": self.slots.missing_required(),
            "all_slots_filled": self.all_slots_filled,
            "search_performed": self.search_performed,
            "last_extraction": self.last_extraction.to_dict() if self.last_extraction else None,
            "show_results": self.show_results,
        }


def coerce_int(value: Any) -> int | None:
    number = coerce_number(value)
    if number is None:
        return None
    return int(number)


def coerce_number(value: Any) -> float | int | None:
    """Best-effort numeric coercion; anything unusable becomes ``None``.

    Infinities, NaN and integers too large for a float are unusable too.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        cleaned = value.strip().lower().replace(",", "").replace("$", "")
        multiplier = 1
        if cleaned.endswith("k"):
            cleaned = cleaned[:-1]
            multiplier = 1000
        try:
            number = float(cleaned) * multiplier
        except ValueError:
            return None
    else:
        return None

    if not is_finite(number):
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def is_finite(value: float | int) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_slots(raw: Any) -> SearchSlots:
    """Build slots from a persisted mapping, tolerating malformed input."""

    if not isinstance(raw, Mapping):
        return SearchSlots()
    return SearchSlots(
        location=coerce_text(raw.get("location")),
        state=coerce_text(raw.get("state")),
        zipcode=coerce_text(raw.get("zipcode")),
        bedrooms=coerce_int(raw.get("bedrooms")),
        budget=coerce_number(raw.get("budget")),
    )


def coerce_extraction(raw: Any) -> ExtractionResult | None:
    if not isinstance(raw, Mapping) or not raw:
        return None
    missing = raw.get("missing_fields")
    if not isinstance(missing, (list, tuple)):
        missing = ()
    slots = coerce_slots(raw)
    return ExtractionResult(
        **{f.name: getattr(slots, f.name) for f in fields(SearchSlots)},
        missing_fields=tuple(str(item) for item in missing),
        is_greeting=bool(raw.get("is_greeting", False)),
    )


def coerce_mapping(raw: Any) -> dict[str, Any]:
    return dict(raw) if isinstance(raw, Mapping) else {}
