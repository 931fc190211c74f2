"""Rule-based dialogue policy for the slot-filling apartment search."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable

from jetrent.memory.models import SearchSlots
from jetrent.tools.base import DispatchResult

from .base import Policy
from .types import DialogueState, Intent, PolicyContext, PolicyDecision

COMMAND_PATTERN = re.compile(
    r"\b(?:search|find|show|get|give me|display|look for|pull up)\b"
    r".*\b(?:apartments?|listings?|rentals?|places?|homes?|units?|propert(?:y|ies)|results?|flats?|studios?)\b",
    re.IGNORECASE | re.DOTALL,
)
SEARCH_ZILLOW_PATTERN = re.compile(r"\bsearch\s+zillow\b", re.IGNORECASE)

SLOT_LABELS = {
    "location": "location",
    "state": "state",
    "zipcode": "ZIP code",
    "bedrooms": "number of bedrooms",
    "budget": "budget",
}

GREETING_MESSAGE = (
    "👋 Hi there! I'm JetRent, your apartment-finding assistant. Tell me where you'd like "
    "to live (city and state), how many bedrooms you need, and your monthly budget."
)


class RuleBasedPolicy(Policy):
    """Explicit-command policy: complete slots are acknowledged, never auto-searched."""

    def describe(self) -> str:
        return "Rule-based slot-filling policy (search on explicit command)"

    def classify_intent(self, message: str, is_greeting: bool) -> Intent:
        if is_greeting:
            return Intent.GREETING
        if SEARCH_ZILLOW_PATTERN.search(message) or COMMAND_PATTERN.search(message):
            return Intent.SEARCH_COMMAND
        return Intent.FOLLOW_UP

    def decide(self, context: PolicyContext) -> PolicyDecision:
        intent = self.classify_intent(context.message, context.extraction.is_greeting)
        slots = context.merge.slots
        missing = context.merge.missing_required

        if intent is Intent.GREETING:
            return PolicyDecision(intent=intent, state=DialogueState.GREETING, message=GREETING_MESSAGE)

        if intent is Intent.SEARCH_COMMAND and not missing:
            return PolicyDecision(
                intent=intent,
                state=DialogueState.SEARCHING,
                message=f"Searching for {describe_criteria(slots)}...",
            )

        if intent is Intent.SEARCH_COMMAND:
            return PolicyDecision(
                intent=intent,
                state=DialogueState.ASKING_FOR_SLOTS,
                message=(
                    "I'd be happy to run that search, but I can't start it until I know your "
                    f"{join_labels(missing)}. Could you share {'them' if len(missing) > 1 else 'it'}?"
                ),
                missing_slots=missing,
                search_blocked=True,
            )

        if missing:
            return PolicyDecision(
                intent=intent,
                state=DialogueState.ASKING_FOR_SLOTS,
                message=soft_ask(slots, missing),
                missing_slots=missing,
            )

        return PolicyDecision(
            intent=intent,
            state=DialogueState.ACKNOWLEDGING,
            message=(
                f"Great, I have everything I need: {describe_criteria(slots)}. "
                "Just say \"search apartments\" whenever you're ready and I'll pull up listings."
            ),
        )

    def present(self, decision: PolicyDecision, slots: SearchSlots, result: DispatchResult) -> PolicyDecision:
        criteria = describe_criteria(slots)
        if result.listings:
            lines = [
                f"Based on your criteria ({criteria}), I found {len(result.listings)} "
                f"apartment{'s' if len(result.listings) != 1 else ''}:",
                "",
            ]
            for index, listing in enumerate(result.listings, start=1):
                parts = [listing.title]
                if listing.address and listing.address != listing.title:
                    parts.append(listing.address)
                parts.append(bedrooms_label(listing.bedrooms))
                parts.append(listing.price_text)
                if listing.description:
                    parts.append(listing.description)
                lines.append(f"{index}. " + " - ".join(part for part in parts if part))
            lines.extend(["", "Would you like to adjust your search criteria?"])
            message = "\n".join(lines)
        elif result.error:
            message = (
                f"I couldn't load listings for {criteria} right now ({result.error}). "
                "Would you like to try again or change your criteria?"
            )
        else:
            message = (
                f"I couldn't find any apartments for {criteria}. "
                "Would you like to try a different location, bedroom count or budget?"
            )

        return replace(
            decision,
            state=DialogueState.PRESENTING,
            message=message,
            payload={**decision.payload, "result_count": len(result.listings)},
        )


def soft_ask(slots: SearchSlots, missing: Iterable[str]) -> str:
    missing = list(missing)
    if slots.is_empty():
        return (
            "I'd love to help you find an apartment! Could you tell me the "
            f"{join_labels(missing)} you have in mind?"
        )
    return f"Thanks! So far I have {describe_criteria(slots)}. What's your {join_labels(missing)}?"


def describe_criteria(slots: SearchSlots) -> str:
    """Summarise known slots, e.g. ``1 bedroom in Brooklyn, NY with a budget of $2,500``."""

    parts: list[str] = []
    if slots.bedrooms is not None:
        parts.append("a studio" if slots.bedrooms == 0 else bedrooms_label(slots.bedrooms))
    place = format_place(slots)
    if place:
        parts.append(f"in {place}")
    if slots.budget is not None:
        parts.append(f"with a budget of {format_money(slots.budget)}")
    return " ".join(parts) if parts else "your search"


def format_place(slots: SearchSlots) -> str:
    place = ", ".join(value for value in (slots.location, slots.state) if value)
    if slots.zipcode:
        place = f"{place} {slots.zipcode}".strip()
    return place


def bedrooms_label(bedrooms: int | None) -> str:
    if bedrooms is None:
        return ""
    if bedrooms == 0:
        return "Studio"
    return f"{bedrooms} bedroom{'s' if bedrooms != 1 else ''}"


def format_money(amount: float | int) -> str:
    if float(amount).is_integer():
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


def join_labels(fields: Iterable[str]) -> str:
    labels = [SLOT_LABELS.get(name, name) for name in fields]
    if len(labels) <= 1:
        return "".join(labels)
    return f"{', '.join(labels[:-1])} and {labels[-1]}"
