"""Slot-filling merge of a fresh extraction into accumulated search state."""

from __future__ import annotations

from dataclasses import replace

from jetrent.memory.models import SLOT_NAMES, ExtractionResult, SearchSlots

from .types import MergeResult


def merge_slots(prior: SearchSlots, extraction: ExtractionResult) -> MergeResult:
    """Overlay newly extracted values on ``prior``.

    A field is taken from the extraction only when it has a value and is not
    listed in ``missing_fields``; everything else carries forward. Greetings
    never touch accumulated state.
    """

    if extraction.is_greeting:
        return MergeResult(slots=prior, missing_required=tuple(prior.missing_required()))

    updates = {name: extraction.get(name) for name in SLOT_NAMES if extraction.provides(name)}
    changed = {name: value for name, value in updates.items() if prior.get(name) != value}
    slots = replace(prior, **changed) if changed else prior

    return MergeResult(slots=slots, missing_required=tuple(slots.missing_required()))
