"""Turn pipeline: extraction, slot merge, policy, optional search, reply."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from jetrent.core.errors import ConversationBusyError, ExtractionError
from jetrent.core.metrics import MetricsCollector
from jetrent.llm.extractor import ParameterExtractor
from jetrent.llm.responder import ResponseGenerator
from jetrent.memory.models import ConversationState, ConversationTurn, ExtractionResult
from jetrent.memory.store import StateStore
from jetrent.planner.base import Policy
from jetrent.planner.merger import merge_slots
from jetrent.planner.policy import RuleBasedPolicy
from jetrent.planner.types import DialogueState, PolicyContext, PolicyDecision
from jetrent.tools.base import DispatchResult
from jetrent.tools.router import SearchDispatcher
from jetrent.tools.zillow_url import generate_zillow_url

logger = logging.getLogger("jetrent.pipeline")

EXTRACTION_APOLOGY = (
    "I'm sorry, I ran into a problem understanding that message. "
    "Please try again in a moment."
)

# Asking-for-slots replies stay templated so they always name the missing fields.
REPHRASED_STATES = frozenset({DialogueState.GREETING, DialogueState.ACKNOWLEDGING, DialogueState.PRESENTING})


@dataclass(slots=True)
class TurnResult:
    """New state plus everything the presentation layer needs to render a turn."""

    state: ConversationState
    new_turns: tuple[ConversationTurn, ...]
    decision: PolicyDecision | None = None
    extraction: ExtractionResult | None = None
    dispatch: DispatchResult | None = None
    search_url: str | None = None
    error: str | None = None

    @property
    def reply(self) -> ConversationTurn:
        return self.new_turns[-1]

    def to_dict(self) -> dict[str, Any]:
        decision = self.decision
        return {
            "conversation_id": self.state.conversation_id,
            "state": decision.state.value if decision else None,
            "intent": decision.intent.value if decision else None,
            "message": self.reply.text,
            "search_blocked": decision.search_blocked if decision else False,
            "slots": self.state.slots.to_dict(),
            "missing_slots": list(self.state.slots.missing_required()),
            "all_slots_filled": self.state.all_slots_filled,
            "search_performed": self.state.search_performed,
            "show_results": self.state.show_results,
            "extraction": self.extraction.to_dict() if self.extraction else None,
            "listings": [listing.to_dict() for listing in self.dispatch.listings] if self.dispatch else [],
            "search_source": self.dispatch.source if self.dispatch else None,
            "search_url": self.search_url,
            "error": self.error,
            "new_turns": [turn.to_dict() for turn in self.new_turns],
        }


async def run_turn(
    state: ConversationState,
    text: str,
    *,
    extractor: ParameterExtractor,
    dispatcher: SearchDispatcher,
    policy: Policy | None = None,
    responder: ResponseGenerator | None = None,
) -> TurnResult:
    """Process one user message against ``state`` and return the next state.

    ``state`` itself is never modified. A failed extraction appends the user
    turn and one apology turn and leaves slots and flags untouched.
    """

    policy = policy or RuleBasedPolicy()
    user_turn = ConversationTurn.user(text)

    try:
        extraction = await extractor.extract(text)
    except ExtractionError as exc:
        logger.warning("Extraction failed for %s: %s", state.conversation_id, exc)
        return _apology(state, user_turn, str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Extractor crashed for %s", state.conversation_id)
        return _apology(state, user_turn, str(exc))

    merge = merge_slots(state.slots, extraction)
    decision = policy.decide(
        PolicyContext(message=text, extraction=extraction, merge=merge, conversation=state)
    )
    logger.info(
        "Turn %s: intent=%s state=%s missing=%s",
        state.conversation_id,
        decision.intent.value,
        decision.state.value,
        ",".join(merge.missing_required) or "-",
    )

    dispatch: DispatchResult | None = None
    search_url: str | None = None
    search_performed = state.search_performed if extraction.is_greeting else False
    show_results = state.show_results

    if decision.should_search:
        slots = merge.slots
        dispatch = await dispatcher.dispatch(slots)
        decision = policy.present(decision, slots, dispatch)
        try:
            search_url = generate_zillow_url(
                slots.location, slots.state, slots.zipcode, slots.bedrooms, slots.budget
            ) or None
        except ValueError as exc:
            logger.warning("Skipping deep link for %s: %s", state.conversation_id, exc)
        search_performed = True
        show_results = True

    message = decision.message
    if responder is not None and decision.state in REPHRASED_STATES:
        try:
            message = await responder.generate(state.turns + (user_turn,), _guidance(decision))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Response generation failed, using template: %s", exc)

    metadata: dict[str, Any] = {"dialogue_state": decision.state.value, "intent": decision.intent.value}
    if decision.missing_slots:
        metadata["missing_slots"] = list(decision.missing_slots)
    if search_url:
        metadata["search_url"] = search_url
    assistant_turn = ConversationTurn.assistant(message, **metadata)

    new_state = replace(
        state,
        turns=state.turns + (user_turn, assistant_turn),
        slots=merge.slots,
        all_slots_filled=merge.complete,
        search_performed=search_performed,
        last_extraction=extraction,
        show_results=show_results,
    )
    return TurnResult(
        state=new_state,
        new_turns=(user_turn, assistant_turn),
        decision=decision,
        extraction=extraction,
        dispatch=dispatch,
        search_url=search_url,
        error=dispatch.error if dispatch else None,
    )


def _apology(state: ConversationState, user_turn: ConversationTurn, error: str) -> TurnResult:
    apology = ConversationTurn.assistant(EXTRACTION_APOLOGY, error=True)
    return TurnResult(
        state=state.with_turns(user_turn, apology),
        new_turns=(user_turn, apology),
        error=error,
    )


def _guidance(decision: PolicyDecision) -> str:
    if decision.state is DialogueState.GREETING:
        return (
            "The user has just greeted you. Respond with a friendly greeting and ask what "
            "kind of apartment they're looking for. Do not assume any specific preferences."
        )
    if decision.state is DialogueState.PRESENTING:
        return (
            "You are presenting apartment search results to the user. Here is the summary:\n"
            f"{decision.message}\n\nPresent these results in a friendly, conversational way "
            "and ask if they'd like to modify their search criteria."
        )
    return (
        "The user has provided everything needed for a search. Confirm the details below and "
        "tell them to ask for a search when ready. Do not claim a search has run.\n"
        f"{decision.message}"
    )


class ConversationService:
    """Owns persistence and the per-conversation busy flag around ``run_turn``."""

    def __init__(
        self,
        store: StateStore,
        extractor: ParameterExtractor,
        dispatcher: SearchDispatcher,
        *,
        policy: Policy | None = None,
        responder: ResponseGenerator | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.dispatcher = dispatcher
        self.policy = policy or RuleBasedPolicy()
        self.responder = responder
        self.metrics = metrics
        self._busy: set[str] = set()

    def is_busy(self, conversation_id: str) -> bool:
        return conversation_id in self._busy

    async def handle_message(self, conversation_id: str, text: str) -> TurnResult:
        """Run one turn. A second submission while one is in flight is rejected."""

        if conversation_id in self._busy:
            raise ConversationBusyError(conversation_id)

        self._busy.add(conversation_id)
        try:
            state = self.store.load(conversation_id)
            result = await run_turn(
                state,
                text,
                extractor=self.extractor,
                dispatcher=self.dispatcher,
                policy=self.policy,
                responder=self.responder,
            )
            self.store.save(result.state)
        finally:
            self._busy.discard(conversation_id)

        if self.metrics is not None:
            decision = result.decision
            self.metrics.record_turn(
                decision.intent.value if decision else "error",
                decision.state.value if decision else "error",
            )
            if result.dispatch is not None:
                self.metrics.record_search(result.dispatch.source, result.dispatch.ok)

        return result

    def snapshot(self, conversation_id: str) -> ConversationState:
        return self.store.load(conversation_id)

    def reset(self, conversation_id: str) -> None:
        self.store.reset(conversation_id)
