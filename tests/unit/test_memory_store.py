from jetrent.core.db import sqlite_connection
from jetrent.memory.models import ConversationState, ConversationTurn, ExtractionResult, SearchSlots


def test_save_and_load_round_trip(state_store):
    state = ConversationState(conversation_id="conv-1").with_turns(
        ConversationTurn.user("1 bedroom in Boston, MA"),
        ConversationTurn.assistant("What's your budget?", dialogue_state="asking_for_slots"),
    )
    state = ConversationState(
        conversation_id="conv-1",
        turns=state.turns,
        slots=SearchSlots(location="Boston", state="MA", bedrooms=1),
        last_extraction=ExtractionResult(location="Boston", state="MA", bedrooms=1, missing_fields=("budget",)),
    )

    state_store.save(state)
    loaded = state_store.load("conv-1")

    assert [turn.text for turn in loaded.turns] == ["1 bedroom in Boston, MA", "What's your budget?"]
    assert [turn.id for turn in loaded.turns] == [turn.id for turn in state.turns]
    assert loaded.turns[1].metadata == {"dialogue_state": "asking_for_slots"}
    assert loaded.slots == state.slots
    assert loaded.last_extraction == state.last_extraction
    assert loaded.all_slots_filled is False


def test_saving_again_appends_only_new_turns(state_store):
    first = ConversationState(conversation_id="conv-2").with_turns(ConversationTurn.user("hello"))
    state_store.save(first)
    second = first.with_turns(ConversationTurn.assistant("Hi!"))
    state_store.save(second)

    loaded = state_store.load("conv-2")

    assert [turn.text for turn in loaded.turns] == ["hello", "Hi!"]


def test_unknown_conversation_loads_fresh_state(state_store):
    loaded = state_store.load("never-seen")

    assert loaded.turns == ()
    assert loaded.slots.is_empty()
    assert loaded.last_extraction is None


def test_malformed_flags_are_coerced(state_store):
    state_store.save(ConversationState(conversation_id="conv-3", all_slots_filled=True))
    with sqlite_connection(state_store.db_path) as conn:
        conn.execute(
            "UPDATE conversation_kv SET value = ? WHERE conversation_id = ? AND key = ?",
            ("{not json", "conv-3", "all_slots_filled"),
        )
        conn.execute(
            "UPDATE conversation_kv SET value = ? WHERE conversation_id = ? AND key = ?",
            ('"yes"', "conv-3", "search_performed"),
        )
        conn.execute(
            "UPDATE slots SET bedrooms = ?, budget = ? WHERE conversation_id = ?",
            ("two", "$2,000", "conv-3"),
        )

    loaded = state_store.load("conv-3")

    assert loaded.all_slots_filled is False
    assert loaded.search_performed is False
    assert loaded.slots.bedrooms is None
    assert loaded.slots.budget == 2000


def test_reset_clears_conversation(state_store):
    state_store.save(
        ConversationState(conversation_id="conv-4", slots=SearchSlots(location="Chicago")).with_turns(
            ConversationTurn.user("Chicago")
        )
    )

    state_store.reset("conv-4")

    assert "conv-4" not in list(state_store.iter_conversations())
    assert state_store.load("conv-4").slots.is_empty()
