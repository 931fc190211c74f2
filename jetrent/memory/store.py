"""Conversation state persistence: abstract adapter and SQLite implementation."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from jetrent.core.db import initialise_database, sqlite_connection

from .models import (
    ConversationState,
    ConversationTurn,
    Role,
    coerce_extraction,
    coerce_mapping,
    coerce_slots,
)

logger = logging.getLogger("jetrent.memory")


class StateStore(ABC):
    """Abstract interface for reading and writing conversation state."""

    @abstractmethod
    def load(self, conversation_id: str) -> ConversationState:
        """Return the stored state, or a fresh one for unknown conversations."""

    @abstractmethod
    def save(self, state: ConversationState) -> None:
        """Persist turns, slots and dialogue flags for a conversation."""

    @abstractmethod
    def reset(self, conversation_id: str) -> None:
        """Clear stored turns and slot state for a conversation."""

    @abstractmethod
    def iter_conversations(self) -> Iterable[str]:
        """Iterate over known conversation identifiers."""


STATE_SCHEMA = """
CREATE TABLE IF NOT EXISTS conversations (
    conversation_id TEXT PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS turns (
    id TEXT PRIMARY KEY,
    seq INTEGER NOT NULL,
    conversation_id TEXT NOT NULL,
    role TEXT NOT NULL,
    text TEXT NOT NULL,
    created_at TEXT NOT NULL,
    metadata TEXT,
    FOREIGN KEY (conversation_id) REFERENCES conversations (conversation_id)
        ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS slots (
    conversation_id TEXT PRIMARY KEY,
    location TEXT,
    state TEXT,
    zipcode TEXT,
    bedrooms INTEGER,
    budget REAL,
    FOREIGN KEY (conversation_id) REFERENCES conversations (conversation_id)
        ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS conversation_kv (
    conversation_id TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT,
    PRIMARY KEY (conversation_id, key),
    FOREIGN KEY (conversation_id) REFERENCES conversations (conversation_id)
        ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_turns_conversation_seq
    ON turns (conversation_id, seq);
"""


class SQLiteStateStore(StateStore):
    """SQLite-backed state store. Turns are append-only; flags are key/value rows."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = initialise_database(Path(db_path), STATE_SCHEMA)

    def load(self, conversation_id: str) -> ConversationState:
        with sqlite_connection(self.db_path) as conn:
            turn_rows = conn.execute(
                """
                SELECT id, role, text, created_at, metadata
                FROM turns
                WHERE conversation_id = ?
                ORDER BY seq ASC
                """,
                (conversation_id,),
            ).fetchall()
            slot_row = conn.execute(
                "SELECT * FROM slots WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()
            kv_rows = conn.execute(
                "SELECT key, value FROM conversation_kv WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchall()

        turns = tuple(
            ConversationTurn(
                id=row["id"],
                role=Role(row["role"]),
                text=row["text"],
                timestamp=datetime_from_iso(row["created_at"]),
                metadata=coerce_mapping(json_loads(row["metadata"])),
            )
            for row in turn_rows
        )
        slots = coerce_slots(dict(slot_row) if slot_row else None)
        flags = {row["key"]: json_loads(row["value"]) for row in kv_rows}

        return ConversationState(
            conversation_id=conversation_id,
            turns=turns,
            slots=slots,
            all_slots_filled=flags.get("all_slots_filled") is True,
            search_performed=flags.get("search_performed") is True,
            last_extraction=coerce_extraction(flags.get("last_extraction")),
            show_results=flags.get("show_results") is True,
        )

    def save(self, state: ConversationState) -> None:
        conversation_id = state.conversation_id
        with sqlite_connection(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO conversations(conversation_id) VALUES (?)",
                (conversation_id,),
            )

            known = {
                row["id"]
                for row in conn.execute(
                    "SELECT id FROM turns WHERE conversation_id = ?",
                    (conversation_id,),
                )
            }
            for seq, turn in enumerate(state.turns):
                if turn.id in known:
                    continue
                conn.execute(
                    """
                    INSERT INTO turns (id, seq, conversation_id, role, text, created_at, metadata)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        turn.id,
                        seq,
                        conversation_id,
                        turn.role.value,
                        turn.text,
                        turn.timestamp.isoformat(),
                        json_dumps(dict(turn.metadata)),
                    ),
                )

            data: dict[str, Any] = {"conversation_id": conversation_id, **state.slots.to_dict()}
            columns = ", ".join(data.keys())
            placeholders = ", ".join("?" for _ in data)
            update_clause = ", ".join(
                f"{col}=excluded.{col}" for col in data if col != "conversation_id"
            )
            conn.execute(
                f"""
                INSERT INTO slots ({columns}) VALUES ({placeholders})
                ON CONFLICT(conversation_id) DO UPDATE SET {update_clause}
                """,
                tuple(data.values()),
            )

            flags = {
                "all_slots_filled": state.all_slots_filled,
                "search_performed": state.search_performed,
                "show_results": state.show_results,
                "last_extraction": state.last_extraction.to_dict() if state.last_extraction else None,
            }
            conn.executemany(
                """
                INSERT INTO conversation_kv (conversation_id, key, value) VALUES (?, ?, ?)
                ON CONFLICT(conversation_id, key) DO UPDATE SET value=excluded.value
                """,
                [(conversation_id, key, json_dumps(value)) for key, value in flags.items()],
            )

    def reset(self, conversation_id: str) -> None:
        with sqlite_connection(self.db_path) as conn:
            conn.execute("DELETE FROM turns WHERE conversation_id = ?", (conversation_id,))
            conn.execute("DELETE FROM slots WHERE conversation_id = ?", (conversation_id,))
            conn.execute("DELETE FROM conversation_kv WHERE conversation_id = ?", (conversation_id,))
            conn.execute("DELETE FROM conversations WHERE conversation_id = ?", (conversation_id,))
        logger.info("Conversation %s reset", conversation_id)

    def iter_conversations(self) -> Iterable[str]:
        with sqlite_connection(self.db_path) as conn:
            rows = conn.execute("SELECT conversation_id FROM conversations ORDER BY conversation_id")
            return [row["conversation_id"] for row in rows]


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"))


def json_loads(value: str | None) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning("Discarding unreadable persisted value")
        return None


def datetime_from_iso(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return datetime.now(timezone.utc)
