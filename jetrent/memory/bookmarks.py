"""Bookmarked listings and user-defined labels."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jetrent.core.db import initialise_database, sqlite_connection

DEFAULT_LABELS: tuple[tuple[str, str, str], ...] = (
    ("favorite", "Favorite", "#FF4136"),
    ("toVisit", "To Visit", "#2ECC40"),
    ("contacted", "Contacted", "#0074D9"),
)


@dataclass(slots=True)
class Label:
    id: str
    name: str
    color: str


@dataclass(slots=True)
class Bookmark:
    listing_id: str
    listing: dict[str, Any]
    labels: list[str] = field(default_factory=list)


BOOKMARK_SCHEMA = """
CREATE TABLE IF NOT EXISTS bookmarks (
    listing_id TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS labels (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS bookmark_labels (
    listing_id TEXT NOT NULL,
    label_id TEXT NOT NULL,
    PRIMARY KEY (listing_id, label_id),
    FOREIGN KEY (listing_id) REFERENCES bookmarks (listing_id) ON DELETE CASCADE,
    FOREIGN KEY (label_id) REFERENCES labels (id) ON DELETE CASCADE
);
"""


class BookmarkStore:
    """SQLite-backed bookmark and label collection shared by all conversations."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = initialise_database(Path(db_path), BOOKMARK_SCHEMA)
        with sqlite_connection(self.db_path) as conn:
            conn.executemany(
                "INSERT OR IGNORE INTO labels (id, name, color) VALUES (?, ?, ?)",
                DEFAULT_LABELS,
            )

    # Bookmarks

    def add_bookmark(self, listing: dict[str, Any]) -> Bookmark:
        """Bookmark a listing. Bookmarking the same listing twice is a no-op."""

        listing_id = str(listing.get("id") or "")
        if not listing_id:
            raise ValueError("listing id is required")
        with sqlite_connection(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO bookmarks (listing_id, payload) VALUES (?, ?)",
                (listing_id, json.dumps(listing)),
            )
        bookmark = self.get_bookmark(listing_id)
        return bookmark if bookmark is not None else Bookmark(listing_id=listing_id, listing=listing)

    def remove_bookmark(self, listing_id: str) -> bool:
        with sqlite_connection(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM bookmarks WHERE listing_id = ?", (listing_id,))
            return cursor.rowcount > 0

    def is_bookmarked(self, listing_id: str) -> bool:
        with sqlite_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM bookmarks WHERE listing_id = ?", (listing_id,)
            ).fetchone()
        return row is not None

    def get_bookmark(self, listing_id: str) -> Bookmark | None:
        with sqlite_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT listing_id, payload FROM bookmarks WHERE listing_id = ?", (listing_id,)
            ).fetchone()
            if row is None:
                return None
            label_ids = self._label_ids(conn, listing_id)
        return Bookmark(listing_id=row["listing_id"], listing=_load_payload(row["payload"]), labels=label_ids)

    def list_bookmarks(self) -> list[Bookmark]:
        with sqlite_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT listing_id, payload FROM bookmarks ORDER BY created_at, rowid"
            ).fetchall()
            return [
                Bookmark(
                    listing_id=row["listing_id"],
                    listing=_load_payload(row["payload"]),
                    labels=self._label_ids(conn, row["listing_id"]),
                )
                for row in rows
            ]

    # Labels

    def list_labels(self) -> list[Label]:
        with sqlite_connection(self.db_path) as conn:
            rows = conn.execute("SELECT id, name, color FROM labels ORDER BY rowid").fetchall()
        return [Label(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    def add_label(self, name: str, color: str) -> Label:
        label = Label(id=uuid.uuid4().hex[:12], name=name, color=color)
        with sqlite_connection(self.db_path) as conn:
            conn.execute(
                "INSERT INTO labels (id, name, color) VALUES (?, ?, ?)",
                (label.id, label.name, label.color),
            )
        return label

    def update_label(self, label_id: str, *, name: str | None = None, color: str | None = None) -> Label | None:
        with sqlite_connection(self.db_path) as conn:
            row = conn.execute("SELECT id, name, color FROM labels WHERE id = ?", (label_id,)).fetchone()
            if row is None:
                return None
            label = Label(id=row["id"], name=name or row["name"], color=color or row["color"])
            conn.execute(
                "UPDATE labels SET name = ?, color = ? WHERE id = ?",
                (label.name, label.color, label.id),
            )
        return label

    def remove_label(self, label_id: str) -> bool:
        """Delete a label and detach it from every bookmark."""

        with sqlite_connection(self.db_path) as conn:
            conn.execute("DELETE FROM bookmark_labels WHERE label_id = ?", (label_id,))
            cursor = conn.execute("DELETE FROM labels WHERE id = ?", (label_id,))
            return cursor.rowcount > 0

    def add_label_to_listing(self, listing_id: str, label_id: str) -> bool:
        with sqlite_connection(self.db_path) as conn:
            if not self._exists(conn, listing_id, label_id):
                return False
            conn.execute(
                "INSERT OR IGNORE INTO bookmark_labels (listing_id, label_id) VALUES (?, ?)",
                (listing_id, label_id),
            )
        return True

    def remove_label_from_listing(self, listing_id: str, label_id: str) -> bool:
        with sqlite_connection(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM bookmark_labels WHERE listing_id = ? AND label_id = ?",
                (listing_id, label_id),
            )
            return cursor.rowcount > 0

    def get_listing_labels(self, listing_id: str) -> list[Label]:
        with sqlite_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT labels.id, labels.name, labels.color
                FROM bookmark_labels
                JOIN labels ON labels.id = bookmark_labels.label_id
                WHERE bookmark_labels.listing_id = ?
                ORDER BY bookmark_labels.rowid
                """,
                (listing_id,),
            ).fetchall()
        return [Label(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    @staticmethod
    def _label_ids(conn, listing_id: str) -> list[str]:
        rows = conn.execute(
            "SELECT label_id FROM bookmark_labels WHERE listing_id = ? ORDER BY rowid",
            (listing_id,),
        ).fetchall()
        return [row["label_id"] for row in rows]

    @staticmethod
    def _exists(conn, listing_id: str, label_id: str) -> bool:
        bookmark = conn.execute("SELECT 1 FROM bookmarks WHERE listing_id = ?", (listing_id,)).fetchone()
        label = conn.execute("SELECT 1 FROM labels WHERE id = ?", (label_id,)).fetchone()
        return bookmark is not None and label is not None


def _load_payload(value: str) -> dict[str, Any]:
    try:
        payload = json.loads(value)
    except json.JSONDecodeError:
        return {}
    return payload if isinstance(payload, dict) else {}
