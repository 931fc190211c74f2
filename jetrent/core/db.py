"""SQLite helpers shared by the conversation and bookmark stores."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


@contextmanager
def sqlite_connection(path: Path) -> Iterator[sqlite3.Connection]:
    """Yield a connection with ``sqlite3.Row`` rows and foreign keys enforced.

    Commits on a clean exit and rolls back if the block raises.
    """

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:  # noqa: BLE001
        conn.rollback()
        raise
    finally:
        conn.close()


def initialise_database(path: Path, schema: str) -> Path:
    """Create the database file's directory and apply an idempotent schema script."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite_connection(path) as conn:
        conn.executescript(schema)
    return path
