"""Persisted client-side key-value storage for RentalConnects chat."""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional


def get_db_path() -> Path:
    """Get the storage path from config or default."""
    db_path = os.environ.get("RENTALCONNECTS_STORE")
    if db_path:
        return Path(db_path)
    return Path.home() / ".rentalconnects" / "storage.db"


@contextmanager
def get_connection():
    """Get a storage connection with the table in place."""
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS storage (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def get_item(key: str) -> Optional[str]:
    """Return the value stored under key, or None.

    Reads never create the storage file.
    """
    if not get_db_path().exists():
        return None
    with get_connection() as conn:
        row = conn.execute(
            "SELECT value FROM storage WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None


def set_item(key: str, value: str) -> None:
    """Store value under key, replacing any previous value."""
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO storage (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value),
        )


def remove_item(key: str) -> bool:
    """Delete key. Returns True if something was removed."""
    with get_connection() as conn:
        cursor = conn.execute("DELETE FROM storage WHERE key = ?", (key,))
        return cursor.rowcount > 0


def clear() -> None:
    """Remove every stored item."""
    with get_connection() as conn:
        conn.execute("DELETE FROM storage")
