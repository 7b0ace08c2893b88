"""Account credit balances and a SQLite implementation."""
from __future__ import annotations

import sqlite3
import time
from pathlib import Path

from logic.errors import StoreError


class CreditsStore:
    """Server-side source of truth for credit balances."""

    def get_credits(self, user_id: str) -> int:
        raise NotImplementedError

    def set_credits(self, user_id: str, credits: int) -> int:
        raise NotImplementedError

    def decrement_credits(self, user_id: str) -> int:
        """Atomically spend one credit and return the new balance.

        Stores without an atomic path leave this unimplemented and callers fall
        back to ``get``/``set``.
        """

        raise NotImplementedError

    def add_credits(self, user_id: str, amount: int) -> int:
        raise NotImplementedError


class SQLiteCreditsStore(CreditsStore):
    """Profiles table keyed by user id; unknown users start with a fixed grant."""

    def __init__(self, db_path: str | Path = "data/tryon.db", starting_credits: int = 10) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.starting_credits = starting_credits
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    credits INTEGER NOT NULL CHECK (credits >= 0),
                    updated_at REAL
                );
                """
            )

    def _ensure_profile(self, conn: sqlite3.Connection, user_id: str) -> None:
        conn.execute(
            "INSERT OR IGNORE INTO profiles(user_id, credits, updated_at) VALUES (?, ?, ?)",
            (user_id, self.starting_credits, time.time()),
        )

    def _read(self, conn: sqlite3.Connection, user_id: str) -> int:
        row = conn.execute("SELECT credits FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        return int(row["credits"]) if row else 0

    def get_credits(self, user_id: str) -> int:
        try:
            with self._connect() as conn:
                self._ensure_profile(conn, user_id)
                return self._read(conn, user_id)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load credits: {exc}") from exc

    def set_credits(self, user_id: str, credits: int) -> int:
        if credits < 0:
            raise StoreError("Credit balance cannot be negative")
        try:
            with self._connect() as conn:
                self._ensure_profile(conn, user_id)
                conn.execute(
                    "UPDATE profiles SET credits = ?, updated_at = ? WHERE user_id = ?",
                    (credits, time.time(), user_id),
                )
                return self._read(conn, user_id)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not save credits: {exc}") from exc

    def decrement_credits(self, user_id: str) -> int:
        try:
            with self._connect() as conn:
                self._ensure_profile(conn, user_id)
                conn.execute(
                    "UPDATE profiles SET credits = MAX(credits - 1, 0), updated_at = ? WHERE user_id = ?",
                    (time.time(), user_id),
                )
                return self._read(conn, user_id)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not save credit usage: {exc}") from exc

    def add_credits(self, user_id: str, amount: int) -> int:
        if amount <= 0:
            raise StoreError("Top-up amount must be positive")
        try:
            with self._connect() as conn:
                self._ensure_profile(conn, user_id)
                conn.execute(
                    "UPDATE profiles SET credits = credits + ?, updated_at = ? WHERE user_id = ?",
                    (amount, time.time(), user_id),
                )
                return self._read(conn, user_id)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not add credits: {exc}") from exc


__all__ = ["CreditsStore", "SQLiteCreditsStore"]
