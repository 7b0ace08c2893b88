"""Saved models and outfits, scoped by user and newest first."""
from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from logic.errors import StoreError
from models.outfit import OutfitLayer
from models.saved_looks import SavedModel, SavedOutfit


class LooksStore:
    """Persistence interface for saved models and outfits."""

    def create_model(self, user_id: str, name: str, image_url: str) -> SavedModel:
        raise NotImplementedError

    def list_models(self, user_id: str) -> List[SavedModel]:
        raise NotImplementedError

    def delete_model(self, user_id: str, model_id: str) -> bool:
        raise NotImplementedError

    def create_outfit(
        self, user_id: str, name: str, thumbnail_url: str, layers: List[OutfitLayer]
    ) -> SavedOutfit:
        raise NotImplementedError

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[SavedOutfit]:
        raise NotImplementedError

    def list_outfits(self, user_id: str) -> List[SavedOutfit]:
        raise NotImplementedError

    def delete_outfit(self, user_id: str, outfit_id: str) -> bool:
        raise NotImplementedError


class SQLiteLooksStore(LooksStore):
    """Local SQLite-backed store; outfit layers are kept as a JSON column."""

    def __init__(self, database_path: str | Path = "data/tryon.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS saved_models (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    created_at REAL NOT NULL
                );
                CREATE TABLE IF NOT EXISTS saved_outfits (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    thumbnail_url TEXT NOT NULL,
                    outfit_data TEXT NOT NULL,
                    created_at REAL NOT NULL
                );
                """
            )

    @staticmethod
    def _row_to_model(row: sqlite3.Row) -> SavedModel:
        return SavedModel(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            image_url=row["image_url"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_outfit(row: sqlite3.Row) -> SavedOutfit:
        try:
            layers = [OutfitLayer.from_dict(layer) for layer in json.loads(row["outfit_data"] or "[]")]
        except (ValueError, TypeError, AttributeError) as exc:
            raise StoreError(f"Saved look {row['id']} has unreadable layers") from exc
        return SavedOutfit(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            thumbnail_url=row["thumbnail_url"],
            created_at=row["created_at"],
            layers=layers,
        )

    def create_model(self, user_id: str, name: str, image_url: str) -> SavedModel:
        model = SavedModel(id=str(uuid4()), user_id=user_id, name=name, image_url=image_url, created_at=time.time())
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO saved_models(id, user_id, name, image_url, created_at) VALUES (?, ?, ?, ?, ?)",
                    (model.id, model.user_id, model.name, model.image_url, model.created_at),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Couldn't save your model: {exc}") from exc
        return model

    def list_models(self, user_id: str) -> List[SavedModel]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM saved_models WHERE user_id = ? ORDER BY created_at DESC",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load your saved models: {exc}") from exc
        return [self._row_to_model(row) for row in rows]

    def delete_model(self, user_id: str, model_id: str) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM saved_models WHERE user_id = ? AND id = ?", (user_id, model_id)
                )
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise StoreError(f"Couldn't delete the model: {exc}") from exc

    def create_outfit(
        self, user_id: str, name: str, thumbnail_url: str, layers: List[OutfitLayer]
    ) -> SavedOutfit:
        outfit = SavedOutfit(
            id=str(uuid4()),
            user_id=user_id,
            name=name,
            thumbnail_url=thumbnail_url,
            created_at=time.time(),
            layers=list(layers),
        )
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO saved_outfits(id, user_id, name, thumbnail_url, outfit_data, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        outfit.id,
                        outfit.user_id,
                        outfit.name,
                        outfit.thumbnail_url,
                        json.dumps([layer.to_dict() for layer in outfit.layers]),
                        outfit.created_at,
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Couldn't save your look: {exc}") from exc
        return outfit

    def get_outfit(self, user_id: str, outfit_id: str) -> Optional[SavedOutfit]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM saved_outfits WHERE user_id = ? AND id = ?", (user_id, outfit_id)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load the look: {exc}") from exc
        return self._row_to_outfit(row) if row else None

    def list_outfits(self, user_id: str) -> List[SavedOutfit]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM saved_outfits WHERE user_id = ? ORDER BY created_at DESC",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not load your saved looks: {exc}") from exc
        return [self._row_to_outfit(row) for row in rows]

    def delete_outfit(self, user_id: str, outfit_id: str) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM saved_outfits WHERE user_id = ? AND id = ?", (user_id, outfit_id)
                )
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise StoreError(f"Couldn't delete the look: {exc}") from exc


__all__ = ["LooksStore", "SQLiteLooksStore"]
