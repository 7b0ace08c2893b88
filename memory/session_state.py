"""Per-user application state and the registry the HTTP layer looks it up in."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from logic.display_resolver import active_garment_ids, available_pose_keys, resolve_display_image
from logic.outfit_history import OutfitHistory
from memory.credit_ledger import CreditLedger
from models.saved_looks import SavedModel, SavedOutfit
from models.taxonomy import POSE_INSTRUCTIONS
from models.wardrobe import default_wardrobe
from models.wardrobe_item import WardrobeItem


@dataclass
class Notice:
    """Transient message shown to the user as a toast."""

    message: str
    level: str = "error"

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message}


@dataclass
class TryOnSession:
    """All mutable state of one try-on session.

    Mutations go through :class:`agents.orchestrator.GenerationOrchestrator`;
    the session itself only answers questions about the current state.
    """

    user_id: str
    ledger: CreditLedger
    session_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: float = field(default_factory=time.time)
    base_model_url: Optional[str] = None
    history: OutfitHistory = field(default_factory=OutfitHistory)
    pose_index: int = 0
    wardrobe: List[WardrobeItem] = field(default_factory=default_wardrobe)
    saved_models: List[SavedModel] = field(default_factory=list)
    saved_outfits: List[SavedOutfit] = field(default_factory=list)
    _busy: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def try_acquire(self) -> bool:
        """Claim the single in-flight slot; False when another action holds it."""

        return self._busy.acquire(blocking=False)

    def release(self) -> None:
        self._busy.release()

    @property
    def current_pose(self) -> str:
        return POSE_INSTRUCTIONS[self.pose_index]

    @property
    def display_image_url(self) -> Optional[str]:
        return resolve_display_image(
            self.history.layers, self.history.current_index, self.current_pose, self.base_model_url
        )

    @property
    def available_pose_keys(self) -> List[str]:
        return available_pose_keys(self.history.layers, self.history.current_index)

    @property
    def active_garment_ids(self) -> List[str]:
        return active_garment_ids(self.history.layers, self.history.current_index)

    def find_wardrobe_item(self, item_id: str) -> Optional[WardrobeItem]:
        return next((item for item in self.wardrobe if item.id == item_id), None)

    def remember_garment(self, garment: WardrobeItem) -> None:
        if self.find_wardrobe_item(garment.id) is None:
            self.wardrobe.append(garment)

    def reset(self) -> None:
        """Drop the model and its history, as when starting over."""

        self.base_model_url = None
        self.history = OutfitHistory()
        self.pose_index = 0

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "credits": self.ledger.balance,
            "busy": self.busy,
            "base_model_url": self.base_model_url,
            "display_image_url": self.display_image_url,
            "current_index": self.history.current_index,
            "pose_index": self.pose_index,
            "current_pose": self.current_pose,
            "available_pose_keys": self.available_pose_keys,
            "active_garment_ids": self.active_garment_ids,
            "layers": self.history.to_layers(),
            "wardrobe": [item.to_dict() for item in self.wardrobe],
        }


class SessionRegistry:
    """Thread-safe map of live sessions."""

    def __init__(self) -> None:
        self._sessions: Dict[str, TryOnSession] = {}
        self._lock = threading.Lock()

    def add(self, session: TryOnSession) -> TryOnSession:
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[TryOnSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["Notice", "SessionRegistry", "TryOnSession"]
