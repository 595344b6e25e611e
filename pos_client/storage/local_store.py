"""Terminal-side persisted state"""

import json
import logging
import os
from typing import Any, Optional

from ..models import HeldTransaction, PendingPayment

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Small key/value store for JSON documents.

    Kept in memory, and written through to ``path`` when one is given so
    the terminal's state survives a restart.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: dict[str, Any] = {}

        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                self._data = json.load(f)
            logger.info(f"Loaded local state from {path}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def items(self, prefix: str = ""):
        return [(k, v) for k, v in self._data.items() if k.startswith(prefix)]

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        if not self.path:
            return
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.replace(tmp_path, self.path)


class HoldMirror:
    """Local copy of held transactions for display and resume"""

    KEY = "holdItems"

    def __init__(self, store: LocalStore):
        self.store = store

    def _load(self) -> list[HeldTransaction]:
        return [HeldTransaction.model_validate(item) for item in self.store.get(self.KEY, [])]

    def _save(self, holds: list[HeldTransaction]) -> None:
        self.store.set(
            self.KEY,
            [hold.model_dump(mode="json", by_alias=True) for hold in holds],
        )

    def add(self, hold: HeldTransaction) -> None:
        holds = [h for h in self._load() if h.id != hold.id]
        holds.append(hold)
        self._save(holds)

    def get(self, hold_id: int) -> Optional[HeldTransaction]:
        return next((h for h in self._load() if h.id == hold_id), None)

    def remove(self, hold_id: int) -> bool:
        holds = self._load()
        remaining = [h for h in holds if h.id != hold_id]
        if len(remaining) == len(holds):
            return False
        self._save(remaining)
        return True

    def categories(self) -> list[str]:
        seen: list[str] = []
        for hold in self._load():
            if hold.category not in seen:
                seen.append(hold.category)
        return ["All", *seen]

    def list(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[HeldTransaction]:
        """List holds, optionally filtered by name/id text and category"""
        holds = self._load()

        if search:
            query = search.lower()
            holds = [
                h for h in holds
                if query in h.menu_item_name.lower()
                or query in str(h.id)
                or query in str(h.menu_item_id)
            ]

        if category and category != "All":
            holds = [h for h in holds if h.category == category]

        return holds


class PendingPaymentStore:
    """Pending GCash payment snapshots keyed by reference id"""

    PREFIX = "pendingPayment:"

    def __init__(self, store: LocalStore):
        self.store = store

    def save(self, snapshot: PendingPayment) -> None:
        self.store.set(
            self.PREFIX + snapshot.reference_id,
            snapshot.model_dump(mode="json", by_alias=True),
        )

    def get(self, reference_id: str) -> Optional[PendingPayment]:
        data = self.store.get(self.PREFIX + reference_id)
        return PendingPayment.model_validate(data) if data else None

    def delete(self, reference_id: str) -> None:
        self.store.delete(self.PREFIX + reference_id)

    def list(self) -> list[PendingPayment]:
        return [
            PendingPayment.model_validate(value)
            for _, value in self.store.items(self.PREFIX)
        ]
