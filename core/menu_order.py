"""User-customisable ordering of top-level menu entries."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .exceptions import StorageUnavailable
from .storage import KeyValueStore, drag_key, order_key

logger = logging.getLogger(__name__)


def reconcile_order(effective_ids: Iterable[str], persisted: Optional[Iterable[str]]) -> List[str]:
    """Merge a stored order with the ids currently on the menu.

    Stored ids keep their relative order, ids missing from the store are
    appended in menu order and stored ids no longer on the menu are dropped.
    """
    effective = list(dict.fromkeys(effective_ids))
    present = set(effective)
    kept = [i for i in dict.fromkeys(persisted or ()) if i in present]
    known = set(kept)
    return kept + [i for i in effective if i not in known]


def move_entry(order: Sequence[str], active_id: str, over_id: str) -> List[str]:
    """Move ``active_id`` to the slot ``over_id`` occupied."""
    result = list(order)
    if active_id == over_id or active_id not in result or over_id not in result:
        return result
    old_index = result.index(active_id)
    new_index = result.index(over_id)
    result.insert(new_index, result.pop(old_index))
    return result


class OrderManager:
    def __init__(self, store: KeyValueStore, school_code: str):
        self.store = store
        self.school_code = school_code
        self.key = order_key(school_code)

    def load(self) -> Optional[List[str]]:
        value = self.store.get(self.key)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
            logger.debug("Ignoring malformed stored order for %s: %r", self.key, value)
            return None
        return value

    def persist(self, order: Sequence[str]) -> None:
        self.store.set(self.key, list(order))

    def reset(self) -> None:
        self.store.remove(self.key)

    @staticmethod
    def should_write(stored: Optional[List[str]], resolved: List[str], complete: bool) -> bool:
        if not complete:
            return False
        if stored == resolved:
            return False
        if stored and set(resolved) < set(stored):
            # transient partial menu; keep the fuller saved layout
            return False
        return True

    def resolve(self, effective_ids: Iterable[str], complete: bool = True) -> List[str]:
        effective = list(effective_ids)
        try:
            stored = self.load()
        except StorageUnavailable:
            logger.exception("Menu order unavailable for %s; using catalog order", self.school_code)
            return list(dict.fromkeys(effective))

        resolved = reconcile_order(effective, stored)
        if self.should_write(stored, resolved, complete):
            try:
                self.persist(resolved)
            except StorageUnavailable:
                logger.exception("Could not persist menu order for %s", self.school_code)
            else:
                logger.debug("Persisted reconciled order for %s: %s", self.school_code, resolved)
        else:
            logger.debug(
                "Order for %s not written (complete=%s, stored=%s, resolved=%s)",
                self.school_code,
                complete,
                stored,
                resolved,
            )
        return resolved


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragReorderController:
    """``Idle -> Dragging(id) -> Idle``; only top-level ids take part."""

    def __init__(self, store: KeyValueStore, school_code: str, order_manager: Optional[OrderManager] = None):
        self.store = store
        self.school_code = school_code
        self.order_manager = order_manager or OrderManager(store, school_code)
        self.state = DragState.IDLE
        self.active_id: Optional[str] = None

    @property
    def enabled(self) -> bool:
        try:
            return bool(self.store.get(drag_key(self.school_code), False))
        except StorageUnavailable:
            logger.exception("Drag flag unavailable for %s", self.school_code)
            return False

    def set_enabled(self, enabled: bool) -> bool:
        try:
            self.store.set(drag_key(self.school_code), bool(enabled))
        except StorageUnavailable:
            logger.exception("Could not store drag flag for %s", self.school_code)
            return False
        if not enabled:
            self.cancel()
        return True

    @property
    def dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def start(self, entry_id: str, order: Sequence[str], collapsed: bool = False) -> bool:
        if collapsed or not self.enabled or entry_id not in order:
            return False
        self.state = DragState.DRAGGING
        self.active_id = entry_id
        return True

    def cancel(self) -> None:
        self.state = DragState.IDLE
        self.active_id = None

    def drop(self, over_id: str, order: Sequence[str]) -> List[str]:
        if not self.dragging:
            return list(order)
        active_id = self.active_id
        self.cancel()

        new_order = move_entry(order, active_id, over_id)
        if new_order == list(order):
            logger.debug("Drop of %s onto %s ignored", active_id, over_id)
            return new_order
        try:
            self.order_manager.persist(new_order)
        except StorageUnavailable:
            logger.exception("Could not persist dragged order for %s", self.school_code)
        return new_order
