"""Key/value stores for menu preferences.

Keys are per tenant: ``menu-order-<school>`` holds the list of entry ids,
``drag-enabled-<school>`` the reorder opt-in flag.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Protocol

from django.conf import settings
from django.db import DatabaseError

from .exceptions import StorageUnavailable

SESSION_PREFIX = "nav:"


def order_key(school_code: str) -> str:
    return f"menu-order-{school_code}"


def drag_key(school_code: str) -> str:
    return f"drag-enabled-{school_code}"


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryStore:
    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key, default=None):
        return copy.deepcopy(self._data.get(key, default))

    def set(self, key, value):
        self._data[key] = copy.deepcopy(value)

    def remove(self, key):
        self._data.pop(key, None)


class SessionStore:
    """Keeps preferences in the Django session (anonymous or fallback use)."""

    def __init__(self, session):
        self.session = session

    def get(self, key, default=None):
        try:
            return self.session.get(SESSION_PREFIX + key, default)
        except Exception as exc:
            raise StorageUnavailable(f"Session read failed for {key}") from exc

    def set(self, key, value):
        try:
            self.session[SESSION_PREFIX + key] = value
        except Exception as exc:
            raise StorageUnavailable(f"Session write failed for {key}") from exc

    def remove(self, key):
        try:
            self.session.pop(SESSION_PREFIX + key, None)
        except Exception as exc:
            raise StorageUnavailable(f"Session write failed for {key}") from exc


class ModelStore:
    """Durable per-user store on top of ``MenuPreference``."""

    def __init__(self, user):
        self.user = user

    def get(self, key, default=None):
        from .models import MenuPreference

        try:
            pref = MenuPreference.objects.filter(user=self.user, key=key).first()
        except DatabaseError as exc:
            raise StorageUnavailable(f"Could not read {key}") from exc
        return default if pref is None else pref.value

    def set(self, key, value):
        from .models import MenuPreference

        try:
            MenuPreference.objects.update_or_create(
                user=self.user, key=key, defaults={"value": value}
            )
        except DatabaseError as exc:
            raise StorageUnavailable(f"Could not write {key}") from exc

    def remove(self, key):
        from .models import MenuPreference

        try:
            MenuPreference.objects.filter(user=self.user, key=key).delete()
        except DatabaseError as exc:
            raise StorageUnavailable(f"Could not delete {key}") from exc


def get_store(request) -> KeyValueStore:
    """Pick the configured store for this request."""
    kind = getattr(settings, "NAVIGATION", {}).get("STORE", "model")
    user = getattr(request, "user", None)
    if kind == "model" and user is not None and user.is_authenticated:
        return ModelStore(user)
    if kind == "memory":
        store = getattr(request, "_nav_store", None)
        if store is None:
            store = request._nav_store = InMemoryStore()
        return store
    return SessionStore(request.session)
