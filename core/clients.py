"""Clients for the access-control collaborator.

Both clients return the raw payloads of the two GET contracts; parsing into
``PermissionSet`` / ``DynamicModule`` happens in the resolver so that local and
remote data go through the same boundary checks.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx
from asgiref.sync import sync_to_async
from django.conf import settings
from django.contrib.auth import get_user_model

from .exceptions import AccessFetchError

logger = logging.getLogger(__name__)


class AccessControlClient(Protocol):
    async def fetch_permissions(self, user_id: str):
        ...

    async def fetch_modules(self, user_id: str):
        ...


class LocalAccessControlClient:
    """Reads grants straight from the ORM of this process."""

    def _user(self, user_id):
        User = get_user_model()
        try:
            return User.objects.get(pk=user_id)
        except (User.DoesNotExist, ValueError) as exc:
            raise AccessFetchError(f"Unknown user {user_id!r}", status_code=404) from exc

    def _permissions(self, user_id):
        from .access_control import permissions_for

        return permissions_for(self._user(user_id))

    def _modules(self, user_id):
        from .access_control import modules_for

        return modules_for(self._user(user_id))

    async def fetch_permissions(self, user_id: str):
        return await sync_to_async(self._permissions)(user_id)

    async def fetch_modules(self, user_id: str):
        return await sync_to_async(self._modules)(user_id)


class HttpAccessControlClient:
    """Talks to a remote access-control service.

    No timeout is applied; a request that never answers keeps the menu in its
    loading state.
    """

    def __init__(self, base_url: str, *, headers: Optional[dict] = None, transport=None):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.transport = transport

    async def _get(self, path: str):
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                headers=self.headers, timeout=None, transport=self.transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise AccessFetchError(
                f"{url} answered {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise AccessFetchError(f"{url} failed: {exc}") from exc
        except ValueError as exc:
            raise AccessFetchError(f"{url} returned invalid JSON") from exc

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def fetch_permissions(self, user_id: str):
        return await self._get(f"/api/access/{user_id}/permissions/")

    async def fetch_modules(self, user_id: str):
        return await self._get(f"/api/access/{user_id}/modules/")


def get_access_client() -> AccessControlClient:
    conf = getattr(settings, "NAVIGATION", {})
    kind = conf.get("ACCESS_CLIENT", "local")
    if kind == "http":
        base_url = conf.get("ACCESS_SERVICE_URL") or ""
        if not base_url:
            raise AccessFetchError("NAVIGATION['ACCESS_SERVICE_URL'] is not configured")
        return HttpAccessControlClient(base_url)
    if kind != "local":
        logger.warning("Unknown NAVIGATION['ACCESS_CLIENT']=%r; using local client", kind)
    return LocalAccessControlClient()
