"""Permission resolution for the current identity.

Unrestricted administrators resolve immediately. Everyone else needs two
independent fetches (flat permission keys and server-declared modules); until
both have resolved the snapshot reports *loading* and carries no grants, so a
caller can never render more than the always-visible subset.

Every fetch is tagged with a ``FetchTicket``; results whose ticket does not
match the current identity and generation are dropped.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

from asgiref.sync import async_to_sync

from .exceptions import MalformedAccessData, NavigationError
from .identity import IdentityProvider, StaticIdentityProvider, UserIdentity
from .permissions import DynamicModule, PermissionSet, parse_modules

logger = logging.getLogger(__name__)


class FetchStatus(Enum):
    NOT_STARTED = "not_started"
    LOADING = "loading"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchState:
    status: FetchStatus = FetchStatus.NOT_STARTED
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def loading(cls) -> "FetchState":
        return cls(FetchStatus.LOADING)

    @classmethod
    def resolved(cls, value) -> "FetchState":
        return cls(FetchStatus.RESOLVED, value=value)

    @classmethod
    def failed(cls, error) -> "FetchState":
        return cls(FetchStatus.FAILED, error=str(error))


@dataclass(frozen=True)
class FetchTicket:
    identity_id: str
    generation: int


@dataclass(frozen=True)
class ResolvedAccess:
    is_admin: bool
    permissions: PermissionSet = field(default_factory=PermissionSet)
    modules: Tuple[DynamicModule, ...] = ()
    permissions_status: FetchStatus = FetchStatus.NOT_STARTED
    modules_status: FetchStatus = FetchStatus.NOT_STARTED

    @property
    def is_loading(self) -> bool:
        if self.is_admin:
            return False
        return self.permissions_status in (FetchStatus.NOT_STARTED, FetchStatus.LOADING) or (
            self.modules_status in (FetchStatus.NOT_STARTED, FetchStatus.LOADING)
        )

    @property
    def is_complete(self) -> bool:
        """Both fetches came back with usable data (failures do not count)."""
        if self.is_admin:
            return True
        return (
            self.permissions_status is FetchStatus.RESOLVED
            and self.modules_status is FetchStatus.RESOLVED
        )

    @property
    def failed(self) -> bool:
        return FetchStatus.FAILED in (self.permissions_status, self.modules_status)


ADMIN_ACCESS = ResolvedAccess(is_admin=True)


class PermissionResolver:
    def __init__(self, identity_provider: IdentityProvider, client=None):
        self.identity_provider = identity_provider
        self._client = client
        self._identity: Optional[UserIdentity] = None
        self._generation = 0
        self._permissions = FetchState()
        self._modules = FetchState()

    @property
    def client(self):
        if self._client is None:
            from .clients import get_access_client

            self._client = get_access_client()
        return self._client

    @property
    def identity(self) -> Optional[UserIdentity]:
        return self._identity

    @property
    def permissions_state(self) -> FetchState:
        return self._permissions

    @property
    def modules_state(self) -> FetchState:
        return self._modules

    def sync_identity(self) -> bool:
        """Re-read the identity; return ``True`` if it changed."""
        identity = self.identity_provider.current()
        if identity == self._identity:
            return False
        logger.debug(
            "Identity changed from %s to %s; resetting access state",
            getattr(self._identity, "id", None),
            getattr(identity, "id", None),
        )
        self._identity = identity
        self._generation += 1
        self._permissions = FetchState()
        self._modules = FetchState()
        return True

    def begin(self) -> Optional[FetchTicket]:
        """Mark both fetches loading and hand out the ticket they must carry."""
        self.sync_identity()
        identity = self._identity
        if identity is None or identity.is_unrestricted_admin:
            return None
        self._generation += 1
        self._permissions = FetchState.loading()
        self._modules = FetchState.loading()
        return FetchTicket(identity.id, self._generation)

    def _accepts(self, ticket: FetchTicket, what: str) -> bool:
        identity = self._identity
        if identity is None or ticket.identity_id != identity.id or ticket.generation != self._generation:
            logger.debug(
                "Discarding stale %s result for identity %s (generation %s)",
                what,
                ticket.identity_id,
                ticket.generation,
            )
            return False
        return True

    def deliver_permissions(self, ticket: FetchTicket, raw) -> bool:
        if not self._accepts(ticket, "permissions"):
            return False
        try:
            permissions = PermissionSet.parse(raw)
        except MalformedAccessData as exc:
            return self.fail_permissions(ticket, exc)
        self._permissions = FetchState.resolved(permissions)
        return True

    def deliver_modules(self, ticket: FetchTicket, raw) -> bool:
        if not self._accepts(ticket, "modules"):
            return False
        try:
            modules = parse_modules(raw)
        except MalformedAccessData as exc:
            return self.fail_modules(ticket, exc)
        self._modules = FetchState.resolved(modules)
        return True

    def fail_permissions(self, ticket: FetchTicket, error) -> bool:
        if not self._accepts(ticket, "permissions"):
            return False
        logger.warning("Permission fetch failed for identity %s: %s", ticket.identity_id, error)
        self._permissions = FetchState.failed(error)
        return True

    def fail_modules(self, ticket: FetchTicket, error) -> bool:
        if not self._accepts(ticket, "modules"):
            return False
        logger.warning("Module fetch failed for identity %s: %s", ticket.identity_id, error)
        self._modules = FetchState.failed(error)
        return True

    def snapshot(self) -> ResolvedAccess:
        identity = self._identity
        if identity is not None and identity.is_unrestricted_admin:
            return ADMIN_ACCESS

        access = ResolvedAccess(
            is_admin=False,
            permissions_status=self._permissions.status,
            modules_status=self._modules.status,
        )
        if access.is_loading:
            return access

        permissions = self._permissions.value if self._permissions.status is FetchStatus.RESOLVED else None
        modules = self._modules.value if self._modules.status is FetchStatus.RESOLVED else None
        return ResolvedAccess(
            is_admin=False,
            permissions=permissions or PermissionSet.EMPTY,
            modules=modules or (),
            permissions_status=access.permissions_status,
            modules_status=access.modules_status,
        )

    async def _fetch_permissions(self, ticket: FetchTicket):
        try:
            raw = await self.client.fetch_permissions(ticket.identity_id)
        except NavigationError as exc:
            self.fail_permissions(ticket, exc)
        except Exception as exc:
            logger.exception("Permission fetch for identity %s raised", ticket.identity_id)
            self.fail_permissions(ticket, exc)
        else:
            self.deliver_permissions(ticket, raw)

    async def _fetch_modules(self, ticket: FetchTicket):
        try:
            raw = await self.client.fetch_modules(ticket.identity_id)
        except NavigationError as exc:
            self.fail_modules(ticket, exc)
        except Exception as exc:
            logger.exception("Module fetch for identity %s raised", ticket.identity_id)
            self.fail_modules(ticket, exc)
        else:
            self.deliver_modules(ticket, raw)

    async def resolve(self) -> ResolvedAccess:
        ticket = self.begin()
        if ticket is not None:
            await asyncio.gather(self._fetch_permissions(ticket), self._fetch_modules(ticket))
        return self.snapshot()

    def resolve_sync(self) -> ResolvedAccess:
        return async_to_sync(self.resolve)()


async def resolve(identity: Optional[UserIdentity], client=None) -> ResolvedAccess:
    """One-shot resolution for a fixed identity."""
    resolver = PermissionResolver(StaticIdentityProvider(identity), client=client)
    return await resolver.resolve()
