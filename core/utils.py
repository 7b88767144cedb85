import logging
from dataclasses import dataclass
from typing import List, Optional

from .identity import SessionIdentityProvider, UserIdentity
from .menu_order import DragReorderController, OrderManager
from .navigation import EffectiveMenu, always_visible_menu, base_path_for, compose_for
from .resolver import PermissionResolver, ResolvedAccess
from .storage import KeyValueStore, get_store

logger = logging.getLogger(__name__)


@dataclass
class SidebarState:
    identity: UserIdentity
    school_code: str
    access: ResolvedAccess
    menu: EffectiveMenu
    order: List[str]
    base_path: str
    store: KeyValueStore

    @property
    def drag(self) -> DragReorderController:
        return DragReorderController(self.store, self.school_code, OrderManager(self.store, self.school_code))


def resolve_request_access(request, client=None) -> ResolvedAccess:
    """Resolve access once per request; later callers reuse the snapshot."""
    cached = getattr(request, "_nav_access", None)
    if cached is not None:
        return cached
    resolver = PermissionResolver(SessionIdentityProvider(request), client=client)
    access = resolver.resolve_sync()
    request._nav_access = access
    return access


def current_school_code(request, identity: Optional[UserIdentity] = None) -> str:
    return getattr(request, "school_code", None) or getattr(identity, "school_code", "") or ""


def load_sidebar_state(request, school_code: Optional[str] = None, *, client=None, store=None) -> Optional[SidebarState]:
    """Run identity -> access -> menu -> order for this request."""
    identity = SessionIdentityProvider(request).current()
    if identity is None:
        return None
    school_code = school_code or current_school_code(request, identity)

    access = resolve_request_access(request, client=client)
    menu = compose_for(identity, access)
    if access.failed:
        logger.info("Access for %s only partly resolved; stored order left as is", identity.id)
    store = store or get_store(request)
    order = OrderManager(store, school_code).resolve(menu.ids, complete=access.is_complete)

    return SidebarState(
        identity=identity,
        school_code=school_code,
        access=access,
        menu=menu,
        order=order,
        base_path=base_path_for(identity, school_code),
        store=store,
    )


def fallback_sidebar_state(request, school_code: Optional[str] = None) -> Optional[SidebarState]:
    """Always-visible menu in catalog order, with nothing persisted."""
    identity = SessionIdentityProvider(request).current()
    if identity is None:
        return None
    school_code = school_code or current_school_code(request, identity)
    menu = always_visible_menu(identity)
    return SidebarState(
        identity=identity,
        school_code=school_code,
        access=ResolvedAccess(is_admin=False),
        menu=menu,
        order=list(menu.ids),
        base_path=base_path_for(identity, school_code),
        store=get_store(request),
    )
