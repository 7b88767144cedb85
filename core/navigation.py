"""Effective menu composition.

The static catalog from ``core.sidebar`` is combined with the resolved access
of the current identity. Administrators see the whole catalog; everyone else
sees the always-visible entries plus one entry per server-declared module
they can view.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple

from django.conf import settings

from .permissions import DynamicModule, PermissionKey, PermissionSet
from .sidebar import (
    ADMIN_ONLY_IDS,
    DEFAULT_ICON,
    MODULE_ICONS,
    CapabilityEntry,
    SubCapability,
    catalog_for,
    entry_id_for_route,
)

DEFAULT_BASE_PATHS = {
    "school_admin": "/dashboard/{school}",
    "teacher": "/teacher/{school}",
    "staff": "/staff/{school}",
    "student": "/student/{school}",
}


@dataclass(frozen=True)
class MenuItem:
    key: str
    label: str
    route: str
    has_view_access: bool = True
    has_edit_access: bool = False


@dataclass(frozen=True)
class MenuEntry:
    id: str
    label: str
    icon: str
    route: Optional[str]
    opens_inline_panel: bool = False
    sub_items: Tuple[MenuItem, ...] = ()
    source: str = "static"


@dataclass(frozen=True)
class EffectiveMenu:
    entries: Tuple[MenuEntry, ...] = ()

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(e.id for e in self.entries)

    def get(self, entry_id: str) -> Optional[MenuEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def ordered(self, order) -> List[MenuEntry]:
        by_id: Dict[str, MenuEntry] = {e.id: e for e in self.entries}
        return [by_id[i] for i in order if i in by_id]

    def __iter__(self) -> Iterator[MenuEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _manage_key(view_key: Optional[PermissionKey]) -> Optional[PermissionKey]:
    if view_key is None:
        return None
    return PermissionKey(view_key.value.replace("view_", "manage_", 1))


def _static_items(subs: Tuple[SubCapability, ...], permissions: Optional[PermissionSet]) -> Tuple[MenuItem, ...]:
    """``permissions=None`` means unrestricted."""
    items = []
    for sub in subs:
        if permissions is None:
            items.append(MenuItem(sub.key, sub.label, sub.route, True, True))
            continue
        if sub.required_permission is not None and not permissions.has(sub.required_permission):
            continue
        can_edit = sub.required_permission is None or permissions.has(_manage_key(sub.required_permission))
        items.append(MenuItem(sub.key, sub.label, sub.route, True, can_edit))
    return tuple(items)


def _static_entry(entry: CapabilityEntry, permissions: Optional[PermissionSet]) -> MenuEntry:
    return MenuEntry(
        id=entry.id,
        label=entry.label,
        icon=entry.icon,
        route=entry.route,
        opens_inline_panel=entry.opens_inline_panel,
        sub_items=_static_items(entry.sub_capabilities, permissions),
    )


def _dynamic_entry(module: DynamicModule) -> Optional[MenuEntry]:
    viewable = module.viewable_sub_modules
    if not viewable:
        return None
    entry_id = entry_id_for_route(viewable[0].route)
    return MenuEntry(
        id=entry_id,
        label=module.module_name,
        icon=MODULE_ICONS.get(module.module_key, DEFAULT_ICON),
        route=None if entry_id == "home" else f"/{entry_id}",
        sub_items=tuple(
            MenuItem(s.key, s.name, s.route, True, s.has_edit_access) for s in viewable
        ),
        source="dynamic",
    )


@lru_cache(maxsize=256)
def compose(
    catalog: Tuple[CapabilityEntry, ...],
    is_admin: bool,
    permissions: PermissionSet = PermissionSet.EMPTY,
    modules: Tuple[DynamicModule, ...] = (),
) -> EffectiveMenu:
    """Build the effective menu; identical inputs return the same object."""
    if is_admin:
        return EffectiveMenu(tuple(_static_entry(e, None) for e in catalog))

    entries: List[MenuEntry] = [
        _static_entry(e, permissions)
        for e in catalog
        if e.always_visible and e.id not in ADMIN_ONLY_IDS
    ]
    seen = {e.id for e in entries}

    for module in sorted(modules, key=lambda m: (m.display_order, m.module_key)):
        entry = _dynamic_entry(module)
        if entry is None or entry.id in seen or entry.id in ADMIN_ONLY_IDS:
            continue
        seen.add(entry.id)
        entries.append(entry)

    return EffectiveMenu(tuple(entries))


def compose_for(identity, access) -> EffectiveMenu:
    return compose(catalog_for(identity), access.is_admin, access.permissions, tuple(access.modules))


def always_visible_menu(identity) -> EffectiveMenu:
    """What a restricted user sees while nothing has been resolved."""
    return compose(catalog_for(identity), False, PermissionSet.EMPTY, ())


def base_path_for(identity, school_code: Optional[str] = None) -> str:
    """Tenant base path the catalog routes are relative to."""
    conf = getattr(settings, "NAVIGATION", {})
    paths = {**DEFAULT_BASE_PATHS, **conf.get("BASE_PATHS", {})}
    kind = "school_admin" if identity.is_unrestricted_admin else identity.kind
    template = paths.get(kind, paths["staff"])
    return template.format(school=school_code or identity.school_code).rstrip("/")
