"""Route and search projection of the ordered effective menu."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .navigation import EffectiveMenu, MenuEntry, MenuItem


@dataclass(frozen=True)
class RouteRule:
    entry_id: str
    sub_key: Optional[str]
    path: str
    exact: bool = False

    def matches(self, current: str) -> bool:
        if current == self.path:
            return True
        return not self.exact and current.startswith(self.path + "/")


@dataclass(frozen=True)
class ActiveMatch:
    entry_id: str
    sub_key: Optional[str] = None


def _normalise(path: str) -> str:
    path = (path or "").split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


class RouteTable:
    """Entry id -> path rules, built once per ordered menu."""

    def __init__(self, entries: Iterable[MenuEntry], base_path: str):
        self.base_path = base_path.rstrip("/")
        rules: List[RouteRule] = []
        for entry in entries:
            if entry.opens_inline_panel:
                continue
            if entry.route is not None:
                rules.append(
                    RouteRule(entry.id, None, self._full(entry.route), exact=entry.route == "")
                )
            for item in entry.sub_items:
                rules.append(RouteRule(entry.id, item.key, self._full(item.route), exact=item.route == ""))
        self.rules: Tuple[RouteRule, ...] = tuple(rules)

    def _full(self, route: str) -> str:
        return _normalise(self.base_path + route)

    def match(self, path: str) -> Optional[ActiveMatch]:
        current = _normalise(path)
        best = None
        best_key = None
        for rule in self.rules:
            if not rule.matches(current):
                continue
            # longer path wins; on a tie the sub-item beats its parent
            key = (len(rule.path), rule.sub_key is not None)
            if best_key is None or key > best_key:
                best, best_key = rule, key
        if best is None:
            return None
        return ActiveMatch(best.entry_id, best.sub_key)


def text_matches(query: str, *values: Optional[str]) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return False
    return any(needle in (v or "").lower() for v in values)


def entry_matches(entry: MenuEntry, query: str) -> bool:
    return text_matches(query, entry.label, entry.route)


def item_matches(item: MenuItem, query: str) -> bool:
    return text_matches(query, item.label, item.route)


def filter_menu(entries: Sequence[MenuEntry], query: str) -> List[Tuple[MenuEntry, Tuple[MenuItem, ...]]]:
    """Keep entries matching ``query`` themselves or through a sub-item."""
    if not (query or "").strip():
        return [(e, e.sub_items) for e in entries]

    result = []
    for entry in entries:
        if entry_matches(entry, query):
            result.append((entry, entry.sub_items))
            continue
        items = tuple(i for i in entry.sub_items if item_matches(i, query))
        if items:
            result.append((entry, items))
    return result


@dataclass
class ExpansionState:
    """User toggles; forced expansion (active child, search hit) overrides them."""

    toggles: Dict[str, bool] = field(default_factory=dict)

    def toggle(self, entry_id: str) -> bool:
        self.toggles[entry_id] = not self.toggles.get(entry_id, False)
        return self.toggles[entry_id]

    def set(self, entry_id: str, expanded: bool) -> None:
        self.toggles[entry_id] = bool(expanded)

    def is_expanded(self, entry_id: str, forced: bool = False) -> bool:
        return forced or self.toggles.get(entry_id, False)

    @classmethod
    def from_ids(cls, ids: Iterable[str]) -> "ExpansionState":
        return cls({i: True for i in ids if i})


def auto_expanded(entry: MenuEntry, active: Optional[ActiveMatch], query: str) -> bool:
    if active is not None and active.entry_id == entry.id and active.sub_key is not None:
        return True
    if (query or "").strip():
        return entry_matches(entry, query) or any(item_matches(i, query) for i in entry.sub_items)
    return False


@dataclass(frozen=True)
class NavigationRequest:
    href: str


@dataclass(frozen=True)
class OpenPanel:
    entry_id: str


def select_entry(
    entry: MenuEntry, base_path: str, sub_route: Optional[str] = None
) -> Optional[Union[NavigationRequest, OpenPanel]]:
    """What selecting an entry (or one of its sub-items) asks the shell to do.

    ``None`` means the entry only groups sub-items and just toggles.
    """
    base = base_path.rstrip("/")
    if entry.opens_inline_panel:
        return OpenPanel(entry.id)
    if sub_route is not None:
        if not any(i.route == sub_route for i in entry.sub_items):
            return None
        return NavigationRequest(base + sub_route or "/")
    if entry.route is None:
        return None
    return NavigationRequest(base + entry.route or "/")


@dataclass(frozen=True)
class SidebarSubItem:
    key: str
    label: str
    href: str
    active: bool = False
    can_edit: bool = False

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "href": self.href,
            "active": self.active,
            "can_edit": self.can_edit,
        }


@dataclass(frozen=True)
class SidebarItem:
    id: str
    label: str
    icon: str
    href: Optional[str]
    panel: Optional[str]
    active: bool
    expanded: bool
    draggable: bool
    sub_items: Tuple[SidebarSubItem, ...] = ()

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "icon": self.icon,
            "href": self.href,
            "panel": self.panel,
            "active": self.active,
            "expanded": self.expanded,
            "draggable": self.draggable,
            "sub_items": [s.as_dict() for s in self.sub_items],
        }


def build_sidebar(
    menu: EffectiveMenu,
    order: Sequence[str],
    base_path: str,
    path: str = "",
    query: str = "",
    *,
    collapsed: bool = False,
    drag_enabled: bool = False,
    expansion: Optional[ExpansionState] = None,
) -> List[SidebarItem]:
    expansion = expansion or ExpansionState()
    base = base_path.rstrip("/")
    entries = menu.ordered(order)
    active = RouteTable(entries, base).match(path) if path else None

    items = []
    for entry, sub_items in filter_menu(entries, query):
        action = select_entry(entry, base)
        is_active = active is not None and active.entry_id == entry.id
        subs = tuple(
            SidebarSubItem(
                key=i.key,
                label=i.label,
                href=base + i.route or "/",
                active=is_active and active.sub_key == i.key,
                can_edit=i.has_edit_access,
            )
            for i in sub_items
        )
        items.append(
            SidebarItem(
                id=entry.id,
                label=entry.label,
                icon=entry.icon,
                href=action.href if isinstance(action, NavigationRequest) else None,
                panel=action.entry_id if isinstance(action, OpenPanel) else None,
                active=is_active,
                expanded=bool(subs) and expansion.is_expanded(entry.id, auto_expanded(entry, active, query)),
                draggable=drag_enabled and not collapsed,
                sub_items=subs,
            )
        )
    return items
