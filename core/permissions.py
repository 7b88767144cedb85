"""Permission keys and the server-declared module shapes.

Everything coming back from the access-control collaborator is parsed here.
Unknown permission keys are rejected rather than ignored; missing access flags
on a sub-module read as "no access".
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError

from .exceptions import MalformedAccessData, UnknownPermissionKey


class PermissionKey(str, Enum):
    VIEW_STUDENTS = "view_students"
    MANAGE_STUDENTS = "manage_students"
    VIEW_STAFF = "view_staff"
    MANAGE_STAFF = "manage_staff"
    VIEW_CLASSES = "view_classes"
    MANAGE_CLASSES = "manage_classes"
    VIEW_TIMETABLE = "view_timetable"
    MANAGE_TIMETABLE = "manage_timetable"
    VIEW_EVENTS = "view_events"
    MANAGE_EVENTS = "manage_events"
    VIEW_EXAMS = "view_exams"
    MANAGE_EXAMS = "manage_exams"
    VIEW_MARKS = "view_marks"
    MANAGE_MARKS = "manage_marks"
    VIEW_FEES = "view_fees"
    MANAGE_FEES = "manage_fees"
    VIEW_LIBRARY = "view_library"
    MANAGE_LIBRARY = "manage_library"
    VIEW_TRANSPORT = "view_transport"
    MANAGE_TRANSPORT = "manage_transport"
    VIEW_LEAVE = "view_leave"
    MANAGE_LEAVE = "manage_leave"
    VIEW_COMMUNICATION = "view_communication"
    MANAGE_COMMUNICATION = "manage_communication"
    VIEW_REPORTS = "view_reports"
    MANAGE_REPORTS = "manage_reports"
    VIEW_GALLERY = "view_gallery"
    MANAGE_GALLERY = "manage_gallery"
    VIEW_CERTIFICATES = "view_certificates"
    MANAGE_CERTIFICATES = "manage_certificates"
    VIEW_HOMEWORK = "view_homework"
    MANAGE_HOMEWORK = "manage_homework"
    VIEW_FINANCES = "view_finances"
    MANAGE_FINANCES = "manage_finances"
    VIEW_FRONT_OFFICE = "view_front_office"
    MANAGE_FRONT_OFFICE = "manage_front_office"
    VIEW_GATE_PASS = "view_gate_pass"
    MANAGE_GATE_PASS = "manage_gate_pass"
    VIEW_COPY_CHECKING = "view_copy_checking"
    MANAGE_COPY_CHECKING = "manage_copy_checking"
    VIEW_ATTENDANCE = "view_attendance"
    MANAGE_ATTENDANCE = "manage_attendance"
    VIEW_PASSWORDS = "view_passwords"
    MANAGE_PASSWORDS = "manage_passwords"
    VIEW_ROLES = "view_roles"
    MANAGE_ROLES = "manage_roles"


PERMISSION_SCOPES: Tuple[str, ...] = tuple(
    sorted({key.value.split("_", 1)[1] for key in PermissionKey})
)


def grants_for(scope: str, view: bool, edit: bool) -> List[PermissionKey]:
    """Permission keys implied by a sub-module grant within ``scope``."""
    keys: List[PermissionKey] = []
    if not scope or not (view or edit):
        return keys
    keys.append(PermissionKey(f"view_{scope}"))
    if edit:
        keys.append(PermissionKey(f"manage_{scope}"))
    return keys


class PermissionSet:
    """Immutable set of granted ``PermissionKey`` values."""

    __slots__ = ("_keys",)

    def __init__(self, keys: Iterable[PermissionKey] = ()):
        self._keys: FrozenSet[PermissionKey] = frozenset(PermissionKey(k) for k in keys)

    @classmethod
    def parse(cls, raw) -> "PermissionSet":
        if not isinstance(raw, (list, tuple, set, frozenset)):
            raise MalformedAccessData(f"Expected a list of permission keys, got {type(raw).__name__}")
        known = {k.value for k in PermissionKey}
        unknown = {str(k) for k in raw if str(k) not in known}
        if unknown:
            raise UnknownPermissionKey(unknown)
        return cls(PermissionKey(str(k)) for k in raw)

    def has(self, key) -> bool:
        if key is None:
            return False
        try:
            return PermissionKey(key) in self._keys
        except ValueError:
            return False

    def has_any(self, *keys) -> bool:
        return any(self.has(k) for k in keys)

    def __contains__(self, key) -> bool:
        return self.has(key)

    def __iter__(self) -> Iterator[PermissionKey]:
        return iter(sorted(self._keys, key=lambda k: k.value))

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __eq__(self, other) -> bool:
        return isinstance(other, PermissionSet) and self._keys == other._keys

    def __hash__(self) -> int:
        return hash(self._keys)

    def __repr__(self) -> str:
        return f"PermissionSet({sorted(k.value for k in self._keys)!r})"

    def as_list(self) -> List[str]:
        return [k.value for k in self]


PermissionSet.EMPTY = PermissionSet()


@dataclass(frozen=True)
class SubModule:
    name: str
    key: str
    route: str
    has_view_access: bool = False
    has_edit_access: bool = False


@dataclass(frozen=True)
class DynamicModule:
    module_key: str
    module_name: str
    display_order: int
    sub_modules: Tuple[SubModule, ...] = ()

    @property
    def viewable_sub_modules(self) -> Tuple[SubModule, ...]:
        return tuple(s for s in self.sub_modules if s.has_view_access)


# ── wire payloads ────────────────────────────────────────────────────────────


class _SubModulePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    key: str
    route: str
    has_view_access: Optional[StrictBool] = False
    has_edit_access: Optional[StrictBool] = False


class _ModulePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    module_key: str
    module_name: str
    display_order: int = 0
    sub_modules: List[_SubModulePayload] = []


def parse_modules(raw) -> Tuple[DynamicModule, ...]:
    """Parse the ``modules-for`` payload into ``DynamicModule`` records."""
    if not isinstance(raw, list):
        raise MalformedAccessData(f"Expected a list of modules, got {type(raw).__name__}")
    try:
        payloads = [_ModulePayload.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise MalformedAccessData(f"Invalid module payload: {exc.error_count()} error(s)") from exc

    return tuple(
        DynamicModule(
            module_key=p.module_key,
            module_name=p.module_name,
            display_order=p.display_order,
            sub_modules=tuple(
                SubModule(
                    name=s.name,
                    key=s.key,
                    route=s.route,
                    has_view_access=bool(s.has_view_access),
                    has_edit_access=bool(s.has_edit_access),
                )
                for s in p.sub_modules
            ),
        )
        for p in payloads
    )
