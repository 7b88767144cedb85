"""Server side of the ``permissions-for`` / ``modules-for`` contracts.

Grants are merged in three passes, later passes winning:

1. default sub-modules every staff member sees (plus class/subject teacher
   extras; leadership gets none),
2. role permissions with view access,
3. per-staff overrides.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from .models import Profile, RolePermission, SchoolClass, StaffPermission, StaffRole, SubModule, SubjectAssignment
from .permissions import PermissionKey, grants_for

logger = logging.getLogger(__name__)

BASE_DEFAULT_SUB_MODULE_KEYS = (
    "attendance_staff",
    "staff_leave",
    "student_directory",
    "gallery_main",
    "staff_directory",
)
CLASS_TEACHER_SUB_MODULE_KEYS = (
    "mark_attendance",
    "marks_entry",
    "classes_overview",
)
SUBJECT_TEACHER_SUB_MODULE_KEYS = (
    "marks_entry",
)


@dataclass
class _Grant:
    sub_module: SubModule
    view: bool
    edit: bool
    source: str


def _profile(user):
    return Profile.objects.filter(user=user).select_related("school").first()


def is_class_teacher(user) -> bool:
    return SchoolClass.objects.filter(class_teacher=user).exists()


def _is_leadership(user, profile) -> bool:
    if profile is not None and profile.is_leadership:
        return True
    role_names = StaffRole.objects.filter(user=user, is_active=True).values_list("role__name", flat=True)
    return any("principal" in (name or "").lower() or "admin" in (name or "").lower() for name in role_names)


def default_sub_module_keys(user) -> List[str]:
    profile = _profile(user)
    if profile is not None and profile.role == "student":
        return []
    if _is_leadership(user, profile):
        return []

    keys = list(BASE_DEFAULT_SUB_MODULE_KEYS)
    if is_class_teacher(user):
        keys.extend(CLASS_TEACHER_SUB_MODULE_KEYS)
    elif SubjectAssignment.objects.filter(teacher=user).exists():
        keys.extend(SUBJECT_TEACHER_SUB_MODULE_KEYS)
    return list(dict.fromkeys(keys))


def _merged_grants(user) -> Dict[str, _Grant]:
    grants: Dict[str, _Grant] = {}
    defaults = set(default_sub_module_keys(user))

    active = SubModule.objects.filter(is_active=True, module__is_active=True).select_related("module")

    for sub in active.filter(key__in=defaults):
        grants[sub.key] = _Grant(sub, view=True, edit=False, source="default")

    role_ids = list(
        StaffRole.objects.filter(user=user, is_active=True, role__is_active=True).values_list("role_id", flat=True)
    )
    if role_ids:
        role_perms = (
            RolePermission.objects.filter(role_id__in=role_ids, view_access=True)
            .filter(sub_module__in=active)
            .select_related("sub_module__module")
        )
        for rp in role_perms:
            key = rp.sub_module.key
            previous = grants.get(key)
            grants[key] = _Grant(
                rp.sub_module,
                view=True,
                # several roles may grant the same sub-module; edit is additive
                edit=rp.edit_access or bool(previous and previous.source == "role" and previous.edit),
                source="role",
            )

    overrides = (
        StaffPermission.objects.filter(user=user)
        .filter(sub_module__in=active)
        .select_related("sub_module__module")
    )
    for sp in overrides:
        key = sp.sub_module.key
        if sp.view_access:
            grants[key] = _Grant(sp.sub_module, view=True, edit=sp.edit_access, source="staff")
        elif key not in defaults:
            grants.pop(key, None)

    logger.debug(
        "access_control: user=%s defaults=%s merged=%s",
        user.pk,
        sorted(defaults),
        sorted(grants),
    )
    return grants


def modules_for(user) -> List[dict]:
    """Return the ``DynamicModule`` payloads a user may see, grouped by module."""
    modules: Dict[str, dict] = {}
    for grant in _merged_grants(user).values():
        module = grant.sub_module.module
        record = modules.setdefault(
            module.key,
            {
                "module_key": module.key,
                "module_name": module.name,
                "display_order": module.display_order,
                "sub_modules": [],
            },
        )
        record["sub_modules"].append(
            {
                "name": grant.sub_module.name,
                "key": grant.sub_module.key,
                "route": grant.sub_module.route_path,
                "has_view_access": grant.view,
                "has_edit_access": grant.edit,
            }
        )

    ordered = sorted(modules.values(), key=lambda m: (m["display_order"], m["module_key"]))
    for record in ordered:
        record["sub_modules"].sort(key=lambda s: s["name"].lower())
    return ordered


def permissions_for(user) -> List[str]:
    """Flattened permission keys implied by the merged grants."""
    keys = set()
    for grant in _merged_grants(user).values():
        keys.update(grants_for(grant.sub_module.module.scope, grant.view, grant.edit))
    return sorted(k.value for k in keys)


def can(user, key: PermissionKey) -> bool:
    if user.is_superuser:
        return True
    profile = _profile(user)
    if profile is not None and profile.role == "school_admin":
        return True
    return key.value in permissions_for(user)
