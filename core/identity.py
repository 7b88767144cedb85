"""Who is looking at the dashboard.

The login flow writes a small identity record into the session
(see ``core.signals``); everything in the navigation pipeline reads it back
through an ``IdentityProvider`` so it can be swapped out in tests.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import ClassVar, Dict, Optional, Protocol, Type

logger = logging.getLogger(__name__)

SESSION_KEY = "identity"


@dataclass(frozen=True)
class UserIdentity:
    id: str
    display_name: str
    role_label: str
    school_code: str
    is_unrestricted_admin: bool = False

    kind: ClassVar[str] = ""


@dataclass(frozen=True)
class SchoolAdministrator(UserIdentity):
    is_unrestricted_admin: bool = True

    kind: ClassVar[str] = "school_admin"


@dataclass(frozen=True)
class Teacher(UserIdentity):
    kind: ClassVar[str] = "teacher"


@dataclass(frozen=True)
class StaffMember(UserIdentity):
    kind: ClassVar[str] = "staff"


@dataclass(frozen=True)
class Student(UserIdentity):
    kind: ClassVar[str] = "student"


IDENTITY_KINDS: Dict[str, Type[UserIdentity]] = {
    cls.kind: cls for cls in (SchoolAdministrator, Teacher, StaffMember, Student)
}

# Profile.role -> identity variant
ROLE_TO_KIND = {
    "school_admin": "school_admin",
    "principal": "staff",
    "vice_principal": "staff",
    "teacher": "teacher",
    "staff": "staff",
    "student": "student",
}


def identity_from_user(user, school_code: str = "") -> Optional[UserIdentity]:
    """Build the identity variant for an authenticated Django user."""
    if user is None or not getattr(user, "is_authenticated", False):
        return None

    profile = getattr(user, "profile", None)
    role = getattr(profile, "role", "") or ""
    if not school_code and profile is not None and profile.school_id:
        school_code = profile.school.code

    display_name = user.get_full_name() or user.get_username()
    role_label = profile.get_role_display() if profile is not None and role else "User"

    if user.is_superuser:
        return SchoolAdministrator(
            id=str(user.pk),
            display_name=display_name,
            role_label="Administrator",
            school_code=school_code,
        )

    cls = IDENTITY_KINDS[ROLE_TO_KIND.get(role, "staff")]
    return cls(
        id=str(user.pk),
        display_name=display_name,
        role_label=role_label,
        school_code=school_code,
    )


def identity_to_session(identity: UserIdentity) -> dict:
    data = asdict(identity)
    data["kind"] = identity.kind
    return data


def identity_from_session(data) -> Optional[UserIdentity]:
    """Rebuild an identity from its session payload; junk yields ``None``."""
    if not isinstance(data, dict):
        return None
    cls = IDENTITY_KINDS.get(data.get("kind"))
    if cls is None:
        logger.warning("Ignoring session identity with unknown kind %r", data.get("kind"))
        return None
    try:
        return cls(
            id=str(data["id"]),
            display_name=str(data.get("display_name") or ""),
            role_label=str(data.get("role_label") or ""),
            school_code=str(data.get("school_code") or ""),
            is_unrestricted_admin=bool(data.get("is_unrestricted_admin", cls is SchoolAdministrator)),
        )
    except KeyError:
        logger.warning("Ignoring session identity without an id")
        return None


class IdentityProvider(Protocol):
    def current(self) -> Optional[UserIdentity]:
        ...


class SessionIdentityProvider:
    """Reads the identity the login flow stored in ``request.session``."""

    def __init__(self, request):
        self.request = request

    def current(self) -> Optional[UserIdentity]:
        user = getattr(self.request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        identity = identity_from_session(self.request.session.get(SESSION_KEY))
        if identity is not None and identity.id != str(user.pk):
            # Session written for someone else (impersonation, re-login).
            logger.info(
                "Session identity %s does not match user %s; ignoring", identity.id, user.pk
            )
            return None
        return identity


class StaticIdentityProvider:
    """Holds an identity in memory; ``switch`` simulates logout/login."""

    def __init__(self, identity: Optional[UserIdentity] = None):
        self.identity = identity

    def current(self) -> Optional[UserIdentity]:
        return self.identity

    def switch(self, identity: Optional[UserIdentity]) -> None:
        self.identity = identity
