"""Central registry for sidebar capabilities.

This registry is used by:
- The menu composer to build the effective sidebar for an identity
- The access-control layer to seed ``Module``/``SubModule`` rows
- The route table that decides which entry is active

Conventions:
- Routes are relative to the tenant base path (``/dashboard/<school>`` for
  administrators, ``/teacher/<school>`` for teachers, ...). ``""`` is the base
  itself.
- An entry id is the first segment of its route (``/fees/v2/dashboard`` ->
  ``fees``); the base route is ``home``. Grouping entries without a route and
  inline panels carry an explicit id.
- ``required_permission`` / ``required_view_permission`` both ``None`` means the
  entry is always visible, except for ids listed in ``ADMIN_ONLY_IDS``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .permissions import PermissionKey as P


@dataclass(frozen=True)
class SubCapability:
    key: str
    label: str
    route: str
    required_permission: Optional[P] = None


@dataclass(frozen=True)
class CapabilityEntry:
    id: str
    label: str
    icon: str  # font-awesome icon class
    route: Optional[str]
    required_permission: Optional[P] = None
    required_view_permission: Optional[P] = None
    opens_inline_panel: bool = False
    sub_capabilities: Tuple[SubCapability, ...] = ()

    @property
    def always_visible(self) -> bool:
        return self.required_permission is None and self.required_view_permission is None


@dataclass(frozen=True)
class ModuleConfig:
    key: str
    name: str
    scope: str
    order: int
    sub_modules: Tuple[Tuple[str, str, str], ...]  # (key, name, route)


def entry_id_for_route(route: Optional[str]) -> str:
    """Derive the stable entry id for a route relative to the tenant base."""
    if not route:
        return "home"
    segment = route.strip("/").split("/", 1)[0]
    return segment or "home"


# Modules as declared to the access-control layer; order mirrors the admin sidebar.
MODULE_CONFIG: Tuple[ModuleConfig, ...] = (
    ModuleConfig("student_management", "Student Management", "students", 1, (
        ("add_student", "Add Student", "/students/add"),
        ("student_directory", "Student Directory", "/students/directory"),
        ("student_attendance", "Student Attendance", "/students/attendance"),
        ("mark_attendance", "Mark Attendance", "/students/mark-attendance"),
        ("bulk_import_students", "Bulk Import Students", "/students/bulk-import"),
        ("student_siblings", "Student Siblings", "/students/siblings"),
    )),
    ModuleConfig("fee_management", "Fee Management", "fees", 2, (
        ("fee_dashboard", "Fee Dashboard", "/fees/v2/dashboard"),
        ("fee_heads", "Fee Heads", "/fees/v2/fee-heads"),
        ("fee_structures", "Fee Structures", "/fees/v2/fee-structures"),
        ("fee_collection", "Collect Payment", "/fees/v2/collection"),
        ("fee_statements", "Student Fee Statements", "/fees/statements"),
        ("discounts_fines", "Discounts & Fines", "/fees/discounts-fines"),
        ("fee_reports", "Fee Reports", "/fees/reports"),
    )),
    ModuleConfig("staff_management", "Staff Management", "staff", 3, (
        ("staff_directory", "Staff Directory", "/staff/directory"),
        ("add_staff", "Add Staff", "/staff/add"),
        ("bulk_staff_import", "Bulk Staff Import", "/staff/bulk-import"),
        ("bulk_photo_upload", "Bulk Photo Upload", "/staff/bulk-photo"),
        ("staff_attendance", "Staff Attendance", "/staff/attendance"),
        ("staff_attendance_report", "Staff Attendance Marking Report", "/staff/student-attendance-report"),
    )),
    ModuleConfig("classes", "Classes", "classes", 4, (
        ("classes_overview", "Classes Overview", "/classes/overview"),
        ("modify_classes", "Modify Classes", "/classes/modify"),
        ("subject_teachers", "Subject Teachers", "/classes/subject-teachers"),
        ("add_modify_subjects", "Add/Modify Subjects", "/classes/subjects"),
    )),
    ModuleConfig("timetable", "Timetable", "timetable", 5, (
        ("class_timetable", "Class Timetable", "/timetable/class"),
        ("teacher_timetable", "Teacher Timetable", "/timetable/teacher"),
        ("group_wise_timetable", "Group Wise Timetable", "/timetable/group-wise"),
    )),
    ModuleConfig("event_calendar", "Event/Calendar", "events", 6, (
        ("academic_calendar", "Academic Calendar", "/calendar/academic"),
        ("events", "Events", "/calendar/events"),
    )),
    ModuleConfig("examination", "Examination", "exams", 7, (
        ("examination_dashboard", "Examination Dashboard", "/examinations/dashboard"),
        ("create_examination", "Create Examination", "/examinations/create"),
        ("grade_scale", "Grade Scale", "/examinations/grade-scale"),
        ("report_card", "Report Card", "/examinations/report-card"),
        ("examination_reports", "Examination Reports", "/examinations/reports"),
    )),
    ModuleConfig("marks", "Marks", "marks", 8, (
        ("marks_dashboard", "Marks Dashboard", "/marks"),
        ("marks_entry", "Mark Entry", "/marks/entry"),
    )),
    ModuleConfig("library", "Library", "library", 9, (
        ("library_dashboard", "Library Dashboard", "/library/dashboard"),
        ("library_basics", "Library Basics", "/library/basics"),
        ("library_catalogue", "Library Catalogue", "/library/catalogue"),
        ("library_transactions", "Library Transactions", "/library/transactions"),
    )),
    ModuleConfig("transport", "Transport", "transport", 10, (
        ("transport_dashboard", "Transport Dashboard", "/transport/dashboard"),
        ("vehicles", "Vehicles", "/transport/vehicles"),
        ("stops", "Stops", "/transport/stops"),
        ("routes", "Routes", "/transport/routes"),
        ("student_route_mapping", "Student Route Mapping", "/transport/route-students"),
    )),
    ModuleConfig("leave_management", "Leave Management", "leave", 11, (
        ("leave_dashboard", "Leave Dashboard", "/leave/dashboard"),
        ("student_leave", "Student Leave", "/leave/student-leave"),
        ("staff_leave", "Staff Leave", "/leave/staff-leave"),
        ("leave_basics", "Leave Basics", "/leave/basics"),
    )),
    ModuleConfig("communication", "Communication", "communication", 12, (
        ("communication_main", "Communication", "/communication"),
    )),
    ModuleConfig("reports", "Report", "reports", 13, (
        ("reports_main", "Report", "/reports"),
    )),
    ModuleConfig("gallery", "Gallery", "gallery", 14, (
        ("gallery_main", "Gallery", "/gallery"),
    )),
    ModuleConfig("certificate_management", "Certificate Management", "certificates", 15, (
        ("certificate_dashboard", "Certificate Dashboard", "/certificates/dashboard"),
        ("new_certificate", "New Certificate", "/certificates/new"),
    )),
    ModuleConfig("digital_diary", "Digital Diary", "homework", 16, (
        ("digital_diary_main", "Digital Diary", "/homework"),
    )),
    ModuleConfig("expense_income", "Expense/Income", "finances", 17, (
        ("expense_income_main", "Expense/Income", "/expense-income"),
    )),
    ModuleConfig("front_office", "Front Office Management", "front_office", 18, (
        ("front_office_dashboard", "Front Office Dashboard", "/front-office"),
        ("gate_pass", "Gate Pass", "/front-office/gate-pass"),
        ("visitor_management", "Visitor Management", "/front-office/visitors"),
    )),
    ModuleConfig("copy_checking", "Copy Checking", "copy_checking", 19, (
        ("copy_checking_main", "Copy Checking", "/copy-checking"),
    )),
    ModuleConfig("attendance", "Attendance", "attendance", 20, (
        ("attendance_staff", "Staff Attendance", "/attendance/staff"),
    )),
)

MODULES_BY_KEY: Dict[str, ModuleConfig] = {m.key: m for m in MODULE_CONFIG}

MODULE_ICONS: Dict[str, str] = {
    "student_management": "fas fa-user-graduate",
    "fee_management": "fas fa-indian-rupee-sign",
    "staff_management": "fas fa-user-check",
    "classes": "fas fa-book-open",
    "timetable": "fas fa-calendar-days",
    "event_calendar": "fas fa-calendar",
    "examination": "fas fa-file-lines",
    "marks": "fas fa-chart-column",
    "library": "fas fa-book",
    "transport": "fas fa-bus",
    "leave_management": "fas fa-calendar-xmark",
    "communication": "fas fa-comments",
    "reports": "fas fa-file-alt",
    "gallery": "fas fa-image",
    "certificate_management": "fas fa-award",
    "digital_diary": "fas fa-book-bookmark",
    "expense_income": "fas fa-arrow-trend-up",
    "front_office": "fas fa-door-open",
    "copy_checking": "fas fa-clipboard-check",
    "attendance": "fas fa-calendar-check",
}
DEFAULT_ICON = "fas fa-circle"


def _module_entry(module_key: str, route: str) -> CapabilityEntry:
    module = MODULES_BY_KEY[module_key]
    view = P(f"view_{module.scope}")
    manage = P(f"manage_{module.scope}")
    return CapabilityEntry(
        id=entry_id_for_route(route),
        label=module.name,
        icon=MODULE_ICONS.get(module_key, DEFAULT_ICON),
        route=route,
        required_permission=manage,
        required_view_permission=view,
        sub_capabilities=tuple(
            SubCapability(key, name, sub_route, required_permission=view)
            for key, name, sub_route in module.sub_modules
        ),
    )


HOME = CapabilityEntry("home", "Home", "fas fa-house", "")
INSTITUTE_INFO = CapabilityEntry("institute-info", "Institute Info", "fas fa-building", "/institute-info")
MODULE_GUIDE = CapabilityEntry(
    "module-guide", "Module Guide", "fas fa-circle-question", None, opens_inline_panel=True
)
SETTINGS = CapabilityEntry("settings", "Settings", "fas fa-cog", "/settings")

# Role administration is admin-only even though it declares no permission.
ROLE_MANAGEMENT = CapabilityEntry(
    "role-management", "Role Management", "fas fa-user-shield", "/role-management",
    sub_capabilities=(
        SubCapability("roles", "Roles", "/role-management/roles"),
        SubCapability("staff_roles", "Staff Roles", "/role-management/staff"),
    ),
)
PASSWORD_MANAGER = CapabilityEntry("password", "Password Manager", "fas fa-key", "/password")

ADMIN_ONLY_IDS = frozenset({"role-management", "password"})


ADMIN_CATALOG: Tuple[CapabilityEntry, ...] = (
    HOME,
    INSTITUTE_INFO,
    ROLE_MANAGEMENT,
    PASSWORD_MANAGER,
    _module_entry("student_management", "/students"),
    _module_entry("staff_management", "/staff"),
    _module_entry("classes", "/classes"),
    _module_entry("timetable", "/timetable"),
    _module_entry("event_calendar", "/calendar"),
    _module_entry("examination", "/examinations"),
    _module_entry("marks", "/marks"),
    _module_entry("fee_management", "/fees"),
    _module_entry("library", "/library"),
    _module_entry("transport", "/transport"),
    _module_entry("leave_management", "/leave"),
    _module_entry("communication", "/communication"),
    _module_entry("reports", "/reports"),
    _module_entry("gallery", "/gallery"),
    _module_entry("certificate_management", "/certificates"),
    _module_entry("digital_diary", "/homework"),
    _module_entry("expense_income", "/expense-income"),
    _module_entry("front_office", "/front-office"),
    _module_entry("copy_checking", "/copy-checking"),
    _module_entry("attendance", "/attendance"),
    MODULE_GUIDE,
    SETTINGS,
)

# Teacher-specific entries shown to every staff member.
TEACHER_BASE: Tuple[CapabilityEntry, ...] = (
    HOME,
    CapabilityEntry("mark-attendance", "Mark Attendance", "fas fa-calendar", "/mark-attendance"),
    CapabilityEntry("my-attendance", "My Attendance", "fas fa-calendar", "/my-attendance"),
    CapabilityEntry("my-classes", "My Classes", "fas fa-user-check", "/my-classes"),
    CapabilityEntry("apply-leave", "Apply for Leave", "fas fa-calendar-xmark", "/apply-leave"),
    CapabilityEntry("my-leaves", "My Leaves", "fas fa-calendar", "/my-leaves"),
)


def _merge_catalogs(*catalogs: Tuple[CapabilityEntry, ...]) -> Tuple[CapabilityEntry, ...]:
    seen = set()
    merged: List[CapabilityEntry] = []
    for catalog in catalogs:
        for entry in catalog:
            if entry.id in seen:
                continue
            seen.add(entry.id)
            merged.append(entry)
    return tuple(merged)


STAFF_CATALOG: Tuple[CapabilityEntry, ...] = _merge_catalogs(TEACHER_BASE, ADMIN_CATALOG)

STUDENT_CATALOG: Tuple[CapabilityEntry, ...] = (
    HOME,
    CapabilityEntry("academics", "Academics", "fas fa-graduation-cap", None, sub_capabilities=(
        SubCapability("my_class", "My Class", "/class"),
        SubCapability("attendance", "Attendance", "/attendance"),
        SubCapability("examinations", "Examinations", "/examinations"),
        SubCapability("marks", "Marks", "/marks"),
        SubCapability("copy_checking", "Copy Checking", "/copy-checking"),
        SubCapability("academic_calendar", "Academic Calendar", "/calendar/academic"),
        SubCapability("diary", "Digital Diary", "/diary"),
        SubCapability("library", "Library", "/library"),
    )),
    CapabilityEntry("fees-transport", "Fees & Transport", "fas fa-indian-rupee-sign", None, sub_capabilities=(
        SubCapability("fees", "Fees", "/fees"),
        SubCapability("transport", "Transport Info", "/transport"),
    )),
    CapabilityEntry("requests", "Requests", "fas fa-calendar-xmark", None, sub_capabilities=(
        SubCapability("apply_leave", "Apply for Leave", "/apply-leave"),
        SubCapability("my_leaves", "My Leaves", "/my-leaves"),
        SubCapability("certificates", "Certificate Management", "/certificates"),
    )),
    CapabilityEntry("communication", "Communication", "fas fa-bell", None, sub_capabilities=(
        SubCapability("communication", "Communication", "/communication"),
        SubCapability("parent", "Parent Info", "/parent"),
    )),
    CapabilityEntry("media", "Media & Activities", "fas fa-image", None, sub_capabilities=(
        SubCapability("gallery", "Gallery", "/gallery"),
    )),
    CapabilityEntry("account", "Account", "fas fa-cog", None, sub_capabilities=(
        SubCapability("settings", "Settings", "/settings"),
        SubCapability("change_password", "Change Password", "/change-password"),
    )),
)

CATALOGS: Dict[str, Tuple[CapabilityEntry, ...]] = {
    "school_admin": ADMIN_CATALOG,
    "teacher": STAFF_CATALOG,
    "staff": STAFF_CATALOG,
    "student": STUDENT_CATALOG,
}


def catalog_for(identity) -> Tuple[CapabilityEntry, ...]:
    """Return the static catalog an identity's dashboard is built from."""
    if identity is None:
        return ()
    if identity.is_unrestricted_admin:
        return ADMIN_CATALOG
    return CATALOGS.get(identity.kind, STAFF_CATALOG)
