from django.conf import settings
from django.contrib.auth.models import User
from django.db import models

from .permissions import PERMISSION_SCOPES

# ───────────────────────────────
#  Tenants
# ───────────────────────────────


class School(models.Model):
    """A tenant. ``code`` is the URL segment: ``/dashboard/<code>/...``."""

    code = models.SlugField(max_length=64, unique=True)
    name = models.CharField(max_length=200)
    logo_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"


# ───────────────────────────────
#  User Profile
# ───────────────────────────────


class Profile(models.Model):
    ROLE_CHOICES = [
        ("school_admin", "School Administrator"),
        ("principal", "Principal"),
        ("vice_principal", "Vice Principal"),
        ("teacher", "Teacher"),
        ("staff", "Staff"),
        ("student", "Student"),
    ]
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    school = models.ForeignKey(
        School, null=True, blank=True, on_delete=models.SET_NULL, related_name="profiles"
    )
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default="staff")
    designation = models.CharField(max_length=100, blank=True)

    def __str__(self):
        return f"{self.user.username} ({self.role})"

    @property
    def is_leadership(self):
        """Principals and vice principals get no default sub-modules."""
        text = f"{self.role} {self.designation}".lower().replace("_", " ")
        return "principal" in text


# ───────────────────────────────
#  Access control: modules and grants
# ───────────────────────────────


class Module(models.Model):
    key = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=120)
    scope = models.CharField(
        max_length=32, choices=[(s, s.replace("_", " ").title()) for s in PERMISSION_SCOPES]
    )
    display_order = models.PositiveIntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["display_order", "key"]

    def __str__(self):
        return self.name


class SubModule(models.Model):
    module = models.ForeignKey(Module, on_delete=models.CASCADE, related_name="sub_modules")
    key = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=120)
    route_path = models.CharField(max_length=200)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["module__display_order", "display_order", "key"]

    def __str__(self):
        return f"{self.module.name} / {self.name}"


class Role(models.Model):
    school = models.ForeignKey(
        School, null=True, blank=True, on_delete=models.CASCADE, related_name="roles"
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("school", "name")
        ordering = ["name"]

    def __str__(self):
        return self.name


class StaffRole(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="staff_roles")
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="assignments")
    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("user", "role")

    def __str__(self):
        return f"{self.user.username} – {self.role.name}"


class RolePermission(models.Model):
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="permissions")
    sub_module = models.ForeignKey(SubModule, on_delete=models.CASCADE, related_name="role_permissions")
    view_access = models.BooleanField(default=False)
    edit_access = models.BooleanField(default=False)

    class Meta:
        unique_together = ("role", "sub_module")

    def __str__(self):
        return f"{self.role} → {self.sub_module.key}"


class StaffPermission(models.Model):
    """Per-staff override of role grants.

    ``view_access=False`` removes the sub-module unless it is one of the
    defaults every staff member gets.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="staff_permissions")
    sub_module = models.ForeignKey(SubModule, on_delete=models.CASCADE, related_name="staff_permissions")
    view_access = models.BooleanField(default=False)
    edit_access = models.BooleanField(default=False)
    assigned_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name="assigned_staff_permissions"
    )

    class Meta:
        unique_together = ("user", "sub_module")

    def __str__(self):
        return f"{self.user.username} → {self.sub_module.key}"


# ───────────────────────────────
#  Classes (used for teacher defaults)
# ───────────────────────────────


class SchoolClass(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="classes")
    name = models.CharField(max_length=64)
    class_teacher = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name="classes_taught"
    )

    class Meta:
        unique_together = ("school", "name")
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.school.code})"


class SubjectAssignment(models.Model):
    teacher = models.ForeignKey(User, on_delete=models.CASCADE, related_name="subject_assignments")
    school_class = models.ForeignKey(SchoolClass, on_delete=models.CASCADE, related_name="subject_assignments")
    subject = models.CharField(max_length=100)

    class Meta:
        unique_together = ("teacher", "school_class", "subject")

    def __str__(self):
        return f"{self.teacher.username}: {self.subject} ({self.school_class.name})"


# ───────────────────────────────
#  Menu preferences (per-user key/value)
# ───────────────────────────────


class MenuPreference(models.Model):
    """Durable per-user key/value entries, e.g. ``menu-order-<school>``."""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="menu_preferences")
    key = models.CharField(max_length=150)
    value = models.JSONField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("user", "key")

    def __str__(self):
        return f"{self.user.username}: {self.key}"
