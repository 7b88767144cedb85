from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from core.access_control import can, modules_for, permissions_for
from core.models import (
    Module,
    Role,
    RolePermission,
    School,
    SchoolClass,
    StaffPermission,
    StaffRole,
    SubjectAssignment,
    SubModule,
)
from core.permissions import PermissionKey
from core.sidebar import MODULE_CONFIG


class AccessControlTests(TestCase):
    def setUp(self):
        call_command("seed_modules", stdout=StringIO())
        self.school = School.objects.create(code="sch1", name="Green Valley")
        self.teacher = self._user("asha", "teacher")

    def _user(self, username, role, designation=""):
        user = User.objects.create_user(username, f"{username}@example.com", "pass")
        user.profile.role = role
        user.profile.designation = designation
        user.profile.school = self.school
        user.profile.save()
        return user

    def _sub_keys(self, user):
        return sorted(s["key"] for m in modules_for(user) for s in m["sub_modules"])

    def test_seed_command_creates_configured_modules(self):
        self.assertEqual(Module.objects.count(), len(MODULE_CONFIG))
        self.assertEqual(
            SubModule.objects.count(), sum(len(m.sub_modules) for m in MODULE_CONFIG)
        )
        call_command("seed_modules", stdout=StringIO())
        self.assertEqual(Module.objects.count(), len(MODULE_CONFIG))

    def test_staff_defaults(self):
        self.assertEqual(
            self._sub_keys(self.teacher),
            ["attendance_staff", "gallery_main", "staff_directory", "staff_leave", "student_directory"],
        )
        modules = modules_for(self.teacher)
        self.assertEqual(
            [m["module_key"] for m in modules],
            ["student_management", "staff_management", "leave_management", "gallery", "attendance"],
        )
        self.assertTrue(all(s["has_view_access"] and not s["has_edit_access"] for m in modules for s in m["sub_modules"]))

    def test_class_teacher_defaults(self):
        SchoolClass.objects.create(school=self.school, name="5A", class_teacher=self.teacher)
        keys = self._sub_keys(self.teacher)
        for key in ("mark_attendance", "marks_entry", "classes_overview"):
            self.assertIn(key, keys)

    def test_subject_teacher_defaults(self):
        klass = SchoolClass.objects.create(school=self.school, name="6B")
        SubjectAssignment.objects.create(teacher=self.teacher, school_class=klass, subject="Maths")
        keys = self._sub_keys(self.teacher)
        self.assertIn("marks_entry", keys)
        self.assertNotIn("classes_overview", keys)

    def test_leadership_and_students_get_no_defaults(self):
        self.assertEqual(modules_for(self._user("vp", "vice_principal")), [])
        self.assertEqual(modules_for(self._user("head", "staff", designation="Principal")), [])
        self.assertEqual(modules_for(self._user("kid", "student")), [])

    def test_role_permissions_merge(self):
        role = Role.objects.create(school=self.school, name="Accountant")
        StaffRole.objects.create(user=self.teacher, role=role)
        RolePermission.objects.create(
            role=role, sub_module=SubModule.objects.get(key="fee_heads"), view_access=True, edit_access=True
        )
        RolePermission.objects.create(
            role=role, sub_module=SubModule.objects.get(key="fee_reports"), view_access=False, edit_access=True
        )

        fees = next(m for m in modules_for(self.teacher) if m["module_key"] == "fee_management")
        self.assertEqual([s["key"] for s in fees["sub_modules"]], ["fee_heads"])
        self.assertTrue(fees["sub_modules"][0]["has_edit_access"])
        self.assertIn("manage_fees", permissions_for(self.teacher))

    def test_inactive_role_or_module_ignored(self):
        role = Role.objects.create(school=self.school, name="Librarian", is_active=False)
        StaffRole.objects.create(user=self.teacher, role=role)
        RolePermission.objects.create(
            role=role, sub_module=SubModule.objects.get(key="library_dashboard"), view_access=True
        )
        Module.objects.filter(key="gallery").update(is_active=False)

        keys = self._sub_keys(self.teacher)
        self.assertNotIn("library_dashboard", keys)
        self.assertNotIn("gallery_main", keys)

    def test_staff_override_grants_and_removes(self):
        role = Role.objects.create(school=self.school, name="Front desk")
        StaffRole.objects.create(user=self.teacher, role=role)
        RolePermission.objects.create(
            role=role, sub_module=SubModule.objects.get(key="gate_pass"), view_access=True
        )
        StaffPermission.objects.create(
            user=self.teacher, sub_module=SubModule.objects.get(key="gate_pass"), view_access=False
        )
        StaffPermission.objects.create(
            user=self.teacher, sub_module=SubModule.objects.get(key="gallery_main"), view_access=False
        )
        StaffPermission.objects.create(
            user=self.teacher, sub_module=SubModule.objects.get(key="vehicles"), view_access=True, edit_access=True
        )

        keys = self._sub_keys(self.teacher)
        self.assertNotIn("gate_pass", keys)
        self.assertIn("gallery_main", keys)
        self.assertIn("vehicles", keys)
        self.assertIn("manage_transport", permissions_for(self.teacher))

    def test_permissions_for_defaults(self):
        self.assertEqual(
            permissions_for(self.teacher),
            ["view_attendance", "view_gallery", "view_leave", "view_staff", "view_students"],
        )

    def test_can(self):
        admin = self._user("boss", "school_admin")
        self.assertTrue(can(admin, PermissionKey.MANAGE_FEES))
        self.assertTrue(can(self.teacher, PermissionKey.VIEW_GALLERY))
        self.assertFalse(can(self.teacher, PermissionKey.VIEW_FEES))


class AccessEndpointTests(TestCase):
    def setUp(self):
        call_command("seed_modules", stdout=StringIO())
        self.school = School.objects.create(code="sch1", name="Green Valley", logo_url="https://cdn.example.com/logo.png")
        self.user = User.objects.create_user("asha", "asha@example.com", "pass")
        self.user.profile.role = "teacher"
        self.user.profile.school = self.school
        self.user.profile.save()

    def test_own_permissions(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse("api_user_permissions", args=[self.user.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertIn("view_gallery", response.json()["data"])

    def test_own_modules(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse("api_user_modules", args=[self.user.pk]))

        data = response.json()["data"]
        self.assertEqual(data[0]["module_key"], "student_management")
        self.assertEqual(data[0]["sub_modules"][0]["route"], "/students/directory")

    def test_cannot_read_other_users_access(self):
        other = User.objects.create_user("ravi", "ravi@example.com", "pass")
        self.client.force_login(self.user)
        response = self.client.get(reverse("api_user_permissions", args=[other.pk]))
        self.assertEqual(response.status_code, 403)

    def test_admin_can_read_others_and_missing_user_is_404(self):
        admin = User.objects.create_superuser("root", "root@example.com", "pass")
        self.client.force_login(admin)

        response = self.client.get(reverse("api_user_modules", args=[self.user.pk]))
        self.assertEqual(response.status_code, 200)
        response = self.client.get(reverse("api_user_modules", args=[99999]))
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])

    def test_branding(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse("api_school_branding", args=["sch1"]))
        self.assertEqual(response.json()["logo_url"], "https://cdn.example.com/logo.png")

        response = self.client.get(reverse("api_school_branding", args=["nowhere"]))
        self.assertEqual(response.status_code, 404)
