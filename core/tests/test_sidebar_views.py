import json
from io import StringIO
from unittest import mock

from django.contrib.auth.models import AnonymousUser, User
from django.contrib.sessions.middleware import SessionMiddleware
from django.core.management import call_command
from django.test import RequestFactory, TestCase
from django.urls import reverse

from core.context_processors import sidebar_navigation, tenant_branding
from core.exceptions import AccessFetchError
from core.identity import SESSION_KEY, identity_from_user, identity_to_session
from core.models import MenuPreference, Role, RolePermission, School, StaffRole, SubModule
from core.storage import drag_key, order_key

TEACHER_STATIC_IDS = [
    "home",
    "mark-attendance",
    "my-attendance",
    "my-classes",
    "apply-leave",
    "my-leaves",
    "institute-info",
    "module-guide",
    "settings",
]
TEACHER_DYNAMIC_IDS = ["students", "staff", "leave", "gallery", "attendance"]


class SidebarTestMixin:
    def setUp(self):
        call_command("seed_modules", stdout=StringIO())
        self.school = School.objects.create(code="sch1", name="Green Valley")
        self.teacher = self._user("asha", "teacher")

    def _user(self, username, role, school=None, **extra):
        user = User.objects.create_user(username, f"{username}@example.com", "pass", **extra)
        user.profile.role = role
        user.profile.school = school or self.school
        user.profile.save()
        return user

    def _post(self, name, payload=None, school="sch1"):
        return self.client.post(
            reverse(name, args=[school]),
            data=json.dumps(payload or {}),
            content_type="application/json",
        )

    def _menu(self, school="sch1", **params):
        return self.client.get(reverse("api_sidebar_menu", args=[school]), params).json()

    def _stored_order(self, user=None):
        pref = MenuPreference.objects.filter(user=user or self.teacher, key=order_key("sch1")).first()
        return None if pref is None else pref.value


class SidebarMenuApiTests(SidebarTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client.force_login(self.teacher)

    def test_restricted_menu(self):
        data = self._menu()

        self.assertTrue(data["success"])
        self.assertFalse(data["loading"])
        self.assertTrue(data["complete"])
        self.assertEqual(data["base_path"], "/teacher/sch1")
        self.assertEqual(data["order"], TEACHER_STATIC_IDS + TEACHER_DYNAMIC_IDS)
        self.assertNotIn("role-management", data["order"])
        self.assertEqual(self._stored_order(), data["order"])

    def test_active_entry_and_expansion_follow_path(self):
        data = self._menu(path="/teacher/sch1/students/directory/42")
        students = next(i for i in data["items"] if i["id"] == "students")

        self.assertTrue(students["active"])
        self.assertTrue(students["expanded"])
        self.assertEqual(students["sub_items"][0]["href"], "/teacher/sch1/students/directory")
        self.assertTrue(students["sub_items"][0]["active"])

    def test_search_filters_items(self):
        data = self._menu(q="leave")
        ids = [i["id"] for i in data["items"]]

        self.assertEqual(ids, ["apply-leave", "my-leaves", "leave"])
        self.assertTrue(data["items"][-1]["expanded"])

    def test_school_admin_sees_full_catalog(self):
        admin = self._user("boss", "school_admin")
        self.client.force_login(admin)
        data = self._menu()

        self.assertEqual(data["base_path"], "/dashboard/sch1")
        self.assertIn("role-management", data["order"])
        self.assertIn("fees", data["order"])

    def test_other_school_is_forbidden(self):
        School.objects.create(code="sch2", name="Hill Top")
        response = self.client.get(reverse("api_sidebar_menu", args=["sch2"]))
        self.assertEqual(response.status_code, 403)

    def test_module_fetch_failure_degrades_without_persisting(self):
        with mock.patch("core.access_control.modules_for", side_effect=AccessFetchError("down")):
            with self.assertLogs("core.resolver", level="WARNING"):
                data = self._menu()

        self.assertTrue(data["success"])
        self.assertFalse(data["complete"])
        self.assertEqual(data["order"], TEACHER_STATIC_IDS)
        self.assertIsNone(self._stored_order())

    def test_pipeline_crash_falls_back_to_always_visible(self):
        with mock.patch("core.views_sidebar.load_sidebar_state", side_effect=RuntimeError("bug")):
            with self.assertLogs("core.views_sidebar", level="ERROR"):
                data = self._menu()

        self.assertTrue(data["degraded"])
        self.assertEqual([i["id"] for i in data["items"]], TEACHER_STATIC_IDS)

    def test_revoked_module_does_not_clobber_saved_order(self):
        role = Role.objects.create(school=self.school, name="Accountant")
        StaffRole.objects.create(user=self.teacher, role=role)
        grant = RolePermission.objects.create(
            role=role, sub_module=SubModule.objects.get(key="fee_heads"), view_access=True
        )
        self._post("api_sidebar_drag_mode", {"enabled": True})
        self._menu()
        self._post("api_sidebar_reorder", {"active_id": "fees", "over_id": "home"})
        saved = self._stored_order()
        self.assertEqual(saved[0], "fees")

        grant.delete()
        data = self._menu()
        self.assertNotIn("fees", data["order"])
        self.assertEqual(self._stored_order(), saved)

        RolePermission.objects.create(
            role=role, sub_module=SubModule.objects.get(key="fee_heads"), view_access=True
        )
        self.assertEqual(self._menu()["order"][0], "fees")


class SidebarReorderApiTests(SidebarTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client.force_login(self.teacher)

    def test_reorder_requires_drag_mode(self):
        response = self._post("api_sidebar_reorder", {"active_id": "settings", "over_id": "home"})
        self.assertEqual(response.status_code, 409)

    def test_drag_mode_toggle(self):
        response = self._post("api_sidebar_drag_mode", {"enabled": True})
        self.assertTrue(response.json()["drag_enabled"])
        self.assertTrue(MenuPreference.objects.get(user=self.teacher, key=drag_key("sch1")).value)
        self.assertTrue(all(i["draggable"] for i in self._menu()["items"]))
        self.assertFalse(any(i["draggable"] for i in self._menu(collapsed="1")["items"]))

        response = self._post("api_sidebar_drag_mode", {"enabled": "yes"})
        self.assertEqual(response.status_code, 400)

    def test_reorder_moves_entry_and_persists(self):
        self._post("api_sidebar_drag_mode", {"enabled": True})
        response = self._post("api_sidebar_reorder", {"active_id": "settings", "over_id": "home"})
        data = response.json()

        self.assertTrue(data["changed"])
        self.assertEqual(data["order"][:2], ["settings", "home"])
        self.assertEqual(self._stored_order(), data["order"])
        self.assertEqual(self._menu()["order"], data["order"])

    def test_reorder_onto_unknown_entry_is_noop(self):
        self._post("api_sidebar_drag_mode", {"enabled": True})
        data = self._post("api_sidebar_reorder", {"active_id": "settings", "over_id": "fees"}).json()

        self.assertTrue(data["success"])
        self.assertFalse(data["changed"])
        self.assertEqual(data["order"], TEACHER_STATIC_IDS + TEACHER_DYNAMIC_IDS)

    def test_reorder_refused_while_module_fetch_fails(self):
        self._post("api_sidebar_drag_mode", {"enabled": True})
        self._post("api_sidebar_reorder", {"active_id": "students", "over_id": "home"})
        saved = self._stored_order()
        self.assertEqual(saved[0], "students")

        with mock.patch("core.access_control.modules_for", side_effect=AccessFetchError("down")):
            with self.assertLogs("core.resolver", level="WARNING"):
                menu = self._menu()
            with self.assertLogs("core.resolver", level="WARNING"):
                response = self._post("api_sidebar_reorder", {"active_id": "settings", "over_id": "home"})

        self.assertFalse(menu["drag_enabled"])
        self.assertEqual(response.status_code, 503)
        self.assertFalse(response.json()["success"])
        self.assertEqual(self._stored_order(), saved)
        self.assertEqual(self._menu()["order"], saved)

    def test_reorder_rejected_while_collapsed(self):
        self._post("api_sidebar_drag_mode", {"enabled": True})
        response = self._post(
            "api_sidebar_reorder", {"active_id": "settings", "over_id": "home", "collapsed": True}
        )
        self.assertEqual(response.status_code, 409)

    def test_reorder_validates_body(self):
        response = self._post("api_sidebar_reorder", {"active_id": "settings"})
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            reverse("api_sidebar_reorder", args=["sch1"]), data="{", content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)

    def test_reset_order(self):
        self._post("api_sidebar_drag_mode", {"enabled": True})
        self._post("api_sidebar_reorder", {"active_id": "settings", "over_id": "home"})

        data = self._post("api_sidebar_reset_order").json()
        self.assertEqual(data["order"], TEACHER_STATIC_IDS + TEACHER_DYNAMIC_IDS)
        self.assertIsNone(self._stored_order())

    def test_select(self):
        panel = self._post("api_sidebar_select", {"entry_id": "module-guide"}).json()
        self.assertEqual(panel["action"], "open_panel")
        self.assertEqual(panel["panel"], "module-guide")

        nav = self._post("api_sidebar_select", {"entry_id": "students", "sub_route": "/students/directory"}).json()
        self.assertEqual(nav["href"], "/teacher/sch1/students/directory")

        home = self._post("api_sidebar_select", {"entry_id": "home"}).json()
        self.assertEqual(home["href"], "/teacher/sch1")

        missing = self._post("api_sidebar_select", {"entry_id": "fees"})
        self.assertEqual(missing.status_code, 404)

        bad_sub = self._post("api_sidebar_select", {"entry_id": "students", "sub_route": "/fees"})
        self.assertEqual(bad_sub.status_code, 404)


class SidebarContextProcessorTests(SidebarTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.factory = RequestFactory()

    def _get_request(self, user, path="/teacher/sch1/"):
        request = self.factory.get(path)
        middleware = SessionMiddleware(lambda req: None)
        middleware.process_request(request)
        request.session[SESSION_KEY] = identity_to_session(identity_from_user(user))
        request.session.save()
        request.user = user
        request.school_code = "sch1"
        return request

    def test_anonymous_gets_nothing(self):
        request = self.factory.get("/")
        request.user = AnonymousUser()
        self.assertEqual(sidebar_navigation(request), {})

    def test_sidebar_items_for_teacher(self):
        result = sidebar_navigation(self._get_request(self.teacher, "/teacher/sch1/gallery"))

        ids = [i.id for i in result["sidebar_items"]]
        self.assertEqual(ids, TEACHER_STATIC_IDS + TEACHER_DYNAMIC_IDS)
        self.assertTrue(next(i for i in result["sidebar_items"] if i.id == "gallery").active)
        self.assertFalse(result["sidebar_loading"])
        self.assertEqual(result["sidebar_base_path"], "/teacher/sch1")

    def test_failure_falls_back_to_always_visible(self):
        request = self._get_request(self.teacher)
        with mock.patch("core.context_processors.load_sidebar_state", side_effect=RuntimeError("bug")):
            with self.assertLogs("core.context_processors", level="ERROR"):
                result = sidebar_navigation(request)

        self.assertEqual([i.id for i in result["sidebar_items"]], TEACHER_STATIC_IDS)
        self.assertFalse(result["sidebar_drag_enabled"])

    def test_tenant_branding(self):
        self.school.logo_url = "https://cdn.example.com/logo.png"
        self.school.save()
        request = self._get_request(self.teacher)

        branding = tenant_branding(request)["school_branding"]
        self.assertEqual(branding["name"], "Green Valley")
        self.assertEqual(branding["logo_url"], "https://cdn.example.com/logo.png")

    def test_dashboard_shell_renders_sidebar(self):
        self.client.force_login(self.teacher)
        response = self.client.get("/teacher/sch1/students/directory/")

        self.assertEqual(response.status_code, 200)
        items = response.context["sidebar_items"]
        self.assertTrue(next(i for i in items if i.id == "students").expanded)
        self.assertContains(response, 'href="/teacher/sch1/students/directory"')

    def test_dashboard_shell_other_school_forbidden(self):
        School.objects.create(code="sch2", name="Hill Top")
        self.client.force_login(self.teacher)
        self.assertEqual(self.client.get("/teacher/sch2/").status_code, 403)

    def test_home_redirects_to_base_path(self):
        self.client.force_login(self.teacher)
        response = self.client.get("/")
        self.assertRedirects(response, "/teacher/sch1/", fetch_redirect_response=False)
