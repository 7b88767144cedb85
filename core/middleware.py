import re

from django.conf import settings

# First path segment of each dashboard area; the second one is the school code.
TENANT_AREAS = ("dashboard", "teacher", "staff", "student")

_TENANT_PATH = re.compile(r"^/(?P<area>[\w-]+)/(?P<school>[\w-]+)(?:/|$)")
_API_TENANT_PATH = re.compile(r"^/api/(?:sidebar|schools)/(?P<school>[\w-]+)(?:/|$)")


def parse_tenant(path):
    """Return ``(area, school_code)`` for tenant URLs, else ``(None, None)``."""
    match = _TENANT_PATH.match(path or "")
    if match and match.group("area") in TENANT_AREAS:
        return match.group("area"), match.group("school")
    match = _API_TENANT_PATH.match(path or "")
    if match:
        return None, match.group("school")
    return None, None


class TenantMiddleware:
    """Expose ``request.school_code`` (and ``request.dashboard_area``).

    Requests outside a tenant URL fall back to the school on the user's
    profile so context processors still know which tenant to use.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        area, school_code = parse_tenant(request.path)
        if school_code is None and not request.path.startswith(settings.STATIC_URL):
            school_code = self._profile_school(request)
        request.dashboard_area = area
        request.school_code = school_code
        return self.get_response(request)

    def _profile_school(self, request):
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        profile = getattr(user, "profile", None)
        if profile is None or not profile.school_id:
            return None
        return profile.school.code
