import logging

from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.shortcuts import redirect, render

from .identity import SessionIdentityProvider
from .middleware import TENANT_AREAS
from .navigation import base_path_for

logger = logging.getLogger(__name__)


@login_required
def home(request):
    """Send the user to the dashboard area matching their identity."""
    identity = SessionIdentityProvider(request).current()
    if identity is None or not identity.school_code:
        logger.info("User %s has no school identity; showing empty shell", request.user.pk)
        return render(request, "core/dashboard_shell.html", {"page_path": ""})
    return redirect(base_path_for(identity) + "/")


@login_required
def dashboard_shell(request, area, school_code, page=""):
    """Render the dashboard frame; the page body itself lives elsewhere."""
    if area not in TENANT_AREAS:
        raise PermissionDenied("Unknown dashboard area")
    if not request.user.is_superuser:
        profile = getattr(request.user, "profile", None)
        school = getattr(profile, "school", None)
        if school is None or school.code != school_code:
            raise PermissionDenied("You do not belong to this school")
    return render(
        request,
        "core/dashboard_shell.html",
        {"page_path": page, "dashboard_area": area},
    )
