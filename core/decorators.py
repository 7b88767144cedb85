# core/decorators.py

import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.http import JsonResponse

logger = logging.getLogger(__name__)

_LOG_PARSE_ERROR = "Decorator error while parsing request body"


def is_school_admin(user):
    if user.is_superuser:
        return True
    profile = getattr(user, "profile", None)
    return getattr(profile, "role", None) == "school_admin"


def school_member_required(view_func):
    """Only members of the school in the URL (or superusers) get through."""

    @login_required
    @wraps(view_func)
    def _wrapped_view(request, school_code, *args, **kwargs):
        user = request.user
        if not user.is_superuser:
            profile = getattr(user, "profile", None)
            school = getattr(profile, "school", None)
            if school is None or school.code != school_code:
                logger.info("User %s denied access to school %s", user.pk, school_code)
                raise PermissionDenied("You do not belong to this school")
        return view_func(request, school_code, *args, **kwargs)

    return _wrapped_view


def json_body(view_func):
    """Parse a JSON request body into ``request.json``."""

    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        try:
            request.json = json.loads(request.body or b"{}")
        except ValueError:
            logger.debug(_LOG_PARSE_ERROR, exc_info=True)
            return JsonResponse({"success": False, "error": "Invalid JSON"}, status=400)
        if not isinstance(request.json, dict):
            return JsonResponse({"success": False, "error": "Expected a JSON object"}, status=400)
        return view_func(request, *args, **kwargs)

    return _wrapped_view
