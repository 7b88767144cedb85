"""JSON endpoints of the access-control collaborator."""
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .access_control import modules_for, permissions_for
from .decorators import is_school_admin
from .models import School


def _target_user(request, user_id):
    """A user may read their own grants; school admins may read anyone's."""
    if str(request.user.pk) != str(user_id) and not is_school_admin(request.user):
        raise PermissionDenied("Cannot read another user's access")
    User = get_user_model()
    return User.objects.filter(pk=user_id).first()


@login_required
@require_GET
def api_user_permissions(request, user_id):
    user = _target_user(request, user_id)
    if user is None:
        return JsonResponse({"success": False, "error": "User not found"}, status=404)
    return JsonResponse({"success": True, "data": permissions_for(user)})


@login_required
@require_GET
def api_user_modules(request, user_id):
    user = _target_user(request, user_id)
    if user is None:
        return JsonResponse({"success": False, "error": "User not found"}, status=404)
    return JsonResponse({"success": True, "data": modules_for(user)})


@login_required
@require_GET
def api_school_branding(request, school_code):
    school = School.objects.filter(code=school_code, is_active=True).first()
    if school is None:
        return JsonResponse({"success": False, "error": "School not found"}, status=404)
    return JsonResponse({"success": True, "logo_url": school.logo_url or None, "name": school.name})
