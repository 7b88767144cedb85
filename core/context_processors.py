import logging

from .models import School
from .projection import ExpansionState, build_sidebar
from .utils import current_school_code, fallback_sidebar_state, load_sidebar_state

logger = logging.getLogger(__name__)


def tenant_branding(request):
    """Expose the current school's name and logo to all templates."""
    school_code = getattr(request, "school_code", None)
    if not school_code:
        return {}
    school = School.objects.filter(code=school_code, is_active=True).only("name", "logo_url").first()
    if school is None:
        return {"school_branding": {"code": school_code, "name": "", "logo_url": None}}
    return {
        "school_branding": {
            "code": school_code,
            "name": school.name,
            "logo_url": school.logo_url or None,
        }
    }


def sidebar_navigation(request):
    """Provide the rendered sidebar for the logged-in user.

    Never raises: anything going wrong in the pipeline degrades to the
    always-visible entries in catalog order.
    """
    if not request.user.is_authenticated:
        return {}

    degraded = False
    try:
        state = load_sidebar_state(request)
    except Exception:
        logger.exception(
            "Sidebar pipeline failed for user %s; falling back to always-visible entries",
            request.user.pk,
        )
        state = fallback_sidebar_state(request)
        degraded = True
    if state is None:
        return {}

    expanded = request.GET.get("expanded", "")
    query = request.GET.get("q", "")
    drag_enabled = False if degraded or not state.access.is_complete else state.drag.enabled
    items = build_sidebar(
        state.menu,
        state.order,
        state.base_path,
        request.path,
        query,
        drag_enabled=drag_enabled,
        expansion=ExpansionState.from_ids(expanded.split(",")),
    )
    return {
        "sidebar_items": items,
        "sidebar_loading": state.access.is_loading,
        "sidebar_query": query,
        "sidebar_drag_enabled": drag_enabled,
        "sidebar_base_path": state.base_path,
        "sidebar_school_code": current_school_code(request, state.identity),
    }
