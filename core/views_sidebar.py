import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .decorators import json_body, school_member_required
from .exceptions import StorageUnavailable
from .menu_order import OrderManager
from .projection import ExpansionState, NavigationRequest, OpenPanel, build_sidebar, select_entry
from .utils import fallback_sidebar_state, load_sidebar_state

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}


def _state(request, school_code):
    try:
        return load_sidebar_state(request, school_code), False
    except Exception:
        logger.exception("Sidebar pipeline failed for user %s in %s", request.user.pk, school_code)
        return fallback_sidebar_state(request, school_code), True


def _no_identity():
    return JsonResponse({"success": False, "error": "No navigation identity in session"}, status=401)


@require_GET
@school_member_required
def api_sidebar_menu(request, school_code):
    state, degraded = _state(request, school_code)
    if state is None:
        return _no_identity()

    collapsed = request.GET.get("collapsed", "").lower() in _TRUE
    query = request.GET.get("q", "")
    path = request.GET.get("path") or state.base_path
    expanded = [i for i in request.GET.get("expanded", "").split(",") if i]
    drag_enabled = False if degraded or not state.access.is_complete else state.drag.enabled

    items = build_sidebar(
        state.menu,
        state.order,
        state.base_path,
        path,
        query,
        collapsed=collapsed,
        drag_enabled=drag_enabled,
        expansion=ExpansionState.from_ids(expanded),
    )
    return JsonResponse(
        {
            "success": True,
            "loading": state.access.is_loading,
            "complete": state.access.is_complete,
            "degraded": degraded,
            "drag_enabled": drag_enabled,
            "base_path": state.base_path,
            "order": state.order,
            "items": [item.as_dict() for item in items],
        }
    )


@require_POST
@school_member_required
@json_body
def api_sidebar_reorder(request, school_code):
    active_id = request.json.get("active_id")
    over_id = request.json.get("over_id")
    if not active_id or not over_id:
        return JsonResponse({"success": False, "error": "active_id and over_id are required"}, status=400)

    state, degraded = _state(request, school_code)
    if state is None:
        return _no_identity()
    if degraded or not state.access.is_complete:
        # a partial menu would overwrite entries hidden by the failed fetch
        return JsonResponse({"success": False, "error": "Menu is not available"}, status=503)

    drag = state.drag
    collapsed = bool(request.json.get("collapsed", False))
    if not drag.start(active_id, state.order, collapsed=collapsed):
        if not drag.enabled:
            return JsonResponse({"success": False, "error": "Reordering is disabled"}, status=409)
        if collapsed:
            return JsonResponse({"success": False, "error": "Cannot reorder a collapsed sidebar"}, status=409)
        # not a top-level entry any more; treated like a dropped race
        return JsonResponse({"success": True, "changed": False, "order": state.order})

    new_order = drag.drop(over_id, state.order)
    logger.info(
        "User %s moved %s onto %s in %s", request.user.pk, active_id, over_id, school_code
    )
    return JsonResponse(
        {"success": True, "changed": new_order != state.order, "order": new_order}
    )


@require_POST
@school_member_required
@json_body
def api_sidebar_drag_mode(request, school_code):
    enabled = request.json.get("enabled")
    if not isinstance(enabled, bool):
        return JsonResponse({"success": False, "error": "enabled must be a boolean"}, status=400)

    state, degraded = _state(request, school_code)
    if state is None:
        return _no_identity()
    if not state.drag.set_enabled(enabled):
        return JsonResponse({"success": False, "error": "Preferences are unavailable"}, status=503)
    return JsonResponse({"success": True, "drag_enabled": enabled})


@require_POST
@school_member_required
def api_sidebar_reset_order(request, school_code):
    state, degraded = _state(request, school_code)
    if state is None:
        return _no_identity()
    try:
        OrderManager(state.store, school_code).reset()
    except StorageUnavailable:
        logger.exception("Could not reset menu order for %s", school_code)
        return JsonResponse({"success": False, "error": "Preferences are unavailable"}, status=503)
    return JsonResponse({"success": True, "order": list(state.menu.ids)})


@require_POST
@school_member_required
@json_body
def api_sidebar_select(request, school_code):
    entry_id = request.json.get("entry_id")
    sub_route = request.json.get("sub_route")
    state, degraded = _state(request, school_code)
    if state is None:
        return _no_identity()

    entry = state.menu.get(entry_id) if entry_id else None
    if entry is None:
        return JsonResponse({"success": False, "error": "Unknown menu entry"}, status=404)

    action = select_entry(entry, state.base_path, sub_route)
    if isinstance(action, OpenPanel):
        return JsonResponse({"success": True, "action": "open_panel", "panel": action.entry_id})
    if isinstance(action, NavigationRequest):
        return JsonResponse({"success": True, "action": "navigate", "href": action.href})
    if sub_route is not None:
        return JsonResponse({"success": False, "error": "Unknown sub-item"}, status=404)
    return JsonResponse({"success": True, "action": "toggle", "entry_id": entry.id})
