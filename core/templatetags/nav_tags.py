"""Navigation-related template helpers."""

from __future__ import annotations

from typing import List

from django import template

register = template.Library()


@register.filter
def nav_classes(item) -> str:
    """CSS state classes for a rendered sidebar item or sub-item."""
    classes: List[str] = []
    if getattr(item, "active", False):
        classes.append("active")
    if getattr(item, "expanded", False):
        classes.append("expanded")
    if getattr(item, "draggable", False):
        classes.append("draggable")
    return " ".join(classes)


@register.simple_tag
def sidebar_ids(items) -> str:
    """Comma separated ids in rendered order, for the drag handler."""
    return ",".join(getattr(i, "id", "") for i in items or ())
