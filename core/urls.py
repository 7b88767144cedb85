from django.urls import path, re_path

from . import views, views_access, views_sidebar

urlpatterns = [
    path('', views.home, name='home'),

    # ────────────────────────────────────────────────
    # Access control (permissions-for / modules-for / branding)
    # ────────────────────────────────────────────────
    path('api/access/<int:user_id>/permissions/', views_access.api_user_permissions, name='api_user_permissions'),
    path('api/access/<int:user_id>/modules/', views_access.api_user_modules, name='api_user_modules'),
    path('api/schools/<slug:school_code>/branding/', views_access.api_school_branding, name='api_school_branding'),

    # ────────────────────────────────────────────────
    # Sidebar
    # ────────────────────────────────────────────────
    path('api/sidebar/<slug:school_code>/', views_sidebar.api_sidebar_menu, name='api_sidebar_menu'),
    path('api/sidebar/<slug:school_code>/reorder/', views_sidebar.api_sidebar_reorder, name='api_sidebar_reorder'),
    path('api/sidebar/<slug:school_code>/drag-mode/', views_sidebar.api_sidebar_drag_mode, name='api_sidebar_drag_mode'),
    path('api/sidebar/<slug:school_code>/reset-order/', views_sidebar.api_sidebar_reset_order, name='api_sidebar_reset_order'),
    path('api/sidebar/<slug:school_code>/select/', views_sidebar.api_sidebar_select, name='api_sidebar_select'),

    # ────────────────────────────────────────────────
    # Dashboard shell
    # ────────────────────────────────────────────────
    re_path(
        r'^(?P<area>dashboard|teacher|staff|student)/(?P<school_code>[-\w]+)/(?:(?P<page>.+?)/?)?$',
        views.dashboard_shell,
        name='dashboard_shell',
    ),
]
