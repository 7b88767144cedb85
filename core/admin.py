from django.contrib import admin

from .models import (
    MenuPreference,
    Module,
    Profile,
    Role,
    RolePermission,
    School,
    SchoolClass,
    StaffPermission,
    StaffRole,
    SubjectAssignment,
    SubModule,
)


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "school", "role", "designation")
    list_filter = ("role", "school")
    search_fields = ("user__username", "user__email", "designation")


class SubModuleInline(admin.TabularInline):
    model = SubModule
    extra = 0
    fields = ("key", "name", "route_path", "display_order", "is_active")


@admin.register(Module)
class ModuleAdmin(admin.ModelAdmin):
    list_display = ("key", "name", "scope", "display_order", "is_active")
    list_filter = ("is_active", "scope")
    search_fields = ("key", "name")
    ordering = ("display_order", "key")
    inlines = [SubModuleInline]


@admin.register(SubModule)
class SubModuleAdmin(admin.ModelAdmin):
    list_display = ("key", "name", "module", "route_path", "is_active")
    list_filter = ("is_active", "module")
    search_fields = ("key", "name", "route_path")


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    autocomplete_fields = ("sub_module",)


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "school", "is_active")
    list_filter = ("is_active", "school")
    search_fields = ("name",)
    inlines = [RolePermissionInline]


@admin.register(StaffRole)
class StaffRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "is_active")
    list_filter = ("is_active", "role")
    search_fields = ("user__username", "role__name")


@admin.register(StaffPermission)
class StaffPermissionAdmin(admin.ModelAdmin):
    list_display = ("user", "sub_module", "view_access", "edit_access", "assigned_by")
    list_filter = ("view_access", "edit_access")
    search_fields = ("user__username", "sub_module__key")
    autocomplete_fields = ("sub_module",)


@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ("name", "school", "class_teacher")
    list_filter = ("school",)
    search_fields = ("name",)


admin.site.register(SubjectAssignment)


@admin.register(MenuPreference)
class MenuPreferenceAdmin(admin.ModelAdmin):
    list_display = ("user", "key", "updated_at")
    search_fields = ("user__username", "key")
