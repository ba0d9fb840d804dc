"""
Django Admin for RBAC models
"""

from django.contrib import admin
from .models import ModulePermission, Role, RoleModulePermission, UserRole


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'is_active', 'is_system_role']
    list_filter = ['is_active', 'is_system_role']
    search_fields = ['name', 'code']
    readonly_fields = ['id', 'created_at', 'updated_at']
    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'code', 'description')
        }),
        ('Status', {
            'fields': ('is_active', 'is_system_role')
        }),
        ('Timestamps', {
            'fields': ('id', 'created_at', 'updated_at')
        }),
    )

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_system_role:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(ModulePermission)
class ModulePermissionAdmin(admin.ModelAdmin):
    list_display = ['module_type', 'permission_type', 'name', 'is_active']
    list_filter = ['module_type', 'permission_type', 'is_active']
    search_fields = ['name', 'module_type', 'permission_type']
    readonly_fields = ['id', 'module_type', 'permission_type', 'is_active', 'created_at', 'updated_at']

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RoleModulePermission)
class RoleModulePermissionAdmin(admin.ModelAdmin):
    """Read-only: grants change through the API so every change is audited."""

    list_display = ['role', 'module_permission', 'is_active', 'granted_at', 'granted_by']
    list_filter = ['is_active', 'role', 'module_permission__module_type']
    search_fields = ['role__code', 'module_permission__module_type', 'reason']
    date_hierarchy = 'granted_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'is_active', 'assigned_at', 'expires_at']
    list_filter = ['is_active', 'role']
    search_fields = ['user__username', 'user__email', 'role__code']
    readonly_fields = ['id', 'created_at', 'updated_at', 'assigned_at']
    date_hierarchy = 'assigned_at'
