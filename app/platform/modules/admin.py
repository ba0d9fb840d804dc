"""
Django Admin for module configuration.
State, settings and edges change through the service layer so every change is audited.
"""

from django.contrib import admin
from .models import ModuleConfiguration, ModuleDependency


@admin.register(ModuleConfiguration)
class ModuleConfigurationAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'module_type', 'is_enabled', 'parent_module_type', 'display_order', 'version']
    list_filter = ['is_enabled', 'parent_module_type']
    search_fields = ['display_name', 'module_type']
    readonly_fields = ['id', 'module_type', 'is_enabled', 'parent_module_type', 'settings', 'version',
                       'created_at', 'updated_at']
    fieldsets = (
        ('Module', {
            'fields': ('module_type', 'parent_module_type', 'is_enabled', 'version')
        }),
        ('Display', {
            'fields': ('display_name', 'description', 'icon_class', 'display_order')
        }),
        ('Settings', {
            'fields': ('settings',)
        }),
        ('Timestamps', {
            'fields': ('id', 'created_at', 'updated_at')
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ModuleDependency)
class ModuleDependencyAdmin(admin.ModelAdmin):
    list_display = ['module_type', 'depends_on_module_type', 'is_required']
    list_filter = ['is_required', 'module_type']
    search_fields = ['module_type', 'depends_on_module_type', 'description']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
