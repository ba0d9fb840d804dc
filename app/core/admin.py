from django.contrib import admin

from .models import AuditLogEntry


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(admin.ModelAdmin):
    """Audit entries are append-only; the admin is a viewer."""

    list_display = ['timestamp', 'module_type', 'action', 'actor', 'ip_address']
    list_filter = ['action', 'module_type']
    search_fields = ['module_type', 'context', 'actor__username']
    date_hierarchy = 'timestamp'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
