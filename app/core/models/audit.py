"""Audit trail for module configuration and authorization changes."""
from django.conf import settings
from django.db import models
from django.utils import timezone

from .base import AppendOnlyModel, UUIDPrimaryKeyModel


class AuditAction(models.TextChoices):
    ENABLED = "Enabled", "Module enabled"
    DISABLED = "Disabled", "Module disabled"
    SETTINGS_UPDATED = "SettingsUpdated", "Module settings updated"
    DEPENDENCY_ADDED = "DependencyAdded", "Dependency added"
    DEPENDENCY_REMOVED = "DependencyRemoved", "Dependency removed"
    PERMISSION_GRANTED = "PermissionGranted", "Permission granted"
    PERMISSION_REVOKED = "PermissionRevoked", "Permission revoked"
    PERMISSION_ACTIVATED = "PermissionActivated", "Permission activated"
    PERMISSION_DEACTIVATED = "PermissionDeactivated", "Permission deactivated"


class AuditLogEntry(UUIDPrimaryKeyModel, AppendOnlyModel):
    """One immutable state change against a module, its settings or its grants."""

    module_type = models.CharField(max_length=50, db_index=True)
    action = models.CharField(max_length=50, choices=AuditAction.choices, db_index=True)
    old_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="module_audit_entries",
        help_text="Null for system actions such as seeding",
    )
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True)
    context = models.CharField(max_length=1000, blank=True)

    class Meta:
        db_table = "core_module_audit_entries"
        indexes = [
            models.Index(fields=["module_type", "timestamp"]),
            models.Index(fields=["actor", "timestamp"]),
        ]
        ordering = ["-timestamp"]

    def __str__(self):
        ts = self.timestamp.isoformat() if self.timestamp else ""
        actor = getattr(self.actor, "username", None) or "system"
        return f"[{ts}] {actor} -> {self.module_type} {self.action}"
