"""
RBAC Models - roles, the module permission catalog and grants
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from app.core.models import CoreBaseModel
from app.platform.modules.constants import MODULE_CHOICES, ModuleType
from .constants import PERMISSION_CHOICES, PermissionType


class Role(CoreBaseModel):
    """
    A named bundle of module permissions.
    System roles are seeded by init_rbac and cannot be removed from the admin.
    """

    code = models.CharField(max_length=100, unique=True, db_index=True)  # e.g. "SecurityOfficer"
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    is_system_role = models.BooleanField(
        default=False,
        help_text="System roles cannot be deleted"
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "rbac_roles"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def active_permissions(self):
        """Effective (module, permission) pairs for this role."""
        from .grants import effective_permissions
        return effective_permissions(self)

    def accessible_modules(self):
        from .grants import accessible_modules
        return accessible_modules(self)


class ModulePermission(CoreBaseModel):
    """
    Catalog entry: one permission available on one module.
    Deactivated instead of deleted so grant history stays intact.
    """

    module_type = models.CharField(max_length=50, choices=MODULE_CHOICES, db_index=True)
    permission_type = models.CharField(max_length=20, choices=PERMISSION_CHOICES, db_index=True)
    name = models.CharField(max_length=150)
    description = models.CharField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "rbac_module_permissions"
        ordering = ["module_type", "permission_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["module_type", "permission_type"],
                name="uq_module_permission_pair",
            ),
        ]

    def __str__(self):
        return self.code

    @property
    def module(self) -> ModuleType:
        return ModuleType(self.module_type)

    @property
    def permission(self) -> PermissionType:
        return PermissionType(self.permission_type)

    @property
    def code(self) -> str:
        return f"{self.module_type}.{self.permission_type}"


class RoleModulePermission(CoreBaseModel):
    """
    Grant: a role holds one catalog permission.
    Revocation flips ``is_active``; rows are kept for history.
    """

    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="module_permissions"
    )
    module_permission = models.ForeignKey(
        ModulePermission,
        on_delete=models.CASCADE,
        related_name="grants"
    )

    is_active = models.BooleanField(default=True, db_index=True)
    granted_at = models.DateTimeField(default=timezone.now)
    granted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="granted_module_permissions"
    )
    reason = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = "rbac_role_module_permissions"
        constraints = [
            models.UniqueConstraint(
                fields=["role", "module_permission"],
                name="uq_role_module_permission",
            ),
        ]
        indexes = [
            models.Index(fields=["role", "is_active"]),
        ]

    def __str__(self):
        state = "" if self.is_active else " (revoked)"
        return f"{self.role.code} - {self.module_permission.code}{state}"


class UserRole(CoreBaseModel):
    """
    Assigns roles to users.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_roles",
        db_index=True
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="user_roles"
    )

    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_roles"
    )
    assigned_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Role expiration (for temporary assignments)"
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "rbac_user_roles"
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="uq_user_role"),
        ]
        indexes = [
            models.Index(fields=["user", "is_active"]),
        ]

    def __str__(self):
        return f"{self.user} - {self.role.code}"

    def is_expired(self):
        if self.expires_at:
            return timezone.now() > self.expires_at
        return False

    def is_valid(self):
        return self.is_active and self.role.is_active and not self.is_expired()
