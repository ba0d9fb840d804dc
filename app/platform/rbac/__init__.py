"""
Role-Based Access Control
Permission catalog, role grants and runtime authorization checks.
"""

# Models are imported lazily to avoid circular imports during app loading:
#   from app.platform.rbac.models import Role, ModulePermission, RoleModulePermission, UserRole
#   from app.platform.rbac.grants import grant_permission, revoke_permission, effective_permissions
#   from app.platform.rbac.utils import is_authorized, has_module_permission, can_assign_role
#   from app.platform.rbac.permissions import module_permission

from .constants import PermissionType, RoleType

__all__ = [
    "PermissionType",
    "RoleType",
]
