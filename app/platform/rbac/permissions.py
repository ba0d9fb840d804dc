"""
DRF Permission Classes for RBAC
"""

from rest_framework import permissions

from app.platform.modules.constants import ModuleType, coerce_module
from .constants import PermissionType, coerce_permission
from .utils import has_module_permission


class HasModulePermission(permissions.BasePermission):
    """
    Base class; use ``module_permission()`` to build a concrete subclass.

    Usage:
        permission_classes = [module_permission(ModuleType.APPLICATION_SETTINGS, PermissionType.READ)]
    """

    module: ModuleType = None
    permission: PermissionType = None

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return has_module_permission(request.user, self.module, self.permission)


def module_permission(module, permission):
    """DRF instantiates permission classes itself, so bind the pair on a subclass."""
    module = coerce_module(module)
    permission = coerce_permission(permission)
    return type(
        f"Has{module.value}{permission.value}Permission",
        (HasModulePermission,),
        {"module": module, "permission": permission},
    )


class ReadOrConfigure(permissions.BasePermission):
    """
    Safe methods need ``module.Read``; everything else needs ``module.Configure``.
    Subclass and set ``module``.
    """

    module: ModuleType = ModuleType.APPLICATION_SETTINGS

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return has_module_permission(request.user, self.module, PermissionType.READ)
        return has_module_permission(request.user, self.module, PermissionType.CONFIGURE)
