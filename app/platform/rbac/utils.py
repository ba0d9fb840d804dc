"""
RBAC Utility Functions
Runtime authorization checks. Read-only: nothing here locks rows or writes audit entries.
"""

import logging
from typing import List, Union

from django.db.models import Q
from django.utils import timezone

from app.platform.modules.constants import ModuleType, coerce_module
from app.platform.modules.services import is_module_enabled
from .constants import ROLE_ASSIGNMENT_RULES, PermissionType, RoleType, coerce_permission
from .models import ModulePermission, Role, RoleModulePermission, UserRole

logger = logging.getLogger(__name__)


def _role_code(role) -> str:
    if isinstance(role, Role):
        return role.code
    return getattr(role, "value", role)


def is_authorized(role: Union[str, Role, RoleType], module, permission) -> bool:
    """
    Check whether ``role`` may perform ``permission`` on ``module``.

    Levels are checked in order and the first failure short-circuits:
    1. Module is enabled
    2. Catalog entry (module, permission) exists and is active
    3. Role is active and holds an active grant for it

    Raises:
        UnknownModuleError / UnknownPermissionError for identifiers outside the
        closed vocabularies. Unknown or inactive roles are simply unauthorized.
    """
    module = coerce_module(module)
    permission = coerce_permission(permission)
    role_code = _role_code(role)

    if not is_module_enabled(module):
        logger.debug(f"Authorization denied: module {module.value} is disabled")
        return False

    if not ModulePermission.objects.filter(
        module_type=module.value, permission_type=permission.value, is_active=True
    ).exists():
        logger.debug(f"Authorization denied: {module.value}.{permission.value} is not an active permission")
        return False

    granted = RoleModulePermission.objects.filter(
        role__code=role_code,
        role__is_active=True,
        is_active=True,
        module_permission__module_type=module.value,
        module_permission__permission_type=permission.value,
    ).exists()
    if not granted:
        logger.debug(f"Authorization denied: role {role_code} lacks {module.value}.{permission.value}")
    return granted


def get_user_roles(user) -> List[Role]:
    """
    Get all active, unexpired roles assigned to a user.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return []

    user_roles = (
        UserRole.objects.filter(user=user, is_active=True, role__is_active=True)
        .filter(Q(expires_at__isnull=True) | Q(expires_at__gt=timezone.now()))
        .select_related("role")
    )
    return [user_role.role for user_role in user_roles]


def has_module_permission(user, module: Union[str, ModuleType], permission: Union[str, PermissionType]) -> bool:
    """
    True when any of the user's active roles is authorized.
    Django superusers get no bypass: a disabled module stays unreachable.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False

    for role in get_user_roles(user):
        if is_authorized(role, module, permission):
            return True

    logger.debug(f"Module permission denied: user {user} has no role granting {permission} on {module}")
    return False


def has_role(user, role: Union[str, Role, RoleType]) -> bool:
    role_code = _role_code(role)
    return any(r.code == role_code for r in get_user_roles(user))


def can_assign_role(assigner: Union[str, Role, RoleType], target: Union[str, Role, RoleType]) -> bool:
    """
    Whether a holder of ``assigner`` may hand out ``target``.
    Custom roles outside the system set can neither assign nor be assigned by rule.
    """
    try:
        assigner_type = RoleType(_role_code(assigner))
        target_type = RoleType(_role_code(target))
    except ValueError:
        return False
    return target_type in ROLE_ASSIGNMENT_RULES.get(assigner_type, frozenset())


def user_can_assign_role(user, target) -> bool:
    return any(can_assign_role(role, target) for role in get_user_roles(user))
