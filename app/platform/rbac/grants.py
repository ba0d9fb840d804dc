"""
Grant store.

Grants are find-or-create: granting twice reactivates and refreshes the existing
row instead of failing, and revoking only flips ``is_active``. Each mutation
writes its audit entry in the same transaction.
"""

import logging
from typing import List, Optional, Set, Tuple

from django.db import transaction
from django.utils import timezone

from app.core.models import AuditAction
from app.core.services.audit import AuditContext, record_audit
from app.platform.modules.constants import ModuleType, coerce_module
from app.platform.modules.models import ModuleConfiguration
from .constants import PermissionType, coerce_permission
from .exceptions import UnknownPermissionError, UnknownRoleError
from .models import ModulePermission, Role, RoleModulePermission

logger = logging.getLogger(__name__)


def resolve_role(role) -> Role:
    """Accept a Role instance or its code."""
    if isinstance(role, Role):
        return role
    code = getattr(role, "value", role)
    try:
        return Role.objects.get(code=code)
    except Role.DoesNotExist:
        raise UnknownRoleError(f"Unknown role: {code}", role=str(code)) from None


def get_module_permission(module, permission, for_update: bool = False) -> ModulePermission:
    module = coerce_module(module)
    permission = coerce_permission(permission)
    queryset = ModulePermission.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(module_type=module.value, permission_type=permission.value)
    except ModulePermission.DoesNotExist:
        raise UnknownPermissionError(
            f"Permission {permission.value} is not defined for module {module.value}",
            module=module.value,
            permission=permission.value,
        ) from None


def _grant_snapshot(grant: Optional[RoleModulePermission]):
    if grant is None:
        return None
    return {
        "role": grant.role.code,
        "permission": grant.module_permission.code,
        "is_active": grant.is_active,
        "reason": grant.reason,
        "granted_by": str(grant.granted_by_id) if grant.granted_by_id else None,
    }


@transaction.atomic
def grant_permission(role, module, permission, granted_by=None, reason: str = "",
                     audit_context: Optional[AuditContext] = None) -> RoleModulePermission:
    """
    Give ``role`` the catalog permission (module, permission).

    Never raises on a repeated grant: an existing row is reactivated and its
    grantor, reason and timestamp refreshed.
    """
    role = resolve_role(role)
    module_permission = get_module_permission(module, permission)
    grantor = granted_by if getattr(granted_by, "is_authenticated", False) else None

    grant, created = RoleModulePermission.objects.select_for_update().get_or_create(
        role=role,
        module_permission=module_permission,
        defaults={
            "is_active": True,
            "granted_at": timezone.now(),
            "granted_by": grantor,
            "reason": reason,
        },
    )
    old_value = None
    if not created:
        old_value = _grant_snapshot(grant)
        grant.is_active = True
        grant.granted_at = timezone.now()
        grant.granted_by = grantor
        grant.reason = reason
        grant.save(update_fields=["is_active", "granted_at", "granted_by", "reason", "updated_at"])

    record_audit(
        action=AuditAction.PERMISSION_GRANTED,
        module_type=module_permission.module_type,
        old_value=old_value,
        new_value=_grant_snapshot(grant),
        actor=granted_by,
        audit_context=audit_context,
    )
    logger.info(f"Granted {module_permission.code} to role {role.code} by {granted_by or 'system'}")
    return grant


@transaction.atomic
def revoke_permission(role, module, permission, revoked_by=None,
                      audit_context: Optional[AuditContext] = None) -> Optional[RoleModulePermission]:
    """
    Deactivate the grant, keeping the row. Returns None when the role never held it;
    an already revoked grant is returned unchanged and not audited again.
    """
    role = resolve_role(role)
    module_permission = get_module_permission(module, permission)
    grant = (
        RoleModulePermission.objects.select_for_update()
        .filter(role=role, module_permission=module_permission)
        .first()
    )
    if grant is None:
        return None
    if not grant.is_active:
        return grant

    old_value = _grant_snapshot(grant)
    grant.is_active = False
    grant.save(update_fields=["is_active", "updated_at"])
    record_audit(
        action=AuditAction.PERMISSION_REVOKED,
        module_type=module_permission.module_type,
        old_value=old_value,
        new_value=_grant_snapshot(grant),
        actor=revoked_by,
        audit_context=audit_context,
    )
    logger.info(f"Revoked {module_permission.code} from role {role.code} by {revoked_by or 'system'}")
    return grant


def active_grants(role):
    """Active grants on active catalog entries of currently enabled modules."""
    enabled_modules = ModuleConfiguration.objects.filter(is_enabled=True).values("module_type")
    return RoleModulePermission.objects.filter(
        role=role,
        is_active=True,
        module_permission__is_active=True,
        module_permission__module_type__in=enabled_modules,
    ).select_related("module_permission")


def effective_permissions(role) -> Set[Tuple[ModuleType, PermissionType]]:
    role = resolve_role(role)
    if not role.is_active:
        return set()
    return {
        (grant.module_permission.module, grant.module_permission.permission)
        for grant in active_grants(role)
    }


def accessible_modules(role) -> List[ModuleType]:
    return sorted({module for module, _ in effective_permissions(role)}, key=lambda m: m.value)


def roles_with_module_access(module):
    """Active roles holding at least one active grant on ``module``."""
    module = coerce_module(module)
    return Role.objects.filter(
        is_active=True,
        module_permissions__is_active=True,
        module_permissions__module_permission__is_active=True,
        module_permissions__module_permission__module_type=module.value,
    ).distinct().order_by("name")


@transaction.atomic
def set_module_permission_active(module, permission, is_active: bool, actor=None,
                                 audit_context: Optional[AuditContext] = None) -> ModulePermission:
    """Toggle a catalog entry. Grants stay in place but stop counting while it is inactive."""
    module_permission = get_module_permission(module, permission, for_update=True)
    if module_permission.is_active == is_active:
        return module_permission

    module_permission.is_active = is_active
    module_permission.save(update_fields=["is_active", "updated_at"])
    record_audit(
        action=AuditAction.PERMISSION_ACTIVATED if is_active else AuditAction.PERMISSION_DEACTIVATED,
        module_type=module_permission.module_type,
        old_value={"permission": module_permission.code, "is_active": not is_active},
        new_value={"permission": module_permission.code, "is_active": is_active},
        actor=actor,
        audit_context=audit_context,
    )
    logger.info(f"Catalog entry {module_permission.code} set active={is_active} by {actor or 'system'}")
    return module_permission
