"""
RBAC Helper Functions
Role assignment to users
"""

import logging

from django.db import transaction

from .exceptions import RoleAssignmentDenied
from .grants import resolve_role
from .models import UserRole
from .utils import user_can_assign_role

logger = logging.getLogger(__name__)


@transaction.atomic
def assign_role_to_user(user, role, assigned_by=None, expires_at=None) -> UserRole:
    """
    Assign a role to a user, reactivating a previous assignment if one exists.

    When ``assigned_by`` is given, their roles must allow handing out ``role``.
    """
    role = resolve_role(role)
    if assigned_by is not None and not user_can_assign_role(assigned_by, role):
        raise RoleAssignmentDenied(f"{assigned_by} may not assign role {role.code}", role=role.code)

    user_role, created = UserRole.objects.select_for_update().get_or_create(
        user=user,
        role=role,
        defaults={
            "assigned_by": assigned_by,
            "expires_at": expires_at,
            "is_active": True,
        },
    )
    if not created:
        user_role.is_active = True
        user_role.assigned_by = assigned_by
        user_role.expires_at = expires_at
        user_role.save(update_fields=["is_active", "assigned_by", "expires_at", "updated_at"])

    logger.info(f"Assigned role {role.code} to user {user}")
    return user_role


@transaction.atomic
def remove_user_role(user, role) -> bool:
    role = resolve_role(role)
    updated = UserRole.objects.filter(user=user, role=role, is_active=True).update(is_active=False)
    if updated:
        logger.info(f"Removed role {role.code} from user {user}")
    return bool(updated)
