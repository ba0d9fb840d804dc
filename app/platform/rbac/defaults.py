"""
Default permission catalog, system roles and grants used on fresh environments.
"""

import logging
import re

from django.db import transaction

from app.platform.modules.constants import MODULE_CATALOG, ModuleType
from .constants import (
    PERMISSION_DESCRIPTIONS,
    ROLE_DESCRIPTIONS,
    ROLE_MODULE_PERMISSIONS,
    PermissionType,
    RoleType,
)
from .models import ModulePermission, Role, RoleModulePermission

logger = logging.getLogger(__name__)

_WORD_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def humanize_code(code: str) -> str:
    """'PPEManager' -> 'PPE Manager'"""
    return _WORD_BOUNDARY.sub(" ", code)


@transaction.atomic
def ensure_permission_catalog(force: bool = False) -> int:
    """One ModulePermission row per (module, permission). Returns rows created."""
    created_count = 0
    for module in ModuleType:
        module_name = MODULE_CATALOG[module].display_name
        for permission in PermissionType:
            name = f"{permission.value} {module_name}"
            description = PERMISSION_DESCRIPTIONS[permission].format(module=module_name)
            module_permission, created = ModulePermission.objects.get_or_create(
                module_type=module.value,
                permission_type=permission.value,
                defaults={"name": name, "description": description, "is_active": True},
            )
            if created:
                created_count += 1
            elif force:
                module_permission.name = name
                module_permission.description = description
                module_permission.save(update_fields=["name", "description", "updated_at"])
    if created_count:
        logger.info(f"Seeded {created_count} module permissions")
    return created_count


@transaction.atomic
def ensure_system_roles(force: bool = False) -> int:
    created_count = 0
    for role_type in RoleType:
        role, created = Role.objects.get_or_create(
            code=role_type.value,
            defaults={
                "name": humanize_code(role_type.value),
                "description": ROLE_DESCRIPTIONS.get(role_type, ""),
                "is_system_role": True,
                "is_active": True,
            },
        )
        if created:
            created_count += 1
            logger.info(f"Seeded role {role.code}")
        elif force:
            role.name = humanize_code(role_type.value)
            role.description = ROLE_DESCRIPTIONS.get(role_type, "")
            role.is_system_role = True
            role.save(update_fields=["name", "description", "is_system_role", "updated_at"])
    return created_count


@transaction.atomic
def ensure_default_grants() -> int:
    """
    Seed the default role map. Existing grants are left untouched, so a grant
    revoked by an administrator is not silently restored.
    """
    catalog = {
        (mp.module_type, mp.permission_type): mp
        for mp in ModulePermission.objects.all()
    }
    roles = {role.code: role for role in Role.objects.filter(code__in=[r.value for r in RoleType])}

    created_count = 0
    for role_type, module_permissions in ROLE_MODULE_PERMISSIONS.items():
        role = roles.get(role_type.value)
        if role is None:
            continue
        for module, permissions in module_permissions.items():
            for permission in permissions:
                module_permission = catalog.get((module.value, permission.value))
                if module_permission is None:
                    continue
                _, created = RoleModulePermission.objects.get_or_create(
                    role=role,
                    module_permission=module_permission,
                    defaults={"reason": "Default system grant"},
                )
                created_count += int(created)
    if created_count:
        logger.info(f"Seeded {created_count} default grants")
    return created_count
