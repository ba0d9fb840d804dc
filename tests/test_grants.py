import pytest

from app.core.models import AuditAction, AuditLogEntry
from app.platform.modules import services
from app.platform.modules.constants import ModuleType
from app.platform.rbac import grants
from app.platform.rbac.constants import PermissionType, RoleType
from app.platform.rbac.exceptions import UnknownPermissionError, UnknownRoleError
from app.platform.rbac.models import Role, RoleModulePermission

M = ModuleType
P = PermissionType

pytestmark = pytest.mark.django_db


@pytest.fixture
def auditor(rbac):
    return Role.objects.create(code="ExternalAuditor", name="External Auditor")


def test_grant_is_idempotent(auditor):
    first = grants.grant_permission(auditor, M.AUDIT_MANAGEMENT, P.READ, reason="engagement")
    second = grants.grant_permission(auditor, M.AUDIT_MANAGEMENT, P.READ, reason="engagement renewed")

    assert first.pk == second.pk
    assert RoleModulePermission.objects.filter(role=auditor).count() == 1
    second.refresh_from_db()
    assert second.is_active
    assert second.reason == "engagement renewed"


def test_grant_revoke_round_trip(auditor):
    grants.grant_permission(auditor, M.AUDIT_MANAGEMENT, P.EXPORT)
    assert (M.AUDIT_MANAGEMENT, P.EXPORT) in grants.effective_permissions(auditor)

    revoked = grants.revoke_permission(auditor, M.AUDIT_MANAGEMENT, P.EXPORT)
    assert not revoked.is_active
    assert grants.effective_permissions(auditor) == set()
    assert RoleModulePermission.objects.filter(role=auditor).exists()

    grants.grant_permission(auditor, M.AUDIT_MANAGEMENT, P.EXPORT)
    assert (M.AUDIT_MANAGEMENT, P.EXPORT) in grants.effective_permissions(auditor)

    actions = list(AuditLogEntry.objects.filter(module_type=M.AUDIT_MANAGEMENT.value).values_list("action", flat=True))
    assert actions.count(AuditAction.PERMISSION_GRANTED) == 2
    assert actions.count(AuditAction.PERMISSION_REVOKED) == 1


def test_revoking_revoked_grant_writes_no_audit(auditor):
    grants.grant_permission(auditor, M.AUDIT_MANAGEMENT, P.EXPORT)
    grants.revoke_permission(auditor, M.AUDIT_MANAGEMENT, P.EXPORT)

    again = grants.revoke_permission(auditor, M.AUDIT_MANAGEMENT, P.EXPORT)

    assert again is not None and not again.is_active
    assert AuditLogEntry.objects.filter(action=AuditAction.PERMISSION_REVOKED).count() == 1


def test_revoking_missing_grant_is_noop(auditor):
    assert grants.revoke_permission(auditor, M.WASTE_MANAGEMENT, P.DELETE) is None
    assert not AuditLogEntry.objects.exists()


def test_unknown_identifiers(auditor):
    with pytest.raises(UnknownRoleError):
        grants.grant_permission("Ghost", M.DASHBOARD, P.READ)
    with pytest.raises(UnknownPermissionError):
        grants.grant_permission(auditor, M.DASHBOARD, "Teleport")


def test_effective_permissions_exclude_disabled_modules(auditor):
    grants.grant_permission(auditor, M.WASTE_MANAGEMENT, P.READ)
    grants.grant_permission(auditor, M.DASHBOARD, P.READ)

    services.disable_module(M.WASTE_MANAGEMENT)

    assert grants.effective_permissions(auditor) == {(M.DASHBOARD, P.READ)}
    assert grants.accessible_modules(auditor) == [M.DASHBOARD]
    assert auditor.accessible_modules() == [M.DASHBOARD]


def test_inactive_catalog_entry_drops_out(auditor):
    grants.grant_permission(auditor, M.DASHBOARD, P.EXPORT)
    grants.set_module_permission_active(M.DASHBOARD, P.EXPORT, False)

    assert (M.DASHBOARD, P.EXPORT) not in auditor.active_permissions()
    assert AuditLogEntry.objects.filter(action=AuditAction.PERMISSION_DEACTIVATED).count() == 1

    # Toggling to the current state writes nothing
    grants.set_module_permission_active(M.DASHBOARD, P.EXPORT, False)
    assert AuditLogEntry.objects.filter(action=AuditAction.PERMISSION_DEACTIVATED).count() == 1


def test_default_grants_follow_role_map(rbac):
    viewer = Role.objects.get(code=RoleType.VIEWER.value)
    assert grants.effective_permissions(viewer) == {(M.DASHBOARD, P.READ)}

    admin = Role.objects.get(code=RoleType.ADMIN.value)
    admin_permissions = grants.effective_permissions(admin)
    assert (M.USER_MANAGEMENT, P.DELETE) in admin_permissions
    assert (M.USER_MANAGEMENT, P.CONFIGURE) not in admin_permissions
    assert not any(module == M.APPLICATION_SETTINGS for module, _ in admin_permissions)


def test_roles_with_module_access(rbac):
    codes = set(grants.roles_with_module_access(M.SECURITY_INCIDENT_MANAGEMENT).values_list("code", flat=True))
    assert {"SecurityManager", "SecurityOfficer", "SuperAdmin"} <= codes
    assert "Viewer" not in codes
