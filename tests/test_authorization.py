import pytest

from app.platform.modules import services
from app.platform.modules.constants import ModuleType
from app.platform.modules.exceptions import UnknownModuleError
from app.platform.rbac import grants
from app.platform.rbac.constants import PermissionType, RoleType
from app.platform.rbac.exceptions import RoleAssignmentDenied, UnknownPermissionError
from app.platform.rbac.helpers import assign_role_to_user, remove_user_role
from app.platform.rbac.models import Role
from app.platform.rbac.utils import can_assign_role, has_module_permission, is_authorized

M = ModuleType
P = PermissionType

pytestmark = pytest.mark.django_db


def test_granted_permission_is_authorized(rbac):
    assert is_authorized(RoleType.INCIDENT_MANAGER, M.INCIDENT_MANAGEMENT, P.APPROVE)
    assert not is_authorized(RoleType.INCIDENT_MANAGER, M.RISK_MANAGEMENT, P.READ)


def test_disabled_module_denies_every_role(rbac):
    assert is_authorized(RoleType.SUPER_ADMIN, M.REPORTING, P.READ)

    services.disable_module(M.REPORTING)

    for role in RoleType:
        for permission in PermissionType:
            assert not is_authorized(role, M.REPORTING, permission)


def test_unknown_identifiers_raise(rbac):
    with pytest.raises(UnknownModuleError):
        is_authorized(RoleType.SUPER_ADMIN, "Payroll", P.READ)
    with pytest.raises(UnknownPermissionError):
        is_authorized(RoleType.SUPER_ADMIN, M.DASHBOARD, "Teleport")


def test_unknown_or_inactive_role_is_unauthorized(rbac):
    assert not is_authorized("Ghost", M.DASHBOARD, P.READ)

    Role.objects.filter(code=RoleType.VIEWER.value).update(is_active=False)
    assert not is_authorized(RoleType.VIEWER, M.DASHBOARD, P.READ)


def test_inactive_catalog_entry_denies(rbac):
    grants.set_module_permission_active(M.DASHBOARD, P.READ, False)
    assert not is_authorized(RoleType.SUPER_ADMIN, M.DASHBOARD, P.READ)


def test_has_module_permission_uses_assigned_roles(rbac, make_user):
    user = make_user("risk", RoleType.RISK_MANAGER)

    assert has_module_permission(user, M.RISK_MANAGEMENT, P.DELETE)
    assert not has_module_permission(user, M.INCIDENT_MANAGEMENT, P.READ)

    remove_user_role(user, RoleType.RISK_MANAGER)
    assert not has_module_permission(user, M.RISK_MANAGEMENT, P.DELETE)


def test_superuser_flag_grants_nothing(rbac, django_user_model):
    user = django_user_model.objects.create_superuser(username="boss", password="pass-1234-word")
    assert not has_module_permission(user, M.DASHBOARD, P.READ)


@pytest.mark.parametrize(
    "assigner,target,allowed",
    [
        (RoleType.SUPER_ADMIN, RoleType.DEVELOPER, True),
        (RoleType.DEVELOPER, RoleType.SUPER_ADMIN, True),
        (RoleType.ADMIN, RoleType.VIEWER, True),
        (RoleType.ADMIN, RoleType.ADMIN, False),
        (RoleType.ADMIN, RoleType.SUPER_ADMIN, False),
        (RoleType.SECURITY_MANAGER, RoleType.SECURITY_OFFICER, True),
        (RoleType.SECURITY_MANAGER, RoleType.REPORTER, False),
        (RoleType.REPORTER, RoleType.VIEWER, False),
        ("CustomRole", RoleType.VIEWER, False),
    ],
)
def test_can_assign_role(assigner, target, allowed):
    assert can_assign_role(assigner, target) is allowed


def test_assignment_checks_assigner_roles(rbac, make_user):
    security_manager = make_user("sm", RoleType.SECURITY_MANAGER)
    user = make_user("newcomer")

    assign_role_to_user(user, RoleType.SECURITY_OFFICER, assigned_by=security_manager)
    with pytest.raises(RoleAssignmentDenied):
        assign_role_to_user(user, RoleType.ADMIN, assigned_by=security_manager)
