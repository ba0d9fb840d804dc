"""
RBAC Constants - Permission and Role Definitions
Closed permission vocabulary, system roles and the default role -> module grants
"""

from enum import Enum
from typing import Dict, FrozenSet

from app.platform.modules.constants import ModuleType


class PermissionType(str, Enum):
    """Operations a role may perform on a module"""
    READ = "Read"
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    EXPORT = "Export"
    CONFIGURE = "Configure"
    APPROVE = "Approve"
    ASSIGN = "Assign"


PERMISSION_CHOICES = [(p.value, p.value) for p in PermissionType]


class RoleType(str, Enum):
    """System roles seeded by init_rbac"""
    SUPER_ADMIN = "SuperAdmin"
    DEVELOPER = "Developer"
    ADMIN = "Admin"
    INCIDENT_MANAGER = "IncidentManager"
    RISK_MANAGER = "RiskManager"
    PPE_MANAGER = "PPEManager"
    HEALTH_MONITOR = "HealthMonitor"
    INSPECTION_MANAGER = "InspectionManager"
    SECURITY_MANAGER = "SecurityManager"
    SECURITY_OFFICER = "SecurityOfficer"
    COMPLIANCE_OFFICER = "ComplianceOfficer"
    REPORTER = "Reporter"
    VIEWER = "Viewer"
    WORKFLOW_MANAGER = "WorkflowManager"


ROLE_DESCRIPTIONS: Dict[RoleType, str] = {
    RoleType.SUPER_ADMIN: "Full access to every module, including system configuration",
    RoleType.DEVELOPER: "Full access to every module for maintenance and troubleshooting",
    RoleType.ADMIN: "Administers all functional modules and user accounts",
    RoleType.INCIDENT_MANAGER: "Manages incident reporting and investigation",
    RoleType.RISK_MANAGER: "Manages hazard register and risk assessments",
    RoleType.PPE_MANAGER: "Manages personal protective equipment",
    RoleType.HEALTH_MONITOR: "Manages health records and surveillance",
    RoleType.INSPECTION_MANAGER: "Manages inspections and findings",
    RoleType.SECURITY_MANAGER: "Manages physical, information and personnel security",
    RoleType.SECURITY_OFFICER: "Handles day-to-day security operations",
    RoleType.COMPLIANCE_OFFICER: "Monitors regulatory compliance across modules",
    RoleType.REPORTER: "Read and export access for reporting",
    RoleType.VIEWER: "Dashboard read access only",
    RoleType.WORKFLOW_MANAGER: "Designs and operates approval workflows",
}


# ==========================================
# Permission sets
# ==========================================

ALL_PERMISSIONS: FrozenSet[PermissionType] = frozenset(PermissionType)

CRUD_PERMISSIONS: FrozenSet[PermissionType] = frozenset({
    PermissionType.READ,
    PermissionType.CREATE,
    PermissionType.UPDATE,
    PermissionType.DELETE,
    PermissionType.EXPORT,
})

READ_ONLY_PERMISSIONS: FrozenSet[PermissionType] = frozenset({
    PermissionType.READ,
    PermissionType.EXPORT,
})

PERMISSION_DESCRIPTIONS: Dict[PermissionType, str] = {
    PermissionType.READ: "View {module} records",
    PermissionType.CREATE: "Create {module} records",
    PermissionType.UPDATE: "Edit {module} records",
    PermissionType.DELETE: "Delete {module} records",
    PermissionType.EXPORT: "Export {module} data",
    PermissionType.CONFIGURE: "Configure {module}",
    PermissionType.APPROVE: "Approve {module} workflows",
    PermissionType.ASSIGN: "Assign {module} work to users",
}


def _own_module(module: ModuleType) -> Dict[ModuleType, FrozenSet[PermissionType]]:
    return {
        ModuleType.DASHBOARD: READ_ONLY_PERMISSIONS,
        module: ALL_PERMISSIONS,
        ModuleType.REPORTING: READ_ONLY_PERMISSIONS,
    }


_FUNCTIONAL_MODULES = [
    m for m in ModuleType
    if m not in (ModuleType.USER_MANAGEMENT, ModuleType.APPLICATION_SETTINGS)
]

_SECURITY_MODULES = [
    ModuleType.PHYSICAL_SECURITY,
    ModuleType.INFORMATION_SECURITY,
    ModuleType.PERSONNEL_SECURITY,
]


# ==========================================
# Default grants (seeded by init_rbac)
# ==========================================

ROLE_MODULE_PERMISSIONS: Dict[RoleType, Dict[ModuleType, FrozenSet[PermissionType]]] = {
    RoleType.SUPER_ADMIN: {m: ALL_PERMISSIONS for m in ModuleType},
    RoleType.DEVELOPER: {m: ALL_PERMISSIONS for m in ModuleType},
    RoleType.ADMIN: {
        **{m: ALL_PERMISSIONS for m in _FUNCTIONAL_MODULES},
        ModuleType.USER_MANAGEMENT: CRUD_PERMISSIONS,
    },
    RoleType.INCIDENT_MANAGER: _own_module(ModuleType.INCIDENT_MANAGEMENT),
    RoleType.RISK_MANAGER: _own_module(ModuleType.RISK_MANAGEMENT),
    RoleType.PPE_MANAGER: _own_module(ModuleType.PPE_MANAGEMENT),
    RoleType.HEALTH_MONITOR: _own_module(ModuleType.HEALTH_MONITORING),
    RoleType.INSPECTION_MANAGER: _own_module(ModuleType.INSPECTION_MANAGEMENT),
    RoleType.WORKFLOW_MANAGER: _own_module(ModuleType.WORKFLOW_MANAGEMENT),
    RoleType.SECURITY_MANAGER: {
        ModuleType.DASHBOARD: ALL_PERMISSIONS,
        **{m: ALL_PERMISSIONS for m in _SECURITY_MODULES},
        ModuleType.SECURITY_INCIDENT_MANAGEMENT: ALL_PERMISSIONS,
        ModuleType.COMPLIANCE_MANAGEMENT: ALL_PERMISSIONS,
        ModuleType.REPORTING: ALL_PERMISSIONS,
    },
    RoleType.SECURITY_OFFICER: {
        ModuleType.DASHBOARD: READ_ONLY_PERMISSIONS,
        **{m: CRUD_PERMISSIONS for m in _SECURITY_MODULES},
        ModuleType.SECURITY_INCIDENT_MANAGEMENT: ALL_PERMISSIONS,
        ModuleType.COMPLIANCE_MANAGEMENT: READ_ONLY_PERMISSIONS,
        ModuleType.REPORTING: READ_ONLY_PERMISSIONS,
    },
    RoleType.COMPLIANCE_OFFICER: {
        **{m: READ_ONLY_PERMISSIONS for m in _FUNCTIONAL_MODULES},
        ModuleType.DASHBOARD: ALL_PERMISSIONS,
        ModuleType.COMPLIANCE_MANAGEMENT: ALL_PERMISSIONS,
        ModuleType.REPORTING: ALL_PERMISSIONS,
    },
    RoleType.REPORTER: {m: READ_ONLY_PERMISSIONS for m in _FUNCTIONAL_MODULES},
    RoleType.VIEWER: {ModuleType.DASHBOARD: frozenset({PermissionType.READ})},
}


# Which roles each role may hand out; roles missing here cannot assign anything
ROLE_ASSIGNMENT_RULES: Dict[RoleType, FrozenSet[RoleType]] = {
    RoleType.SUPER_ADMIN: frozenset(RoleType),
    RoleType.DEVELOPER: frozenset(RoleType),
    RoleType.ADMIN: frozenset(RoleType) - {RoleType.SUPER_ADMIN, RoleType.DEVELOPER, RoleType.ADMIN},
    RoleType.SECURITY_MANAGER: frozenset({RoleType.SECURITY_OFFICER, RoleType.COMPLIANCE_OFFICER}),
}


def coerce_permission(value) -> PermissionType:
    """Resolve an identifier against the closed permission vocabulary."""
    from .exceptions import UnknownPermissionError

    if isinstance(value, PermissionType):
        return value
    try:
        return PermissionType(value)
    except ValueError:
        raise UnknownPermissionError(f"Unknown permission: {value}", permission=str(value)) from None
