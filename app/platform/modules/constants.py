"""
Module catalog - the closed set of feature modules and their static metadata.
Dependency edges and disable warnings are declared here at catalog-definition time.
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Optional


class ModuleType(str, Enum):
    """Feature modules of the compliance suite"""
    DASHBOARD = "Dashboard"
    WORK_PERMIT_MANAGEMENT = "WorkPermitManagement"
    INCIDENT_MANAGEMENT = "IncidentManagement"
    RISK_MANAGEMENT = "RiskManagement"
    INSPECTION_MANAGEMENT = "InspectionManagement"
    AUDIT_MANAGEMENT = "AuditManagement"
    PPE_MANAGEMENT = "PPEManagement"
    TRAINING_MANAGEMENT = "TrainingManagement"
    LICENSE_MANAGEMENT = "LicenseManagement"
    WASTE_MANAGEMENT = "WasteManagement"
    HEALTH_MONITORING = "HealthMonitoring"
    PHYSICAL_SECURITY = "PhysicalSecurity"
    INFORMATION_SECURITY = "InformationSecurity"
    PERSONNEL_SECURITY = "PersonnelSecurity"
    SECURITY_INCIDENT_MANAGEMENT = "SecurityIncidentManagement"
    COMPLIANCE_MANAGEMENT = "ComplianceManagement"
    REPORTING = "Reporting"
    ANALYTICS = "Analytics"
    USER_MANAGEMENT = "UserManagement"
    APPLICATION_SETTINGS = "ApplicationSettings"
    WORKFLOW_MANAGEMENT = "WorkflowManagement"


MODULE_CHOICES = [(m.value, m.value) for m in ModuleType]

# These can never be disabled regardless of graph state
CRITICAL_MODULES = frozenset({
    ModuleType.DASHBOARD,
    ModuleType.USER_MANAGEMENT,
    ModuleType.APPLICATION_SETTINGS,
})


class ModuleMetadata(NamedTuple):
    display_name: str
    description: str
    icon_class: str
    display_order: int
    parent: Optional[ModuleType] = None
    enabled_by_default: bool = True


MODULE_CATALOG: Dict[ModuleType, ModuleMetadata] = {
    ModuleType.DASHBOARD: ModuleMetadata(
        "Dashboard", "Main dashboard and overview", "fas fa-tachometer-alt", 0),
    ModuleType.USER_MANAGEMENT: ModuleMetadata(
        "User Management", "User accounts, roles, and permissions", "fas fa-users", 1),
    ModuleType.APPLICATION_SETTINGS: ModuleMetadata(
        "Application Settings", "System configuration and settings", "fas fa-cog", 2),
    ModuleType.INCIDENT_MANAGEMENT: ModuleMetadata(
        "Incident Management", "Report, investigate and close HSE incidents", "fas fa-exclamation-triangle", 10),
    ModuleType.RISK_MANAGEMENT: ModuleMetadata(
        "Risk Management", "Hazard register and risk assessments", "fas fa-shield-alt", 11),
    ModuleType.WORK_PERMIT_MANAGEMENT: ModuleMetadata(
        "Work Permit Management", "Permit-to-work requests, approvals and closure", "fas fa-file-signature", 12),
    ModuleType.INSPECTION_MANAGEMENT: ModuleMetadata(
        "Inspection Management", "Scheduled inspections, checklists and findings", "fas fa-clipboard-check", 13),
    ModuleType.AUDIT_MANAGEMENT: ModuleMetadata(
        "Audit Management", "Internal and external audits with findings", "fas fa-search",
        14, parent=ModuleType.COMPLIANCE_MANAGEMENT),
    ModuleType.PPE_MANAGEMENT: ModuleMetadata(
        "PPE Management", "Personal protective equipment inventory and issuance", "fas fa-hard-hat", 15),
    ModuleType.TRAINING_MANAGEMENT: ModuleMetadata(
        "Training Management", "Training sessions, participants and certifications", "fas fa-graduation-cap", 16),
    ModuleType.LICENSE_MANAGEMENT: ModuleMetadata(
        "License Management", "Operating licenses, renewals and conditions", "fas fa-id-card",
        17, parent=ModuleType.COMPLIANCE_MANAGEMENT),
    ModuleType.WASTE_MANAGEMENT: ModuleMetadata(
        "Waste Management", "Waste reports, disposal providers and manifests", "fas fa-recycle", 18),
    ModuleType.HEALTH_MONITORING: ModuleMetadata(
        "Health Monitoring", "Health records, vaccinations and medical surveillance", "fas fa-heartbeat", 19),
    ModuleType.PHYSICAL_SECURITY: ModuleMetadata(
        "Physical Security", "Access control, visitors and asset protection", "fas fa-lock", 20),
    ModuleType.INFORMATION_SECURITY: ModuleMetadata(
        "Information Security", "Security policies, controls and vulnerabilities", "fas fa-user-secret", 21),
    ModuleType.PERSONNEL_SECURITY: ModuleMetadata(
        "Personnel Security", "Background checks and security clearances", "fas fa-user-shield", 22),
    ModuleType.SECURITY_INCIDENT_MANAGEMENT: ModuleMetadata(
        "Security Incident Management", "Security incident reporting and response", "fas fa-bell", 23),
    ModuleType.COMPLIANCE_MANAGEMENT: ModuleMetadata(
        "Compliance Management", "Regulatory compliance monitoring", "fas fa-balance-scale", 24),
    ModuleType.REPORTING: ModuleMetadata(
        "Reporting", "Cross-module reports and exports", "fas fa-chart-bar", 30),
    ModuleType.ANALYTICS: ModuleMetadata(
        "Analytics", "Trend analysis and KPI computation used by reports", "fas fa-chart-line", 31),
    ModuleType.WORKFLOW_MANAGEMENT: ModuleMetadata(
        "Workflow Management", "Configurable approval workflows", "fas fa-project-diagram",
        40, enabled_by_default=False),
}


class DependencyDefinition(NamedTuple):
    module: ModuleType
    depends_on: ModuleType
    is_required: bool = True
    description: str = ""


DEFAULT_DEPENDENCIES: List[DependencyDefinition] = [
    DependencyDefinition(ModuleType.INCIDENT_MANAGEMENT, ModuleType.USER_MANAGEMENT, True,
                         "Incidents are reported and investigated by users"),
    DependencyDefinition(ModuleType.REPORTING, ModuleType.ANALYTICS, True,
                         "Reports are computed from analytics aggregates"),
    DependencyDefinition(ModuleType.WORK_PERMIT_MANAGEMENT, ModuleType.RISK_MANAGEMENT, True,
                         "Permits reference hazard assessments"),
    DependencyDefinition(ModuleType.WORK_PERMIT_MANAGEMENT, ModuleType.TRAINING_MANAGEMENT, False,
                         "Permit holders may require valid training"),
    DependencyDefinition(ModuleType.AUDIT_MANAGEMENT, ModuleType.INSPECTION_MANAGEMENT, True,
                         "Audit findings are raised from inspections"),
    DependencyDefinition(ModuleType.SECURITY_INCIDENT_MANAGEMENT, ModuleType.INCIDENT_MANAGEMENT, False,
                         "Security incidents can escalate to HSE incidents"),
    DependencyDefinition(ModuleType.COMPLIANCE_MANAGEMENT, ModuleType.REPORTING, False,
                         "Compliance dashboards link to reports"),
    DependencyDefinition(ModuleType.WORKFLOW_MANAGEMENT, ModuleType.USER_MANAGEMENT, True,
                         "Workflow steps are assigned to users"),
]


def coerce_module(value) -> ModuleType:
    """Resolve an identifier against the closed catalog."""
    from .exceptions import UnknownModuleError

    if isinstance(value, ModuleType):
        return value
    try:
        return ModuleType(value)
    except ValueError:
        raise UnknownModuleError(f"Unknown module: {value}", module=str(value)) from None
