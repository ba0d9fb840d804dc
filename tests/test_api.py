import pytest
from rest_framework.test import APIClient

from app.core.models import AuditAction, AuditLogEntry
from app.platform.modules.constants import ModuleType
from app.platform.rbac.constants import RoleType
from app.platform.rbac.models import RoleModulePermission

pytestmark = pytest.mark.django_db

BASE = "/api/v1/module-configuration/"


def test_unauthenticated_request_is_rejected(rbac):
    response = APIClient().get(BASE)
    assert response.status_code == 401
    assert response.data["errorCode"] == "AUTH_ERROR"


def test_viewer_cannot_read_configuration(rbac, make_user):
    client = APIClient()
    client.force_authenticate(user=make_user("viewer", RoleType.VIEWER))

    response = client.get(BASE)

    assert response.status_code == 403
    assert response.data["status"] == "failure"


def test_list_and_filter(api_client):
    response = api_client.get(BASE)
    assert response.status_code == 200
    assert response.data["data"]["count"] == len(ModuleType)

    enabled = api_client.get(BASE, {"enabled": "true"}).data["data"]["modules"]
    assert "WorkflowManagement" not in {m["module_type"] for m in enabled}


def test_retrieve_unknown_module_returns_404(api_client):
    response = api_client.get(f"{BASE}Payroll/")
    assert response.status_code == 404
    assert response.data["errorCode"] == "UNKNOWN_MODULE"


def test_disable_cascade_records_request_metadata(api_client):
    response = api_client.post(
        f"{BASE}ComplianceManagement/disable/",
        {"context": "audit season over"},
        format="json",
        HTTP_X_FORWARDED_FOR="203.0.113.9",
        HTTP_USER_AGENT="admin-console",
    )

    assert response.status_code == 200
    assert response.data["data"]["changed_modules"] == [
        "ComplianceManagement", "AuditManagement", "LicenseManagement",
    ]
    entry = AuditLogEntry.objects.get(module_type="ComplianceManagement", action=AuditAction.DISABLED)
    assert entry.ip_address == "203.0.113.9"
    assert entry.user_agent == "admin-console"
    assert entry.context == "audit season over"
    assert entry.actor.username == "root"


def test_policy_violations_map_to_conflict(api_client):
    critical = api_client.post(f"{BASE}Dashboard/disable/", {}, format="json")
    assert critical.status_code == 409
    assert critical.data["errorCode"] == "CRITICAL_MODULE"

    blocked = api_client.post(f"{BASE}Analytics/disable/", {}, format="json")
    assert blocked.status_code == 409
    assert blocked.data["errorCode"] == "REQUIRED_BY_ACTIVE_DEPENDENT"
    assert blocked.data["data"]["dependents"] == ["Reporting"]


def test_can_disable_and_warnings(api_client):
    data = api_client.get(f"{BASE}Analytics/can-disable/").data["data"]
    assert data["can_disable"] is False
    assert data["warnings"] == ["This may affect 1 dependent modules"]

    warnings = api_client.get(f"{BASE}Reporting/disable-warnings/").data["data"]
    assert "Reports from all modules will be unavailable" in warnings


def test_settings_round_trip(api_client):
    response = api_client.put(
        f"{BASE}IncidentManagement/settings/",
        {"settings": {"escalation_hours": 4}},
        format="json",
    )
    assert response.status_code == 200

    data = api_client.get(f"{BASE}IncidentManagement/settings/").data["data"]
    assert data == {"settings": {"escalation_hours": 4}}


def test_dependency_endpoints(api_client):
    created = api_client.post(
        f"{BASE}PPEManagement/dependencies/",
        {"depends_on": "TrainingManagement", "is_required": False},
        format="json",
    )
    assert created.status_code == 201

    listed = api_client.get(f"{BASE}PPEManagement/dependencies/").data["data"]
    assert [d["depends_on_module_type"] for d in listed] == ["TrainingManagement"]

    dependents = api_client.get(f"{BASE}TrainingManagement/dependents/").data["data"]
    assert {d["module_type"] for d in dependents} == {"PPEManagement", "WorkPermitManagement"}

    cycle = api_client.post(f"{BASE}Analytics/dependencies/", {"depends_on": "Reporting"}, format="json")
    assert cycle.status_code == 400
    assert cycle.data["errorCode"] == "DEPENDENCY_CYCLE"

    removed = api_client.delete(f"{BASE}PPEManagement/dependencies/TrainingManagement/")
    assert removed.status_code == 200
    missing = api_client.delete(f"{BASE}PPEManagement/dependencies/TrainingManagement/")
    assert missing.status_code == 404


def test_required_dependency_on_disabled_module_conflicts(api_client):
    response = api_client.post(
        f"{BASE}Reporting/dependencies/",
        {"depends_on": "WorkflowManagement", "is_required": True},
        format="json",
    )

    assert response.status_code == 409
    assert response.data["errorCode"] == "REQUIRED_DEPENDENCY_DISABLED"
    assert api_client.get(f"{BASE}Reporting/validate-dependencies/").data["data"]["is_valid"] is True


def test_audit_trail_is_paginated(api_client):
    for _ in range(3):
        api_client.post(f"{BASE}WasteManagement/disable/", {}, format="json")
        api_client.post(f"{BASE}WasteManagement/enable/", {}, format="json")

    data = api_client.get(f"{BASE}WasteManagement/audit-trail/", {"page_size": 4}).data["data"]
    assert data["count"] == 6
    assert len(data["results"]) == 4
    assert data["next"] is not None

    bad = api_client.get(f"{BASE}WasteManagement/audit-trail/", {"since": "yesterday"})
    assert bad.status_code == 400


@pytest.mark.parametrize("params", [
    {"actor": "abc"},
    {"since": "2024-13-40T00:00"},
    {"until": "yesterday"},
])
def test_audit_trail_rejects_malformed_filters(api_client, params):
    response = api_client.get(f"{BASE}WasteManagement/audit-trail/", params)

    assert response.status_code == 400
    assert response.data["errorCode"] == "VALIDATION_ERROR"


def test_audit_trail_filters_by_actor(api_client, super_admin):
    api_client.post(f"{BASE}WasteManagement/disable/", {}, format="json")

    mine = api_client.get(f"{BASE}WasteManagement/audit-trail/", {"actor": super_admin.pk}).data["data"]
    others = api_client.get(f"{BASE}WasteManagement/audit-trail/", {"actor": super_admin.pk + 1}).data["data"]

    assert mine["count"] == 1
    assert others["count"] == 0


def test_hierarchy_dashboard_and_activity(api_client):
    hierarchy = api_client.get(f"{BASE}hierarchy/").data["data"]
    compliance = next(n for n in hierarchy if n["module_type"] == "ComplianceManagement")
    assert {c["module_type"] for c in compliance["sub_modules"]} == {"AuditManagement", "LicenseManagement"}

    api_client.post(f"{BASE}WasteManagement/disable/", {}, format="json")
    dashboard = api_client.get(f"{BASE}dashboard/").data["data"]
    assert dashboard["disabled_modules"] == 2
    assert dashboard["recent_activity"][0]["module_type"] == "WasteManagement"

    activity = api_client.get(f"{BASE}recent-activity/", {"count": 1}).data["data"]
    assert len(activity) == 1

    valid = api_client.get(f"{BASE}Reporting/validate-dependencies/").data["data"]
    assert valid["is_valid"] is True


def test_role_grant_revoke_and_check(api_client):
    body = {"module_type": "WasteManagement", "permission_type": "Approve"}

    assert api_client.get("/api/v1/roles/Viewer/check/", {"module": "WasteManagement", "permission": "Approve"}) \
        .data["data"]["authorized"] is False

    granted = api_client.post("/api/v1/roles/Viewer/grant/", {**body, "reason": "pilot"}, format="json")
    assert granted.status_code == 200
    assert RoleModulePermission.objects.get(role__code="Viewer", module_permission__module_type="WasteManagement").is_active

    check = api_client.get("/api/v1/roles/Viewer/check/", {"module": "WasteManagement", "permission": "Approve"})
    assert check.data["data"]["authorized"] is True

    modules = api_client.get("/api/v1/roles/Viewer/accessible-modules/").data["data"]
    assert modules == ["Dashboard", "WasteManagement"]

    revoked = api_client.post("/api/v1/roles/Viewer/revoke/", body, format="json")
    assert revoked.status_code == 200
    assert revoked.data["data"]["is_active"] is False

    effective = api_client.get("/api/v1/roles/Viewer/permissions/").data["data"]["effective_permissions"]
    assert effective == ["Dashboard.Read"]


def test_grant_requires_user_management_configure(rbac, make_user):
    client = APIClient()
    client.force_authenticate(user=make_user("admin", RoleType.ADMIN))

    response = client.post(
        "/api/v1/roles/Viewer/grant/",
        {"module_type": "Dashboard", "permission_type": "Export"},
        format="json",
    )
    assert response.status_code == 403


def test_unknown_role_returns_404(api_client):
    response = api_client.get("/api/v1/roles/Ghost/accessible-modules/")
    assert response.status_code == 404
    assert response.data["errorCode"] == "UNKNOWN_ROLE"


def test_catalog_deactivate_and_activate(api_client):
    body = {"module_type": "Reporting", "permission_type": "Export"}

    response = api_client.post("/api/v1/module-permissions/deactivate/", body, format="json")
    assert response.status_code == 200
    assert response.data["data"]["is_active"] is False

    response = api_client.post("/api/v1/module-permissions/activate/", body, format="json")
    assert response.data["data"]["is_active"] is True

    listed = api_client.get("/api/v1/module-permissions/", {"module": "Reporting"}).data["data"]
    assert len(listed) == 8
