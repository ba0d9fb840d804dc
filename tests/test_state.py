import pytest

from app.platform.modules.constants import ModuleType
from app.platform.modules.exceptions import CriticalModuleError, RequiredByActiveDependentError
from app.platform.modules.graph import DependencyEdge, DependencyGraph
from app.platform.modules.state import (
    ModuleNode,
    ModuleState,
    check_can_disable,
    disable_warnings,
    plan_disable,
    plan_enable,
)

M = ModuleType


@pytest.fixture
def state():
    return ModuleState([
        ModuleNode(M.DASHBOARD),
        ModuleNode(M.USER_MANAGEMENT),
        ModuleNode(M.REPORTING),
        ModuleNode(M.ANALYTICS),
        ModuleNode(M.INSPECTION_MANAGEMENT),
        ModuleNode(M.COMPLIANCE_MANAGEMENT),
        ModuleNode(M.AUDIT_MANAGEMENT, parent=M.COMPLIANCE_MANAGEMENT),
        ModuleNode(M.LICENSE_MANAGEMENT, parent=M.COMPLIANCE_MANAGEMENT),
        ModuleNode(M.WORKFLOW_MANAGEMENT, is_enabled=False),
    ])


@pytest.fixture
def graph():
    return DependencyGraph([
        DependencyEdge(M.REPORTING, M.ANALYTICS),
        DependencyEdge(M.AUDIT_MANAGEMENT, M.INSPECTION_MANAGEMENT),
        DependencyEdge(M.COMPLIANCE_MANAGEMENT, M.REPORTING, is_required=False),
        DependencyEdge(M.WORKFLOW_MANAGEMENT, M.USER_MANAGEMENT),
    ])


@pytest.mark.parametrize("module", [M.DASHBOARD, M.USER_MANAGEMENT, M.APPLICATION_SETTINGS])
def test_critical_modules_cannot_be_disabled(graph, state, module):
    with pytest.raises(CriticalModuleError):
        check_can_disable(module, graph, state)


def test_required_dependency_blocks_disable(graph, state):
    with pytest.raises(RequiredByActiveDependentError) as excinfo:
        plan_disable(M.ANALYTICS, graph, state)
    assert excinfo.value.dependents == ["Reporting"]


def test_optional_dependent_does_not_block(graph, state):
    assert plan_disable(M.REPORTING, graph, state) == [M.REPORTING]


def test_disable_cascades_to_descendants(graph, state):
    plan = plan_disable(M.COMPLIANCE_MANAGEMENT, graph, state)
    assert plan == [M.COMPLIANCE_MANAGEMENT, M.AUDIT_MANAGEMENT, M.LICENSE_MANAGEMENT]


def test_cascaded_module_with_outside_dependent_aborts_plan(graph, state):
    graph.add_dependency(M.REPORTING, M.LICENSE_MANAGEMENT)
    with pytest.raises(RequiredByActiveDependentError):
        plan_disable(M.COMPLIANCE_MANAGEMENT, graph, state)


def test_dependents_inside_cascade_do_not_block(graph, state):
    graph.add_dependency(M.AUDIT_MANAGEMENT, M.COMPLIANCE_MANAGEMENT)
    assert M.AUDIT_MANAGEMENT in plan_disable(M.COMPLIANCE_MANAGEMENT, graph, state)


def test_disabled_dependent_does_not_block():
    state = ModuleState([ModuleNode(M.REPORTING, is_enabled=False), ModuleNode(M.ANALYTICS)])
    graph = DependencyGraph([DependencyEdge(M.REPORTING, M.ANALYTICS)])
    assert plan_disable(M.ANALYTICS, graph, state) == [M.ANALYTICS]


def test_enable_pulls_in_required_closure():
    state = ModuleState([
        ModuleNode(M.COMPLIANCE_MANAGEMENT, is_enabled=False),
        ModuleNode(M.REPORTING, is_enabled=False),
        ModuleNode(M.ANALYTICS, is_enabled=False),
    ])
    graph = DependencyGraph([
        DependencyEdge(M.COMPLIANCE_MANAGEMENT, M.REPORTING),
        DependencyEdge(M.REPORTING, M.ANALYTICS),
    ])
    assert plan_enable(M.COMPLIANCE_MANAGEMENT, graph, state) == [
        M.COMPLIANCE_MANAGEMENT, M.REPORTING, M.ANALYTICS,
    ]


def test_enable_does_not_follow_optional_edges(graph, state):
    assert plan_enable(M.WORKFLOW_MANAGEMENT, graph, state) == [M.WORKFLOW_MANAGEMENT]


def test_already_enabled_target_yields_empty_plan(graph, state):
    assert plan_enable(M.REPORTING, graph, state) == []


def test_disable_warnings(graph, state):
    warnings = disable_warnings(M.COMPLIANCE_MANAGEMENT, graph, state)
    assert "This will disable 2 active sub-modules" in warnings
    assert "Compliance monitoring and audit tracking will be disabled" in warnings

    assert disable_warnings(M.ANALYTICS, graph, state) == ["This may affect 1 dependent modules"]
    assert disable_warnings(M.DASHBOARD, graph, state) == [
        "This module is critical to the system and cannot be disabled",
    ]
