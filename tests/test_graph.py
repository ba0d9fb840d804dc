import pytest

from app.platform.modules.constants import DEFAULT_DEPENDENCIES, ModuleType
from app.platform.modules.exceptions import CycleDetectedError, SelfDependencyError, UnknownModuleError
from app.platform.modules.graph import DependencyEdge, DependencyGraph

M = ModuleType


def test_self_dependency_rejected_for_every_module():
    graph = DependencyGraph()
    for module in ModuleType:
        with pytest.raises(SelfDependencyError):
            graph.add_dependency(module, module)
    assert len(graph) == 0


def test_unknown_module_identifier_raises():
    with pytest.raises(UnknownModuleError):
        DependencyGraph().add_dependency("Payroll", M.DASHBOARD)


def test_two_node_cycle_is_rejected_and_graph_unchanged():
    graph = DependencyGraph()
    graph.add_dependency(M.REPORTING, M.ANALYTICS)

    with pytest.raises(CycleDetectedError) as excinfo:
        graph.add_dependency(M.ANALYTICS, M.REPORTING)

    assert excinfo.value.path[0] == excinfo.value.path[-1]
    assert set(excinfo.value.path) == {"Reporting", "Analytics"}
    assert graph.get_edge(M.ANALYTICS, M.REPORTING) is None
    graph.validate()


def test_longer_cycle_through_optional_edge_is_rejected():
    graph = DependencyGraph()
    graph.add_dependency(M.WORK_PERMIT_MANAGEMENT, M.RISK_MANAGEMENT)
    graph.add_dependency(M.RISK_MANAGEMENT, M.TRAINING_MANAGEMENT, required=False)

    with pytest.raises(CycleDetectedError):
        graph.add_dependency(M.TRAINING_MANAGEMENT, M.WORK_PERMIT_MANAGEMENT)


def test_validate_flags_cycle_loaded_from_rows():
    graph = DependencyGraph([
        DependencyEdge(M.AUDIT_MANAGEMENT, M.INSPECTION_MANAGEMENT),
        DependencyEdge(M.INSPECTION_MANAGEMENT, M.COMPLIANCE_MANAGEMENT),
        DependencyEdge(M.COMPLIANCE_MANAGEMENT, M.AUDIT_MANAGEMENT),
    ])
    with pytest.raises(CycleDetectedError) as excinfo:
        graph.validate()
    assert len(excinfo.value.path) == 4


def test_readding_edge_replaces_flags():
    graph = DependencyGraph()
    graph.add_dependency(M.COMPLIANCE_MANAGEMENT, M.REPORTING, required=False)
    graph.add_dependency(M.COMPLIANCE_MANAGEMENT, M.REPORTING, required=True, description="now required")

    assert len(graph) == 1
    edge = graph.get_edge(M.COMPLIANCE_MANAGEMENT, M.REPORTING)
    assert edge.is_required
    assert edge.description == "now required"


def test_required_closure_skips_optional_edges():
    graph = DependencyGraph()
    graph.add_dependency(M.COMPLIANCE_MANAGEMENT, M.REPORTING)
    graph.add_dependency(M.REPORTING, M.ANALYTICS)
    graph.add_dependency(M.REPORTING, M.DASHBOARD, required=False)

    assert graph.required_dependencies_of(M.COMPLIANCE_MANAGEMENT) == [M.REPORTING, M.ANALYTICS]


def test_dependents_split_by_required_flag():
    graph = DependencyGraph()
    graph.add_dependency(M.INCIDENT_MANAGEMENT, M.USER_MANAGEMENT)
    graph.add_dependency(M.WORKFLOW_MANAGEMENT, M.USER_MANAGEMENT, required=False)

    assert graph.dependents_of(M.USER_MANAGEMENT) == {M.INCIDENT_MANAGEMENT, M.WORKFLOW_MANAGEMENT}
    assert graph.required_dependents_of(M.USER_MANAGEMENT) == {M.INCIDENT_MANAGEMENT}


def test_remove_dependency():
    graph = DependencyGraph()
    graph.add_dependency(M.REPORTING, M.ANALYTICS)

    removed = graph.remove_dependency(M.REPORTING, M.ANALYTICS)

    assert removed.depends_on == M.ANALYTICS
    assert graph.remove_dependency(M.REPORTING, M.ANALYTICS) is None
    assert graph.dependents_of(M.ANALYTICS) == set()


def test_default_catalog_edges_are_acyclic():
    graph = DependencyGraph()
    for definition in DEFAULT_DEPENDENCIES:
        graph.add_dependency(definition.module, definition.depends_on, required=definition.is_required)
    graph.validate()
