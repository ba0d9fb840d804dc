"""
Module state table and cascade planning.

Planning is a pure function of (graph, state): it returns the list of modules a
proposed enable/disable would change, or raises the policy error that forbids
it. The service layer applies a plan inside one transaction.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .constants import CRITICAL_MODULES, ModuleType, coerce_module
from .exceptions import CriticalModuleError, RequiredByActiveDependentError
from .graph import DependencyGraph


@dataclass(frozen=True)
class ModuleNode:
    module: ModuleType
    is_enabled: bool = True
    parent: Optional[ModuleType] = None

    @property
    def is_critical(self) -> bool:
        return self.module in CRITICAL_MODULES


class ModuleState:
    """Flat node table keyed by module identifier with a parent -> children index."""

    def __init__(self, nodes: Iterable[ModuleNode] = ()):
        self._nodes: Dict[ModuleType, ModuleNode] = {node.module: node for node in nodes}
        self._children: Dict[ModuleType, List[ModuleType]] = {}
        for node in self._nodes.values():
            if node.parent is not None:
                self._children.setdefault(node.parent, []).append(node.module)

    @classmethod
    def from_rows(cls, rows) -> "ModuleState":
        return cls(
            ModuleNode(
                module=coerce_module(row.module_type),
                is_enabled=row.is_enabled,
                parent=coerce_module(row.parent_module_type) if row.parent_module_type else None,
            )
            for row in rows
        )

    def __contains__(self, module) -> bool:
        return coerce_module(module) in self._nodes

    def __iter__(self):
        return iter(self._nodes.values())

    def node(self, module) -> ModuleNode:
        return self._nodes[coerce_module(module)]

    def is_enabled(self, module) -> bool:
        node = self._nodes.get(coerce_module(module))
        return bool(node and node.is_enabled)

    def children_of(self, module) -> List[ModuleType]:
        return sorted(self._children.get(coerce_module(module), []), key=lambda m: m.value)

    def descendants_of(self, module) -> List[ModuleType]:
        """All hierarchy descendants, depth-first; tolerant of malformed parent loops."""
        root = coerce_module(module)
        seen = {root}
        ordered = []
        stack = list(reversed(self.children_of(root)))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            ordered.append(current)
            stack.extend(reversed(self.children_of(current)))
        return ordered


def plan_enable(module, graph: DependencyGraph, state: ModuleState) -> List[ModuleType]:
    """
    Modules an enable would switch on: the target plus every disabled module in
    its required-dependency closure. The graph is re-validated first.
    """
    module = coerce_module(module)
    graph.validate()
    plan = []
    for candidate in [module] + graph.required_dependencies_of(module):
        if candidate in state and not state.is_enabled(candidate):
            plan.append(candidate)
    return plan


def disable_cascade_of(module, state: ModuleState) -> List[ModuleType]:
    """Target followed by its hierarchy descendants."""
    module = coerce_module(module)
    return [module] + state.descendants_of(module)


def check_can_disable(module, graph: DependencyGraph, state: ModuleState,
                      cascade: Optional[Iterable[ModuleType]] = None) -> None:
    """
    Raise if ``module`` may not be disabled.

    Dependents that are themselves part of the cascade do not block, since they
    are switched off in the same operation.
    """
    module = coerce_module(module)
    if module in CRITICAL_MODULES:
        raise CriticalModuleError(module)

    cascade_set = set(cascade) if cascade is not None else {module}
    blocking = {
        dependent
        for dependent in graph.required_dependents_of(module)
        if dependent not in cascade_set and state.is_enabled(dependent)
    }
    if blocking:
        raise RequiredByActiveDependentError(module, blocking)


def plan_disable(module, graph: DependencyGraph, state: ModuleState) -> List[ModuleType]:
    """
    Modules a disable would switch off: the target and its enabled descendants.
    Every module in the cascade is validated; the first violation aborts the plan.
    """
    module = coerce_module(module)
    cascade = disable_cascade_of(module, state)
    for candidate in cascade:
        check_can_disable(candidate, graph, state, cascade=cascade)
    return [candidate for candidate in cascade if state.is_enabled(candidate)]


# Disable warnings: lookup table of generator functions keyed by module.
WarningGenerator = Callable[[ModuleType, DependencyGraph, ModuleState], Optional[str]]


def _active_submodules_warning(module, graph, state):
    active = [m for m in state.descendants_of(module) if state.is_enabled(m)]
    if active:
        return f"This will disable {len(active)} active sub-modules"
    return None


def _active_dependents_warning(module, graph, state):
    active = [m for m in graph.required_dependents_of(module) if state.is_enabled(m)]
    if active:
        return f"This may affect {len(active)} dependent modules"
    return None


def _critical_module_warning(module, graph, state):
    if module in CRITICAL_MODULES:
        return "This module is critical to the system and cannot be disabled"
    return None


def _notice(message: str) -> WarningGenerator:
    return lambda module, graph, state: message


COMMON_DISABLE_WARNINGS: List[WarningGenerator] = [
    _critical_module_warning,
    _active_submodules_warning,
    _active_dependents_warning,
]

MODULE_DISABLE_WARNINGS: Dict[ModuleType, List[WarningGenerator]] = {
    ModuleType.REPORTING: [_notice("Reports from all modules will be unavailable")],
    ModuleType.COMPLIANCE_MANAGEMENT: [_notice("Compliance monitoring and audit tracking will be disabled")],
    ModuleType.SECURITY_INCIDENT_MANAGEMENT: [_notice("Security incident reporting and response will be unavailable")],
}


def disable_warnings(module, graph: DependencyGraph, state: ModuleState) -> List[str]:
    """Advisory, non-blocking messages shown before a disable is confirmed."""
    module = coerce_module(module)
    generators = COMMON_DISABLE_WARNINGS + MODULE_DISABLE_WARNINGS.get(module, [])
    messages = (generator(module, graph, state) for generator in generators)
    return [message for message in messages if message]
