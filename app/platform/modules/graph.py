"""
Module dependency graph.

Edges are plain (module, depends_on, is_required) tuples kept in a flat list and
indexed by module identifier in both directions. Nothing here touches the
database; the service layer loads a graph, asks it questions and persists the
result.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from .constants import ModuleType, coerce_module
from .exceptions import CycleDetectedError, SelfDependencyError

logger = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class DependencyEdge:
    module: ModuleType
    depends_on: ModuleType
    is_required: bool = True
    description: str = ""


class DependencyGraph:
    """Directed depends-on edges between catalog modules."""

    def __init__(self, edges: Iterable[DependencyEdge] = ()):
        self._edges: Dict[tuple, DependencyEdge] = {}
        for edge in edges:
            self._put(edge)

    @classmethod
    def from_rows(cls, rows) -> "DependencyGraph":
        """Build from ModuleDependency rows or any objects with the same attributes."""
        return cls(
            DependencyEdge(
                module=coerce_module(row.module_type),
                depends_on=coerce_module(row.depends_on_module_type),
                is_required=row.is_required,
                description=row.description or "",
            )
            for row in rows
        )

    def _put(self, edge: DependencyEdge):
        if edge.module == edge.depends_on:
            raise SelfDependencyError(edge.module)
        self._edges[(edge.module, edge.depends_on)] = edge

    @property
    def edges(self) -> List[DependencyEdge]:
        return list(self._edges.values())

    def __len__(self):
        return len(self._edges)

    def _outgoing(self) -> Dict[ModuleType, List[DependencyEdge]]:
        index = defaultdict(list)
        for edge in self._edges.values():
            index[edge.module].append(edge)
        return index

    def _incoming(self) -> Dict[ModuleType, List[DependencyEdge]]:
        index = defaultdict(list)
        for edge in self._edges.values():
            index[edge.depends_on].append(edge)
        return index

    def add_dependency(self, module, depends_on, required: bool = True, description: str = "") -> DependencyEdge:
        """
        Add (or replace) an edge after checking it keeps the graph acyclic.

        Raises:
            SelfDependencyError: module == depends_on
            CycleDetectedError: the edge would close a cycle
        """
        module = coerce_module(module)
        depends_on = coerce_module(depends_on)
        if module == depends_on:
            raise SelfDependencyError(module)

        edge = DependencyEdge(module, depends_on, required, description)
        candidate = DependencyGraph(self._edges.values())
        candidate._put(edge)
        candidate.validate()

        self._put(edge)
        return edge

    def remove_dependency(self, module, depends_on) -> Optional[DependencyEdge]:
        return self._edges.pop((coerce_module(module), coerce_module(depends_on)), None)

    def get_edge(self, module, depends_on) -> Optional[DependencyEdge]:
        return self._edges.get((coerce_module(module), coerce_module(depends_on)))

    def validate(self) -> None:
        """Depth-first colour marking; raises CycleDetectedError on a back edge."""
        outgoing = self._outgoing()
        colour: Dict[ModuleType, int] = defaultdict(int)

        for root in sorted(outgoing, key=lambda m: m.value):
            if colour[root] != _WHITE:
                continue
            # Iterative DFS so deep chains never hit the recursion limit
            path = [root]
            stack = [iter(sorted(outgoing[root], key=lambda e: e.depends_on.value))]
            colour[root] = _GREY
            while stack:
                edge = next(stack[-1], None)
                if edge is None:
                    colour[path.pop()] = _BLACK
                    stack.pop()
                    continue
                target = edge.depends_on
                if colour[target] == _GREY:
                    cycle = path[path.index(target):] + [target]
                    logger.warning(f"Dependency cycle detected: {[m.value for m in cycle]}")
                    raise CycleDetectedError(cycle)
                if colour[target] == _WHITE:
                    colour[target] = _GREY
                    path.append(target)
                    stack.append(iter(sorted(outgoing[target], key=lambda e: e.depends_on.value)))

    def dependencies_of(self, module) -> List[DependencyEdge]:
        """Direct outgoing edges."""
        return self._outgoing().get(coerce_module(module), [])

    def required_dependencies_of(self, module) -> List[ModuleType]:
        """Transitive closure over required edges, in breadth-first discovery order."""
        module = coerce_module(module)
        outgoing = self._outgoing()
        seen: Set[ModuleType] = {module}
        ordered: List[ModuleType] = []
        queue = [module]
        while queue:
            current = queue.pop(0)
            for edge in outgoing.get(current, []):
                if edge.is_required and edge.depends_on not in seen:
                    seen.add(edge.depends_on)
                    ordered.append(edge.depends_on)
                    queue.append(edge.depends_on)
        return ordered

    def dependent_edges_of(self, module) -> List[DependencyEdge]:
        """Direct incoming edges."""
        return self._incoming().get(coerce_module(module), [])

    def dependents_of(self, module) -> Set[ModuleType]:
        """Modules listing ``module`` as a required or optional dependency."""
        return {edge.module for edge in self.dependent_edges_of(module)}

    def required_dependents_of(self, module) -> Set[ModuleType]:
        return {edge.module for edge in self.dependent_edges_of(module) if edge.is_required}
