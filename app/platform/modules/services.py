"""
Module configuration service.

Every administrative mutation runs in one transaction: the rows a plan reads
are locked with ``select_for_update`` (in module order), the plan is recomputed
against the locked state, then all state changes and audit entries are written
together. A failure anywhere rolls the whole operation back.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Set

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from app.core.models import AuditAction
from app.core.services.audit import (
    AuditContext,
    record_audit,
    record_module_disabled,
    record_module_enabled,
    record_settings_updated,
    recent_activity,
)
from .constants import CRITICAL_MODULES, ModuleType, coerce_module
from .exceptions import (
    CriticalModuleError,
    ModuleConfigurationError,
    RequiredByActiveDependentError,
    RequiredDependencyDisabledError,
    SelfDependencyError,
    UnknownModuleError,
)
from .graph import DependencyEdge, DependencyGraph
from .models import ModuleConfiguration, ModuleDependency
from .state import (
    ModuleState,
    disable_cascade_of,
    disable_warnings,
    plan_disable,
    plan_enable,
)

logger = logging.getLogger(__name__)

MODULE_ENABLED_CACHE_KEY = "module-enabled:{}"
HIGH_COMPLEXITY_DEPENDENCY_COUNT = 5
_MAX_LOCK_ROUNDS = 5


# ─────────────────────────────────────────
# Loading
# ─────────────────────────────────────────

def load_dependency_graph() -> DependencyGraph:
    return DependencyGraph.from_rows(ModuleDependency.objects.all())


def load_module_state() -> ModuleState:
    rows = ModuleConfiguration.objects.only("module_type", "is_enabled", "parent_module_type")
    return ModuleState.from_rows(rows)


def get_module_configuration(module) -> ModuleConfiguration:
    module = coerce_module(module)
    try:
        return ModuleConfiguration.objects.get(module_type=module.value)
    except ModuleConfiguration.DoesNotExist:
        raise UnknownModuleError(f"Module {module.value} is not configured", module=module.value) from None


def list_module_configurations(enabled_only: bool = False):
    queryset = ModuleConfiguration.objects.all()
    if enabled_only:
        queryset = queryset.filter(is_enabled=True)
    return queryset.order_by("display_order", "display_name")


# ─────────────────────────────────────────
# Runtime check
# ─────────────────────────────────────────

def _cache_key(module: ModuleType) -> str:
    return MODULE_ENABLED_CACHE_KEY.format(module.value)


def is_module_enabled(module) -> bool:
    """
    Gate for feature visibility. Reads may be stale for at most
    MODULE_STATE_CACHE_TTL seconds; unknown identifiers raise UnknownModuleError.
    """
    module = coerce_module(module)
    key = _cache_key(module)
    cached = cache.get(key)
    if cached is not None:
        return cached
    enabled = ModuleConfiguration.objects.filter(module_type=module.value, is_enabled=True).exists()
    cache.set(key, enabled, getattr(settings, "MODULE_STATE_CACHE_TTL", 30))
    return enabled


def _invalidate_cached_state(modules) -> None:
    keys = [_cache_key(m) for m in modules]
    if not keys:
        return
    cache.delete_many(keys)
    # Drop again once committed so a concurrent reader cannot keep the old value
    transaction.on_commit(lambda: cache.delete_many(keys))


# ─────────────────────────────────────────
# Locking
# ─────────────────────────────────────────

def _lock_configurations(modules) -> Dict[ModuleType, ModuleConfiguration]:
    rows = (
        ModuleConfiguration.objects.select_for_update()
        .filter(module_type__in=[m.value for m in modules])
        .order_by("module_type")
    )
    return {row.module: row for row in rows}


def _enable_footprint(module, graph: DependencyGraph, state: ModuleState) -> Set[ModuleType]:
    return {module, *graph.required_dependencies_of(module)}


def _disable_footprint(module, graph: DependencyGraph, state: ModuleState) -> Set[ModuleType]:
    footprint = set()
    for candidate in disable_cascade_of(module, state):
        footprint.add(candidate)
        footprint.update(graph.dependents_of(candidate))
    return footprint


def _plan_under_lock(module: ModuleType, planner: Callable, footprint: Callable):
    """
    Lock every row the plan depends on, then plan against the locked state.
    Edges are re-read every round so a dependency committed while waiting on
    a lock is part of the plan. Returns (plan, locked_rows).
    """
    locked: Dict[ModuleType, ModuleConfiguration] = {}
    for _ in range(_MAX_LOCK_ROUNDS):
        graph = load_dependency_graph()
        state = load_module_state()
        needed = {m for m in footprint(module, graph, state) if m in state} - set(locked)
        if not needed:
            return planner(module, graph, state), locked
        locked.update(_lock_configurations(needed))
    raise ModuleConfigurationError(
        f"Could not obtain a stable lock set for {module.value}; retry the operation",
        module=module.value,
    )


def _apply_plan(root: ModuleType, plan: List[ModuleType], locked, is_enabled: bool,
                actor=None, audit_context: Optional[AuditContext] = None) -> None:
    audit_context = audit_context or AuditContext()
    verb = "enable" if is_enabled else "disable"
    record = record_module_enabled if is_enabled else record_module_disabled
    for module in plan:
        row = locked[module]
        row.is_enabled = is_enabled
        row.version += 1
        row.save(update_fields=["is_enabled", "version", "updated_at"])
        context = audit_context.context or f"Module {verb}d via service"
        if module != root:
            context = f"Cascaded from {verb} of {root.value}"
        record(module, actor=actor, audit_context=replace(audit_context, context=context))
    _invalidate_cached_state(plan)


# ─────────────────────────────────────────
# Enable / disable
# ─────────────────────────────────────────

@transaction.atomic
def enable_module(module, actor=None, audit_context: Optional[AuditContext] = None) -> List[ModuleType]:
    """
    Enable ``module`` and every disabled module it requires, transitively.

    The cascade is unconditional: the caller's right to enable the target is
    taken as the right to enable what the target needs.

    Hierarchy parents are not enabled along with a sub-module: enabling
    AuditManagement under a disabled ComplianceManagement switches on only
    AuditManagement. Only required dependencies cascade.

    Returns the modules actually switched on (empty if nothing changed).
    """
    module = coerce_module(module)
    get_module_configuration(module)
    plan, locked = _plan_under_lock(module, plan_enable, _enable_footprint)
    _apply_plan(module, plan, locked, True, actor=actor, audit_context=audit_context)
    if plan:
        logger.info(f"Enabled modules {[m.value for m in plan]} (requested {module.value}) by {actor or 'system'}")
    return plan


@transaction.atomic
def disable_module(module, actor=None, audit_context: Optional[AuditContext] = None) -> List[ModuleType]:
    """
    Disable ``module`` and all of its hierarchy descendants.

    Raises:
        CriticalModuleError: a module in the cascade is critical
        RequiredByActiveDependentError: an enabled module outside the cascade requires one inside it

    Returns the modules actually switched off (empty if nothing changed).
    """
    module = coerce_module(module)
    if module in CRITICAL_MODULES:
        raise CriticalModuleError(module)
    get_module_configuration(module)
    plan, locked = _plan_under_lock(module, plan_disable, _disable_footprint)
    _apply_plan(module, plan, locked, False, actor=actor, audit_context=audit_context)
    if plan:
        logger.info(f"Disabled modules {[m.value for m in plan]} (requested {module.value}) by {actor or 'system'}")
    return plan


def validate_module_disable(module) -> List[ModuleType]:
    """Dry run of a disable against current state. Raises exactly as disable_module would."""
    module = coerce_module(module)
    return plan_disable(module, load_dependency_graph(), load_module_state())


def can_module_be_disabled(module) -> bool:
    try:
        validate_module_disable(module)
    except (CriticalModuleError, RequiredByActiveDependentError):
        return False
    return True


def get_disable_warnings(module) -> List[str]:
    return disable_warnings(module, load_dependency_graph(), load_module_state())


# ─────────────────────────────────────────
# Settings
# ─────────────────────────────────────────

@transaction.atomic
def update_module_settings(module, new_settings, actor=None,
                           audit_context: Optional[AuditContext] = None) -> ModuleConfiguration:
    module = coerce_module(module)
    get_module_configuration(module)
    configuration = _lock_configurations([module])[module]
    old_settings = configuration.settings
    configuration.settings = new_settings
    configuration.version += 1
    configuration.save(update_fields=["settings", "version", "updated_at"])
    audit_context = audit_context or AuditContext()
    record_settings_updated(
        module,
        old_settings,
        new_settings,
        actor=actor,
        audit_context=replace(audit_context, context=audit_context.context or "Settings updated via service"),
    )
    logger.info(f"Settings updated for module {module.value} by {actor or 'system'}")
    return configuration


def get_module_settings(module):
    return get_module_configuration(module).settings


# ─────────────────────────────────────────
# Dependencies
# ─────────────────────────────────────────

def _edge_value(edge: Optional[DependencyEdge]):
    if edge is None:
        return None
    return {
        "depends_on": edge.depends_on.value,
        "is_required": edge.is_required,
        "description": edge.description,
    }


@transaction.atomic
def add_module_dependency(module, depends_on, is_required: bool = True, description: str = "",
                          actor=None, audit_context: Optional[AuditContext] = None) -> ModuleDependency:
    """
    Declare that ``module`` depends on ``depends_on``.

    The whole configuration table is locked so concurrent edge changes are
    checked for cycles one at a time.

    Raises:
        SelfDependencyError, CycleDetectedError
        RequiredDependencyDisabledError: required edge from an enabled module to a disabled one
    """
    module = coerce_module(module)
    depends_on = coerce_module(depends_on)
    if module == depends_on:
        raise SelfDependencyError(module)
    get_module_configuration(module)
    get_module_configuration(depends_on)

    _lock_configurations(list(ModuleType))
    graph = load_dependency_graph()
    state = load_module_state()
    if is_required and state.is_enabled(module) and not state.is_enabled(depends_on):
        raise RequiredDependencyDisabledError(module, depends_on)
    previous = graph.get_edge(module, depends_on)
    edge = graph.add_dependency(module, depends_on, required=is_required, description=description)

    dependency, _ = ModuleDependency.objects.update_or_create(
        module_type=module.value,
        depends_on_module_type=depends_on.value,
        defaults={"is_required": is_required, "description": description},
    )
    record_audit(
        action=AuditAction.DEPENDENCY_ADDED,
        module_type=module,
        old_value=_edge_value(previous),
        new_value=_edge_value(edge),
        actor=actor,
        audit_context=audit_context,
    )
    logger.info(f"Dependency {module.value} -> {depends_on.value} (required={is_required}) saved by {actor or 'system'}")
    return dependency


@transaction.atomic
def remove_module_dependency(module, depends_on, actor=None,
                             audit_context: Optional[AuditContext] = None) -> bool:
    module = coerce_module(module)
    depends_on = coerce_module(depends_on)
    _lock_configurations([module, depends_on])
    dependency = ModuleDependency.objects.filter(
        module_type=module.value, depends_on_module_type=depends_on.value
    ).first()
    if dependency is None:
        return False
    old_value = _edge_value(DependencyGraph.from_rows([dependency]).get_edge(module, depends_on))
    dependency.delete()
    record_audit(
        action=AuditAction.DEPENDENCY_REMOVED,
        module_type=module,
        old_value=old_value,
        new_value=None,
        actor=actor,
        audit_context=audit_context,
    )
    logger.info(f"Dependency {module.value} -> {depends_on.value} removed by {actor or 'system'}")
    return True


def get_module_dependencies(module):
    module = coerce_module(module)
    return ModuleDependency.objects.filter(module_type=module.value)


def get_dependent_modules(module):
    module = coerce_module(module)
    return ModuleDependency.objects.filter(depends_on_module_type=module.value)


def validate_module_dependencies(module) -> bool:
    """True unless the module is enabled while a required dependency is disabled."""
    module = coerce_module(module)
    state = load_module_state()
    if not state.is_enabled(module):
        return True
    graph = load_dependency_graph()
    return all(
        state.is_enabled(edge.depends_on)
        for edge in graph.dependencies_of(module)
        if edge.is_required
    )


# ─────────────────────────────────────────
# Hierarchy and dashboard
# ─────────────────────────────────────────

def get_module_hierarchy():
    """Root configurations plus a parent -> children index over all rows."""
    configurations = list(list_module_configurations())
    children: Dict[str, List[ModuleConfiguration]] = {}
    for configuration in configurations:
        if configuration.parent_module_type:
            children.setdefault(configuration.parent_module_type, []).append(configuration)
    roots = [c for c in configurations if not c.parent_module_type]
    return roots, children


def get_child_modules(parent):
    parent = coerce_module(parent)
    return list_module_configurations().filter(parent_module_type=parent.value)


def _configuration_warnings(configurations, graph: DependencyGraph, state: ModuleState) -> List[dict]:
    warnings = []
    for configuration in configurations:
        module = configuration.module
        if not configuration.is_enabled and any(
            state.is_enabled(dependent) for dependent in graph.required_dependents_of(module)
        ):
            warnings.append({
                "module_name": configuration.display_name,
                "warning_type": "DependencyViolation",
                "message": f"Disabled module {configuration.display_name} has active dependent modules",
                "severity": "High",
            })
        if configuration.is_enabled and any(
            edge.is_required and not state.is_enabled(edge.depends_on)
            for edge in graph.dependencies_of(module)
        ):
            warnings.append({
                "module_name": configuration.display_name,
                "warning_type": "MissingDependency",
                "message": f"Enabled module {configuration.display_name} has disabled required dependencies",
                "severity": "High",
            })
        dependency_count = len(graph.dependencies_of(module))
        if dependency_count > HIGH_COMPLEXITY_DEPENDENCY_COUNT:
            warnings.append({
                "module_name": configuration.display_name,
                "warning_type": "HighComplexity",
                "message": f"Module {configuration.display_name} has many dependencies ({dependency_count})",
                "severity": "Medium",
            })
    return warnings


def get_module_configuration_dashboard(activity_count: int = 10) -> dict:
    configurations = list(list_module_configurations())
    graph = load_dependency_graph()
    state = ModuleState.from_rows(configurations)

    summary = []
    with_dependencies = 0
    for configuration in configurations:
        module = configuration.module
        dependencies = graph.dependencies_of(module)
        dependents = graph.dependents_of(module)
        if dependencies or dependents:
            with_dependencies += 1
        summary.append({
            "module_type": configuration.module_type,
            "module_name": configuration.display_name,
            "is_enabled": configuration.is_enabled,
            "can_be_disabled": configuration.can_be_disabled(),
            "dependencies_count": len(dependencies),
            "dependent_modules_count": len(dependents),
        })

    enabled = sum(1 for c in configurations if c.is_enabled)
    return {
        "total_modules": len(configurations),
        "enabled_modules": enabled,
        "disabled_modules": len(configurations) - enabled,
        "critical_modules": sum(1 for c in configurations if c.is_critical),
        "modules_with_dependencies": with_dependencies,
        "module_status_summary": summary,
        "recent_activity": recent_activity(activity_count),
        "warnings": _configuration_warnings(configurations, graph, state),
    }
