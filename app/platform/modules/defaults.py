"""
Default module configurations and dependency edges used on fresh environments.
"""

import logging

from django.db import transaction

from .constants import DEFAULT_DEPENDENCIES, MODULE_CATALOG
from .graph import DependencyGraph
from .models import ModuleConfiguration, ModuleDependency

logger = logging.getLogger(__name__)


@transaction.atomic
def ensure_default_module_configurations(force: bool = False) -> int:
    """
    Make sure every catalog module has a configuration row.
    Existing rows keep their enabled flag and settings; with ``force`` their
    display metadata and parent are refreshed from the catalog.

    Returns the number of rows created.
    """
    created_count = 0
    for module, meta in MODULE_CATALOG.items():
        configuration, created = ModuleConfiguration.objects.get_or_create(
            module_type=module.value,
            defaults={
                "display_name": meta.display_name,
                "description": meta.description,
                "icon_class": meta.icon_class,
                "display_order": meta.display_order,
                "parent_module_type": meta.parent.value if meta.parent else None,
                "is_enabled": meta.enabled_by_default,
            },
        )
        if created:
            created_count += 1
            logger.info(f"Seeded module configuration {module.value}")
        elif force:
            configuration.display_name = meta.display_name
            configuration.description = meta.description
            configuration.icon_class = meta.icon_class
            configuration.display_order = meta.display_order
            configuration.parent_module_type = meta.parent.value if meta.parent else None
            configuration.save(update_fields=[
                "display_name", "description", "icon_class", "display_order",
                "parent_module_type", "updated_at",
            ])
    return created_count


@transaction.atomic
def ensure_default_module_dependencies() -> int:
    """
    Seed catalog dependency edges that are not present yet.
    Each edge is checked against the graph so seeding can never introduce a cycle.
    """
    graph = DependencyGraph.from_rows(ModuleDependency.objects.all())
    created_count = 0
    for definition in DEFAULT_DEPENDENCIES:
        if graph.get_edge(definition.module, definition.depends_on):
            continue
        graph.add_dependency(
            definition.module,
            definition.depends_on,
            required=definition.is_required,
            description=definition.description,
        )
        ModuleDependency.objects.create(
            module_type=definition.module.value,
            depends_on_module_type=definition.depends_on.value,
            is_required=definition.is_required,
            description=definition.description,
        )
        created_count += 1
    if created_count:
        logger.info(f"Seeded {created_count} module dependencies")
    return created_count
