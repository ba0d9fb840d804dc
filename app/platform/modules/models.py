"""
Module configuration models.
Modules and dependency edges live in flat tables keyed by module identifier.
"""

from django.db import models
from django.db.models import F, Q

from app.core.models import CoreBaseModel
from .constants import CRITICAL_MODULES, MODULE_CHOICES, ModuleType


class ModuleConfiguration(CoreBaseModel):
    """
    Enabled flag, display metadata and settings for one catalog module.
    Seeded from the catalog and never deleted at runtime.
    """

    module_type = models.CharField(max_length=50, choices=MODULE_CHOICES, unique=True, db_index=True)
    is_enabled = models.BooleanField(default=True, db_index=True)

    display_name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True)
    icon_class = models.CharField(max_length=50, blank=True)
    display_order = models.IntegerField(default=0, db_index=True)

    parent_module_type = models.CharField(
        max_length=50,
        choices=MODULE_CHOICES,
        null=True,
        blank=True,
        db_index=True,
        help_text="Parent module in the hierarchy (disabling the parent disables this module)",
    )

    settings = models.JSONField(
        null=True,
        blank=True,
        help_text="Module-specific settings, opaque to the configuration engine",
    )

    version = models.PositiveIntegerField(
        default=0,
        help_text="Incremented on every state or settings change",
    )

    class Meta:
        db_table = "module_configurations"
        ordering = ["display_order", "display_name"]

    def __str__(self):
        state = "enabled" if self.is_enabled else "disabled"
        return f"{self.display_name} ({state})"

    @property
    def module(self) -> ModuleType:
        return ModuleType(self.module_type)

    @property
    def is_critical(self) -> bool:
        return self.module in CRITICAL_MODULES

    def can_be_disabled(self) -> bool:
        """Static check only; dependency state is evaluated by the service layer."""
        return not self.is_critical


class ModuleDependency(CoreBaseModel):
    """Directed edge: ``module_type`` depends on ``depends_on_module_type``."""

    module_type = models.CharField(max_length=50, choices=MODULE_CHOICES, db_index=True)
    depends_on_module_type = models.CharField(max_length=50, choices=MODULE_CHOICES, db_index=True)
    is_required = models.BooleanField(default=True, db_index=True)
    description = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = "module_dependencies"
        ordering = ["module_type", "depends_on_module_type"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(module_type=F("depends_on_module_type")),
                name="ck_module_dependency_no_self_dependency",
            ),
            models.UniqueConstraint(
                fields=["module_type", "depends_on_module_type"],
                name="uq_module_dependency_pair",
            ),
        ]

    def __str__(self):
        kind = "requires" if self.is_required else "optionally uses"
        return f"{self.module_type} {kind} {self.depends_on_module_type}"
