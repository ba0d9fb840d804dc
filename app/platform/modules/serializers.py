"""Serializers for module configuration."""
from rest_framework import serializers

from .constants import MODULE_CHOICES
from .models import ModuleConfiguration, ModuleDependency


class ModuleConfigurationSerializer(serializers.ModelSerializer):
    is_critical = serializers.BooleanField(read_only=True)
    can_be_disabled = serializers.SerializerMethodField()

    class Meta:
        model = ModuleConfiguration
        fields = [
            "id",
            "module_type",
            "display_name",
            "description",
            "icon_class",
            "display_order",
            "parent_module_type",
            "is_enabled",
            "is_critical",
            "can_be_disabled",
            "settings",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_can_be_disabled(self, obj) -> bool:
        return obj.can_be_disabled()


class ModuleDependencySerializer(serializers.ModelSerializer):
    class Meta:
        model = ModuleDependency
        fields = ["id", "module_type", "depends_on_module_type", "is_required", "description", "created_at"]
        read_only_fields = fields


class ModuleDependencyCreateSerializer(serializers.Serializer):
    depends_on = serializers.ChoiceField(choices=MODULE_CHOICES)
    is_required = serializers.BooleanField(default=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class ModuleStateChangeSerializer(serializers.Serializer):
    context = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class ModuleSettingsSerializer(serializers.Serializer):
    settings = serializers.JSONField(allow_null=True)
    context = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class AuditTrailQuerySerializer(serializers.Serializer):
    actor = serializers.IntegerField(required=False, min_value=1)
    since = serializers.DateTimeField(required=False)
    until = serializers.DateTimeField(required=False)
