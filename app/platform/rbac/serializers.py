"""Serializers for roles, the permission catalog and grants."""
from rest_framework import serializers

from app.platform.modules.constants import MODULE_CHOICES
from .constants import PERMISSION_CHOICES
from .models import ModulePermission, Role, RoleModulePermission


class RoleSerializer(serializers.ModelSerializer):
    active_grant_count = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = ["id", "code", "name", "description", "is_system_role", "is_active", "active_grant_count"]
        read_only_fields = fields

    def get_active_grant_count(self, obj) -> int:
        return obj.module_permissions.filter(is_active=True).count()


class ModulePermissionSerializer(serializers.ModelSerializer):
    code = serializers.CharField(read_only=True)

    class Meta:
        model = ModulePermission
        fields = ["id", "code", "module_type", "permission_type", "name", "description", "is_active"]
        read_only_fields = fields


class GrantSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source="role.code", read_only=True)
    module_permission = ModulePermissionSerializer(read_only=True)

    class Meta:
        model = RoleModulePermission
        fields = ["id", "role", "module_permission", "is_active", "granted_at", "granted_by", "reason"]
        read_only_fields = fields


class ModulePermissionKeySerializer(serializers.Serializer):
    module_type = serializers.ChoiceField(choices=MODULE_CHOICES)
    permission_type = serializers.ChoiceField(choices=PERMISSION_CHOICES)


class GrantRequestSerializer(ModulePermissionKeySerializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
