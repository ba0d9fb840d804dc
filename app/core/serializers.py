"""Serializers for shared core models."""
from rest_framework import serializers

from .models import AuditLogEntry


class AuditLogEntrySerializer(serializers.ModelSerializer):
    actor_name = serializers.SerializerMethodField()

    class Meta:
        model = AuditLogEntry
        fields = [
            "id",
            "module_type",
            "action",
            "old_value",
            "new_value",
            "actor",
            "actor_name",
            "timestamp",
            "ip_address",
            "user_agent",
            "context",
        ]
        read_only_fields = fields

    def get_actor_name(self, obj) -> str:
        if obj.actor is None:
            return "system"
        return obj.actor.get_username()
