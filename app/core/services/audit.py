"""Helper functions for writing and reading the module audit trail."""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.core.models import AuditAction, AuditLogEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditContext:
    """Caller metadata attached to an audit entry."""

    ip_address: Optional[str] = None
    user_agent: str = ""
    context: str = ""

    @classmethod
    def from_request(cls, request, context: str = "") -> "AuditContext":
        meta = getattr(request, "META", {}) or {}
        ip_address = None
        forwarded = meta.get("HTTP_X_FORWARDED_FOR")
        if forwarded:
            ip_address = forwarded.split(",")[0].strip()
        if not ip_address:
            ip_address = meta.get("HTTP_X_REAL_IP") or meta.get("REMOTE_ADDR")
        return cls(
            ip_address=ip_address or None,
            user_agent=(meta.get("HTTP_USER_AGENT") or "")[:500],
            context=(context or "")[:1000],
        )


def _actor_or_none(actor):
    if actor is None or not getattr(actor, "is_authenticated", False):
        return None
    return actor


def record_audit(
    *,
    action: str,
    module_type: str,
    old_value: Any = None,
    new_value: Any = None,
    actor=None,
    audit_context: Optional[AuditContext] = None,
) -> AuditLogEntry:
    """
    Append one immutable audit entry.

    Must be called inside the transaction that performs the state change it
    describes; any failure here propagates and rolls that change back.
    """
    audit_context = audit_context or AuditContext()
    module_code = getattr(module_type, "value", module_type)
    entry = AuditLogEntry.objects.create(
        module_type=module_code,
        action=action,
        old_value=old_value,
        new_value=new_value,
        actor=_actor_or_none(actor),
        ip_address=audit_context.ip_address,
        user_agent=audit_context.user_agent,
        context=audit_context.context,
    )
    logger.debug(f"Audit {action} recorded for {module_code} (entry {entry.pk})")
    return entry


def record_module_enabled(module_type, actor=None, audit_context=None) -> AuditLogEntry:
    return record_audit(
        action=AuditAction.ENABLED,
        module_type=module_type,
        old_value={"is_enabled": False},
        new_value={"is_enabled": True},
        actor=actor,
        audit_context=audit_context,
    )


def record_module_disabled(module_type, actor=None, audit_context=None) -> AuditLogEntry:
    return record_audit(
        action=AuditAction.DISABLED,
        module_type=module_type,
        old_value={"is_enabled": True},
        new_value={"is_enabled": False},
        actor=actor,
        audit_context=audit_context,
    )


def record_settings_updated(module_type, old_settings, new_settings, actor=None, audit_context=None) -> AuditLogEntry:
    return record_audit(
        action=AuditAction.SETTINGS_UPDATED,
        module_type=module_type,
        old_value={"settings": old_settings},
        new_value={"settings": new_settings},
        actor=actor,
        audit_context=audit_context,
    )


def module_audit_trail(module_type, actor=None, since=None, until=None):
    """Audit entries for one module, newest first."""
    queryset = AuditLogEntry.objects.filter(
        module_type=getattr(module_type, "value", module_type)
    ).select_related("actor")
    if actor is not None:
        queryset = queryset.filter(actor=actor)
    if since is not None:
        queryset = queryset.filter(timestamp__gte=since)
    if until is not None:
        queryset = queryset.filter(timestamp__lte=until)
    return queryset.order_by("-timestamp")


def recent_activity(count: int = 10):
    return list(AuditLogEntry.objects.select_related("actor").order_by("-timestamp")[:count])
