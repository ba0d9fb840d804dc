from .base import (  # noqa: F401
    AppendOnlyModel,
    AppendOnlyViolation,
    CoreBaseModel,
    TimestampedModel,
    UUIDPrimaryKeyModel,
)
from .audit import AuditAction, AuditLogEntry  # noqa: F401
