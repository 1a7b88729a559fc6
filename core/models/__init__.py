from .base import TimeStampedModel
from .audit import AuditLog

__all__ = [
    "TimeStampedModel",
    "AuditLog",
]
