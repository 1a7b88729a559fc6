# core/domain/events.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """
    Base class for all domain events.

    - Inherit from this class for concrete domain events.
    - Example:
        @dataclass(frozen=True, kw_only=True)
        class IdentifierIssued(DomainEvent):
            record_id: int
            value: str
    """
    occurred_at: datetime = field(default_factory=_utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)
