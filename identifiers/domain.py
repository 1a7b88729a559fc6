# identifiers/domain.py
from dataclasses import dataclass
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class IdentifierIssued(DomainEvent):
    """
    Emitted after the transaction that stored a new identifier commits.
    """
    record_id: int
    field_id: int
    entry_id: int
    value: str
    seq: Optional[int] = None
