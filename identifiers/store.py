# identifiers/store.py
from __future__ import annotations

from typing import Optional

from .generator import IdentifierValue
from .models import IdentifierRecord


class SequenceStore:
    """
    Read-only view over issued identifiers.

    `using` is the database alias every query runs against (None lets
    the router decide). Rows are written by the issuing path, never here.
    """

    def __init__(self, using: Optional[str] = None):
        self.using = using

    def _records(self, field_id):
        return IdentifierRecord.objects.db_manager(self.using).for_field(field_id)

    def fetch_max_seq(self, field_id) -> Optional[int]:
        return self._records(field_id).max_seq()

    def fetch_by_entry(self, field_id, entry_id) -> Optional[IdentifierValue]:
        row = (
            self._records(field_id)
            .for_entry(entry_id)
            .values_list("value", "seq")
            .first()
        )
        if row is None:
            return None
        value, seq = row
        return IdentifierValue(value=value, seq=seq)

    def exists_value(self, field_id, value: str, excluding_entry_id=None) -> bool:
        return (
            self._records(field_id)
            .with_value(value)
            .excluding_entry(excluding_entry_id)
            .exists()
        )
