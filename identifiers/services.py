# identifiers/services.py

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Optional

from django.db import IntegrityError, router, transaction

from core.domain.dispatcher import emit

from .conf import get_setting
from .config import IdentifierConfig
from .domain import IdentifierIssued
from .exceptions import DuplicateIdentifierError
from .generator import IdentifierValue, generate
from .models import IdentifierField, IdentifierRecord
from .store import SequenceStore

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or len(str(value).strip()) == 0


# ============================================================
# Uniqueness guard
# ============================================================

def ensure_unique(store: SequenceStore, field_id, candidate: str, entry_id=None) -> None:
    """
    Raise DuplicateIdentifierError if another entry already holds `candidate`.

    Never regenerates: the caller has to submit the save again.
    """
    if store.exists_value(field_id, candidate, excluding_entry_id=entry_id):
        logger.info(
            "Rejected identifier %s for field %s entry %s: already in use",
            candidate,
            field_id,
            entry_id,
        )
        raise DuplicateIdentifierError(candidate)


# ============================================================
# Assignment service
# ============================================================

class AssignmentService:
    """
    Decides which identifier an entry gets on save.

    Flow for one save:
        1) an existing non-blank value for the entry wins (write-once)
        2) otherwise a blank submission is replaced by a generated value,
           a non-blank one is taken as-is (without a seq)
        3) the candidate must not belong to another entry

    Hooks for the host:
        service.validate(submitted, entry_id)  # raises, never writes
        service.process(submitted, entry_id)   # -> IdentifierValue to store

    `process` reuses the candidate chosen by the immediately preceding
    `validate` call with the same arguments, so a random part is not
    drawn twice. Only that one decision is kept.

    Note: on its own this is check-then-act. Two concurrent first saves
    can read the same max seq. issue_identifier() serializes that.
    """

    def __init__(
        self,
        field_id,
        config: IdentifierConfig,
        store: Optional[SequenceStore] = None,
        rng=None,
    ):
        self.field_id = field_id
        self.config = config
        self.store = store or SequenceStore()
        self.rng = rng
        self._last_decision: Optional[tuple[tuple, IdentifierValue]] = None

    @classmethod
    def for_field(cls, field: IdentifierField, *, using: Optional[str] = None, rng=None) -> "AssignmentService":
        return cls(field.pk, field.config, SequenceStore(using=using), rng=rng)

    @staticmethod
    def _decision_key(submitted_value, entry_id) -> tuple:
        submitted = "" if _is_blank(submitted_value) else str(submitted_value).strip()
        return submitted, entry_id

    def resolve_existing(self, entry_id) -> Optional[IdentifierValue]:
        if entry_id is None:
            return None
        existing = self.store.fetch_by_entry(self.field_id, entry_id)
        if existing is None or _is_blank(existing.value):
            return None
        return existing

    def candidate(self, submitted_value=None, entry_id=None) -> IdentifierValue:
        existing = self.resolve_existing(entry_id)
        if existing is not None:
            return existing

        if _is_blank(submitted_value):
            current_max = self.store.fetch_max_seq(self.field_id)
            return generate(self.config, current_max, rng=self.rng)

        return IdentifierValue(value=str(submitted_value).strip(), seq=None)

    def assign(self, submitted_value=None, entry_id=None) -> IdentifierValue:
        """
        Run the full resolve / generate / validate flow.
        Raises DuplicateIdentifierError on conflict.
        """
        candidate = self.candidate(submitted_value, entry_id)
        ensure_unique(self.store, self.field_id, candidate.value, entry_id)
        return candidate

    def validate(self, submitted_value=None, entry_id=None) -> None:
        decision = self.assign(submitted_value, entry_id)
        self._last_decision = (self._decision_key(submitted_value, entry_id), decision)

    def process(self, submitted_value=None, entry_id=None) -> IdentifierValue:
        key = self._decision_key(submitted_value, entry_id)
        last, self._last_decision = self._last_decision, None

        if last is None or last[0] != key:
            return self.assign(submitted_value, entry_id)

        # A value stored since validate() still wins
        existing = self.resolve_existing(entry_id)
        decision = existing if existing is not None else last[1]

        ensure_unique(self.store, self.field_id, decision.value, entry_id)
        return decision


# ============================================================
# Issuing (persist path)
# ============================================================

def _lock_field(field: IdentifierField, using: str) -> None:
    """
    Row lock on the field so sequence allocation is serialized.
    PostgreSQL/MySQL lock the row; SQLite locks the database on write.
    """
    (
        IdentifierField.objects.using(using)
        .select_for_update()
        .filter(pk=field.pk)
        .values_list("pk", flat=True)
        .first()
    )


def issue_identifier(
    field: IdentifierField,
    entry_id: int,
    submitted_value: Optional[str] = None,
    *,
    actor: Any = None,
    using: Optional[str] = None,
    rng=None,
) -> IdentifierRecord:
    """
    Resolve, validate and persist the identifier for one entry.

    Returns the stored record. Saving the same entry again returns the
    existing record unchanged, whatever is submitted.

    Usage:
        record = issue_identifier(order_field, entry_id=order.pk)
        order.number = record.value
    """
    if entry_id is None:
        raise ValueError("entry_id is required to store an identifier.")

    using = using or router.db_for_write(IdentifierRecord)

    with transaction.atomic(using=using):
        if get_setting("LOCK_SEQUENCE"):
            _lock_field(field, using)

        record = (
            IdentifierRecord.objects.using(using)
            .for_field(field.pk)
            .for_entry(entry_id)
            .first()
        )

        service = AssignmentService.for_field(field, using=using, rng=rng)
        result = service.process(submitted_value, entry_id)

        if record is not None and record.value == result.value:
            return record

        try:
            with transaction.atomic(using=using):
                if record is None:
                    record = IdentifierRecord.objects.using(using).create(
                        identifier_field=field,
                        entry_id=entry_id,
                        value=result.value,
                        seq=result.seq,
                    )
                else:
                    # Placeholder row without a value
                    record.value = result.value
                    record.seq = result.seq
                    record.save(using=using, update_fields=["value", "seq"])
        except IntegrityError as exc:
            logger.warning(
                "Identifier %s for field %s entry %s collided on insert",
                result.value,
                field.pk,
                entry_id,
            )
            raise DuplicateIdentifierError(result.value) from exc

        logger.info(
            "Issued identifier %s (seq=%s) for field %s entry %s",
            record.value,
            record.seq,
            field.pk,
            entry_id,
        )

        event = IdentifierIssued(
            record_id=record.pk,
            field_id=field.pk,
            entry_id=entry_id,
            value=record.value,
            seq=record.seq,
            metadata={"actor": actor, "using": using},
        )
        transaction.on_commit(partial(emit, event), using=using)

    return record
