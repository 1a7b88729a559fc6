# identifiers/handlers.py
import logging

from core.domain.dispatcher import register_handler
from core.models import AuditLog
from core.services.audit import log_event

from .domain import IdentifierIssued
from .models import IdentifierRecord

logger = logging.getLogger(__name__)


@register_handler(IdentifierIssued)
def handle_identifier_issued(event: IdentifierIssued) -> None:
    """
    Log the new identifier and keep an audit trail entry for it.
    """
    logger.info(
        "IdentifierIssued event: field_id=%s, entry_id=%s, value=%s, seq=%s",
        event.field_id,
        event.entry_id,
        event.value,
        event.seq,
    )

    using = event.metadata.get("using")
    record = IdentifierRecord.objects.db_manager(using).filter(pk=event.record_id).first()

    log_event(
        action=AuditLog.Action.CREATE,
        message=f"Identifier {event.value} issued for entry {event.entry_id}.",
        actor=event.metadata.get("actor"),
        target=record,
        extra={
            "field_id": event.field_id,
            "entry_id": event.entry_id,
            "value": event.value,
            "seq": event.seq,
        },
        using=using,
    )
