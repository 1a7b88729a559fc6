# core/services/audit.py

from __future__ import annotations

from typing import Any, Mapping, Optional

from django.contrib.contenttypes.models import ContentType

from core.models import AuditLog


def log_event(
    *,
    action: AuditLog.Action,
    message: str = "",
    actor: Any = None,
    target: Optional[Any] = None,
    extra: Optional[Mapping[str, Any]] = None,
    using: Optional[str] = None,
) -> AuditLog:
    """
    Write one AuditLog row on the `using` database.

    `actor` is stored only for authenticated users (imports run from the
    admin pass request.user; commands pass nothing). `target` is stored
    through its content type and primary key.
    """
    if action not in AuditLog.Action.values:
        raise ValueError(f"Invalid audit action '{action}'.")

    log = AuditLog(action=action, message=message, extra=dict(extra or {}))

    if actor is not None and getattr(actor, "is_authenticated", False):
        log.actor = actor

    if target is not None and target.pk is not None:
        log.target_content_type = ContentType.objects.db_manager(using).get_for_model(target)
        log.target_object_id = str(target.pk)

    log.save(using=using)
    return log
