# core/models/audit.py
from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils.translation import gettext_lazy as _

from .base import TimeStampedModel


class AuditLog(TimeStampedModel):
    """
    Audit entry for identifier events (an identifier being issued, a
    legacy sequence backfill).

    - action: short code describing what happened
    - actor: who did it (user), optional
    - target: any model instance (via GenericForeignKey)
    - message: human-readable description
    - extra: JSON payload for structured data
    """

    class Action(models.TextChoices):
        CREATE = "create", _("Identifier issued")
        UPDATE = "update", _("Identifiers updated")

    action = models.CharField(
        max_length=32,
        choices=Action.choices,
        verbose_name=_("Action"),
        db_index=True,
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audit_logs",
        verbose_name=_("Actor"),
    )

    target_content_type = models.ForeignKey(
        ContentType,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audit_logs",
        verbose_name=_("Target type"),
    )
    target_object_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        verbose_name=_("Target id"),
    )
    target = GenericForeignKey("target_content_type", "target_object_id")

    message = models.TextField(
        verbose_name=_("Message"),
        blank=True,
    )

    extra = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_("Extra data"),
    )

    class Meta:
        ordering = ("-created_at",)
        verbose_name = _("Audit log entry")
        verbose_name_plural = _("Audit log")
        indexes = [
            # Object audit history
            models.Index(
                fields=["target_content_type", "target_object_id", "created_at"],
                name="core_audit_target_idx",
            ),
            models.Index(fields=["action", "created_at"], name="core_audit_action_idx"),
        ]

    def __str__(self) -> str:
        base = f"[{self.action}]"
        if self.message:
            return f"{base} {self.message[:80]}"
        return f"{base} #{self.pk}"
