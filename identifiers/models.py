# identifiers/models.py
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import TimeStampedModel

from .conf import (
    default_enable_checksum,
    default_enable_random_digits,
    default_prefix,
    default_sequence_length,
)
from .config import (
    ORDER_ID_PREFIX,
    ORDER_ID_SEQUENCE_LENGTH,
    IdentifierConfig,
    IdentifierKind,
    validate_config,
)
from .exceptions import ConfigurationError
from .managers import IdentifierFieldManager, IdentifierRecordManager


class IdentifierField(TimeStampedModel):
    """
    One configured identifier field (the "field instance").

    Example row:
    - kind: "unique_order_identifier"
    - element_name: "order-number"
    - prefix: "ORD", sequence_length: 6
    - enable_random_digits: True, enable_checksum: True
      -> ORD000001-482-15, ORD000002-907-18, ...

    The "order_id" kind ignores prefix / sequence_length and always
    issues R + 5 digit sequence identifiers.
    """

    Kind = IdentifierKind

    # Locked once identifiers exist
    CONFIG_FIELDS = ("kind", "prefix", "sequence_length", "enable_random_digits", "enable_checksum")

    kind = models.CharField(
        max_length=32,
        choices=IdentifierKind.choices,
        default=IdentifierKind.UNIQUE,
        verbose_name=_("Kind"),
    )

    label = models.CharField(
        max_length=255,
        verbose_name=_("Label"),
    )

    element_name = models.SlugField(
        max_length=255,
        unique=True,
        verbose_name=_("Element name"),
        help_text=_("Handle used in imports and exports, e.g. order-number."),
    )

    prefix = models.CharField(
        max_length=3,
        default=default_prefix,
        verbose_name=_("Prefix"),
        help_text=_("1 to 3 letters from A-Z."),
    )

    sequence_length = models.PositiveSmallIntegerField(
        default=default_sequence_length,
        verbose_name=_("Sequence length"),
        help_text=_("Zero padding width of the sequence number (1-9)."),
    )

    enable_random_digits = models.BooleanField(
        default=default_enable_random_digits,
        verbose_name=_("Include 3 random digits in identifiers"),
    )

    enable_checksum = models.BooleanField(
        default=default_enable_checksum,
        verbose_name=_("Include checksum at end of identifier"),
        help_text=_("Ignored if random digits are not enabled."),
    )

    objects = IdentifierFieldManager()

    class Meta:
        ordering = ("label",)
        verbose_name = _("Identifier field")
        verbose_name_plural = _("Identifier fields")

    def __str__(self) -> str:
        return f"{self.label} ({self.element_name})"

    def _apply_kind_layout(self):
        if self.kind == IdentifierKind.ORDER_ID:
            self.prefix = ORDER_ID_PREFIX
            self.sequence_length = ORDER_ID_SEQUENCE_LENGTH

    def _normalize(self):
        self._apply_kind_layout()
        validate_config(self.prefix, self.sequence_length)
        self.prefix = self.prefix.strip().upper()
        self.sequence_length = int(self.sequence_length)

    def _check_config_unchanged(self, using=None):
        """
        The layout is fixed once the field has issued identifiers.
        """
        if self.pk is None:
            return

        manager = type(self).objects.db_manager(using or self._state.db)
        stored = manager.filter(pk=self.pk).values(*self.CONFIG_FIELDS).first()
        if stored is None or not self.records.using(using or self._state.db).exists():
            return

        changed = [name for name in self.CONFIG_FIELDS if getattr(self, name) != stored[name]]
        if changed:
            raise ConfigurationError(
                {name: _("Cannot be changed once identifiers have been issued.") for name in changed}
            )

    def clean(self):
        super().clean()
        self._normalize()
        self._check_config_unchanged()

    def save(self, *args, **kwargs):
        self._normalize()
        self._check_config_unchanged(using=kwargs.get("using"))
        super().save(*args, **kwargs)

    @property
    def config(self) -> IdentifierConfig:
        if self.kind == IdentifierKind.ORDER_ID:
            return IdentifierConfig.order_id()
        return IdentifierConfig(
            prefix=self.prefix,
            sequence_length=self.sequence_length,
            enable_random_digits=self.enable_random_digits,
            enable_checksum=self.enable_checksum,
        )


class IdentifierRecord(models.Model):
    """
    The identifier issued to one entry for one field.

    Written once per entry; value and seq never change afterwards.
    seq is empty for values supplied from outside and for rows that
    predate the seq column (see the backfill_identifier_seq command).
    """

    identifier_field = models.ForeignKey(
        IdentifierField,
        on_delete=models.CASCADE,
        related_name="records",
        verbose_name=_("Field"),
    )

    entry_id = models.PositiveBigIntegerField(
        verbose_name=_("Entry"),
    )

    value = models.CharField(
        max_length=80,
        verbose_name=_("Identifier"),
    )

    seq = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_("Sequence"),
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_("Issued at"),
    )

    objects = IdentifierRecordManager()

    class Meta:
        ordering = ("identifier_field", "seq", "id")
        verbose_name = _("Issued identifier")
        verbose_name_plural = _("Issued identifiers")
        constraints = [
            models.UniqueConstraint(
                fields=["identifier_field", "entry_id"],
                name="identifiers_one_per_entry",
            ),
            models.UniqueConstraint(
                fields=["identifier_field", "value"],
                name="identifiers_unique_value",
            ),
            # NULL seqs never collide
            models.UniqueConstraint(
                fields=["identifier_field", "seq"],
                name="identifiers_unique_seq",
            ),
        ]

    def __str__(self) -> str:
        return self.value
