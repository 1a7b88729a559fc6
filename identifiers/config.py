# identifiers/config.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from django.db import models
from django.utils.translation import gettext_lazy as _

from .exceptions import ConfigurationError

# ASCII only: IGNORECASE alone lets the Kelvin sign and long s through
PREFIX_RE = re.compile(r"^[A-Z]{1,3}$", re.IGNORECASE | re.ASCII)
SEQUENCE_LENGTH_RE = re.compile(r"^[1-9]$", re.ASCII)

# The order-id variant has a fixed layout
ORDER_ID_PREFIX = "R"
ORDER_ID_SEQUENCE_LENGTH = 5


class IdentifierKind(models.TextChoices):
    UNIQUE = "unique_order_identifier", _("Unique order identifier")
    ORDER_ID = "order_id", _("Order ID")


def _is_blank(value: Any) -> bool:
    return value is None or len(str(value).strip()) == 0


def check_config(prefix: Any, sequence_length: Any) -> dict[str, str]:
    """
    Return per-field error messages for a prefix / sequence length pair.
    An empty dict means the pair is valid.
    """
    errors: dict[str, str] = {}

    if _is_blank(prefix):
        errors["prefix"] = _("This is a required field.")
    elif not PREFIX_RE.match(str(prefix).strip()):
        errors["prefix"] = _("Must be 1 to 3 characters from A-Z.")

    if _is_blank(sequence_length):
        errors["sequence_length"] = _("This is a required field.")
    elif isinstance(sequence_length, bool) or not SEQUENCE_LENGTH_RE.match(str(sequence_length).strip()):
        errors["sequence_length"] = _("Must be a number between 1 and 9.")

    return errors


def validate_config(prefix: Any, sequence_length: Any) -> None:
    errors = check_config(prefix, sequence_length)
    if errors:
        raise ConfigurationError(errors)


@dataclass(frozen=True)
class IdentifierConfig:
    """
    Immutable configuration of one identifier field.

    `prefix` is normalised to upper case. Construction raises
    ConfigurationError when prefix or sequence_length is invalid.
    `enable_checksum` only has an effect together with
    `enable_random_digits`.
    """

    prefix: str = ORDER_ID_PREFIX
    sequence_length: int = 4
    enable_random_digits: bool = True
    enable_checksum: bool = True
    kind: str = IdentifierKind.UNIQUE

    def __post_init__(self):
        validate_config(self.prefix, self.sequence_length)
        object.__setattr__(self, "prefix", str(self.prefix).strip().upper())
        object.__setattr__(self, "sequence_length", int(str(self.sequence_length).strip()))
        object.__setattr__(self, "kind", IdentifierKind(self.kind))

    @property
    def is_order_id(self) -> bool:
        return self.kind == IdentifierKind.ORDER_ID

    @property
    def uses_checksum(self) -> bool:
        return self.enable_random_digits and self.enable_checksum

    @classmethod
    def order_id(cls) -> "IdentifierConfig":
        return cls(
            prefix=ORDER_ID_PREFIX,
            sequence_length=ORDER_ID_SEQUENCE_LENGTH,
            kind=IdentifierKind.ORDER_ID,
        )
