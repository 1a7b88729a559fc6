# identifiers/conf.py
from typing import Any

from django.conf import settings

DEFAULTS = {
    "DEFAULT_PREFIX": "R",
    "DEFAULT_SEQUENCE_LENGTH": 4,
    "DEFAULT_ENABLE_RANDOM_DIGITS": True,
    "DEFAULT_ENABLE_CHECKSUM": True,
    "LOCK_SEQUENCE": True,
}


def get_setting(name: str) -> Any:
    """
    Read a key from the IDENTIFIERS dict setting, falling back to DEFAULTS.
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown IDENTIFIERS setting '{name}'.")
    user_settings = getattr(settings, "IDENTIFIERS", None) or {}
    return user_settings.get(name, DEFAULTS[name])


# Callables used as model field defaults (serializable by migrations)

def default_prefix() -> str:
    return str(get_setting("DEFAULT_PREFIX")).upper()


def default_sequence_length() -> int:
    return int(get_setting("DEFAULT_SEQUENCE_LENGTH"))


def default_enable_random_digits() -> bool:
    return bool(get_setting("DEFAULT_ENABLE_RANDOM_DIGITS"))


def default_enable_checksum() -> bool:
    return bool(get_setting("DEFAULT_ENABLE_CHECKSUM"))
