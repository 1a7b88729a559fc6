# identifiers/exceptions.py
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _


class ConfigurationError(ValidationError):
    """
    Invalid identifier field configuration.

    Raised with a dict of per-field messages, e.g.
    {"prefix": [...], "sequence_length": [...]}, so forms and the admin
    attach each message to the right input.
    """


class DuplicateIdentifierError(ValidationError):
    """
    A generated or submitted identifier is already held by another entry.
    """

    code_value = "duplicate"

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            _("Identifier %(value)s is not unique."),
            code=self.code_value,
            params={"value": value},
        )

    def __reduce__(self):
        return self.__class__, (self.value,)
