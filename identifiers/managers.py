# identifiers/managers.py

from django.db import models
from django.db.models import Max


# ==============================================================================
# IdentifierField
# ==============================================================================


class IdentifierFieldQuerySet(models.QuerySet):
    def by_element_name(self, element_name: str):
        return self.filter(element_name=element_name)


class IdentifierFieldManager(models.Manager.from_queryset(IdentifierFieldQuerySet)):
    pass


# ==============================================================================
# IdentifierRecord
# ==============================================================================


class IdentifierRecordQuerySet(models.QuerySet):
    """
    QuerySet helpers for issued identifiers.
    """

    def for_field(self, field_id):
        return self.filter(identifier_field_id=field_id)

    def for_entry(self, entry_id):
        if entry_id is None:
            return self.none()
        return self.filter(entry_id=entry_id)

    def excluding_entry(self, entry_id):
        if entry_id is None:
            return self
        return self.exclude(entry_id=entry_id)

    def with_value(self, value: str):
        return self.filter(value=value)

    def missing_seq(self):
        """
        Rows written before the seq column existed (or submitted values).
        """
        return self.filter(seq__isnull=True)

    def max_seq(self):
        """
        Highest seq in the queryset, or None when nothing has a seq yet.
        """
        return self.aggregate(max_seq=Max("seq"))["max_seq"]


class IdentifierRecordManager(models.Manager.from_queryset(IdentifierRecordQuerySet)):
    pass
