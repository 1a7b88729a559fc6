# identifiers/admin.py
from django.contrib import admin
from import_export.admin import ImportExportModelAdmin

from .models import IdentifierField, IdentifierRecord
from .resources import IdentifierRecordResource


@admin.register(IdentifierField)
class IdentifierFieldAdmin(admin.ModelAdmin):
    list_display = ("label", "element_name", "kind", "prefix", "sequence_length", "enable_random_digits", "enable_checksum")
    list_filter = ("kind",)
    search_fields = ("label", "element_name")
    prepopulated_fields = {"element_name": ("label",)}

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None and obj.records.exists():
            readonly += list(IdentifierField.CONFIG_FIELDS)
        return readonly


@admin.register(IdentifierRecord)
class IdentifierRecordAdmin(ImportExportModelAdmin):
    resource_classes = [IdentifierRecordResource]
    list_display = ("value", "seq", "entry_id", "identifier_field", "created_at")
    list_filter = ("identifier_field",)
    search_fields = ("value",)
    # Identifiers are write-once
    readonly_fields = ("identifier_field", "entry_id", "value", "seq", "created_at")

    def has_add_permission(self, request):
        return False
