from import_export import fields, resources
from import_export.widgets import ForeignKeyWidget

from .models import IdentifierField, IdentifierRecord
from .services import AssignmentService, issue_identifier


class IdentifierRecordResource(resources.ModelResource):
    """
    Export: one row per issued identifier (unformatted value).

    Import: each row is stored through issue_identifier(), so an entry that
    already has an identifier keeps it, blank values are generated under
    the field lock, and IdentifierIssued is emitted. The row is then
    identical to the stored record and is reported as skipped.
    Dry runs only preview the value through AssignmentService.
    """

    # Field handle instead of its database id
    identifier_field = fields.Field(
        column_name="field",
        attribute="identifier_field",
        widget=ForeignKeyWidget(IdentifierField, field="element_name"),
    )

    class Meta:
        model = IdentifierRecord
        fields = ("identifier_field", "entry_id", "value", "seq")
        export_order = ("identifier_field", "entry_id", "value", "seq")
        import_id_fields = ("identifier_field", "entry_id")
        skip_unchanged = True
        report_skipped = True

    def before_import_row(self, row, **kwargs):
        field = IdentifierField.objects.get(element_name=str(row.get("field") or "").strip())
        entry_id = int(row["entry_id"])

        if kwargs.get("dry_run"):
            result = AssignmentService.for_field(field).process(row.get("value"), entry_id)
            row["value"] = result.value
            row["seq"] = result.seq
            return

        record = issue_identifier(field, entry_id, row.get("value"), actor=kwargs.get("user"))
        row["value"] = record.value
        row["seq"] = record.seq
