# identifiers/management/commands/backfill_identifier_seq.py

from django.core.management.base import BaseCommand, CommandError
from django.db import IntegrityError, transaction

from core.models import AuditLog
from core.services.audit import log_event
from identifiers.generator import recover_seq
from identifiers.models import IdentifierField


class Command(BaseCommand):
    help = "Recover missing sequence numbers from stored identifier values (legacy rows)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--field",
            dest="element_name",
            help="Only backfill the field with this element name.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing.",
        )

    def handle(self, *args, **options):
        element_name = options.get("element_name")
        dry_run = options.get("dry_run", False)

        fields = IdentifierField.objects.all()
        if element_name:
            fields = fields.by_element_name(element_name)
            if not fields.exists():
                raise CommandError(f"No identifier field with element name '{element_name}'.")

        for field in fields:
            updated, skipped = self._backfill_field(field, dry_run=dry_run)

            self.stdout.write(
                self.style.SUCCESS(
                    f"{field.element_name}: {updated} recovered, {skipped} skipped"
                    + (" (dry run)" if dry_run else "")
                )
            )

            if updated and not dry_run:
                log_event(
                    action=AuditLog.Action.UPDATE,
                    message=f"Backfilled {updated} sequence numbers for {field.element_name}.",
                    target=field,
                    extra={"updated": updated, "skipped": skipped},
                )

    def _backfill_field(self, field, *, dry_run):
        config = field.config
        updated = skipped = 0

        for record in field.records.missing_seq().order_by("id"):
            seq = recover_seq(record.value, config)
            if seq is None:
                self.stdout.write(self.style.WARNING(f"  {record.value}: no sequence found"))
                skipped += 1
                continue

            if dry_run:
                updated += 1
                continue

            try:
                with transaction.atomic():
                    record.seq = seq
                    record.save(update_fields=["seq"])
            except IntegrityError:
                self.stdout.write(
                    self.style.WARNING(f"  {record.value}: sequence {seq} already used")
                )
                skipped += 1
                continue

            updated += 1

        return updated, skipped
