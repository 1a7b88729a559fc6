import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import identifiers.conf


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="IdentifierField",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                (
                    "kind",
                    models.CharField(
                        choices=[("unique_order_identifier", "Unique order identifier"), ("order_id", "Order ID")],
                        default="unique_order_identifier",
                        max_length=32,
                        verbose_name="Kind",
                    ),
                ),
                ("label", models.CharField(max_length=255, verbose_name="Label")),
                (
                    "element_name",
                    models.SlugField(
                        help_text="Handle used in imports and exports, e.g. order-number.",
                        max_length=255,
                        unique=True,
                        verbose_name="Element name",
                    ),
                ),
                (
                    "prefix",
                    models.CharField(
                        default=identifiers.conf.default_prefix,
                        help_text="1 to 3 letters from A-Z.",
                        max_length=3,
                        verbose_name="Prefix",
                    ),
                ),
                (
                    "sequence_length",
                    models.PositiveSmallIntegerField(
                        default=identifiers.conf.default_sequence_length,
                        help_text="Zero padding width of the sequence number (1-9).",
                        verbose_name="Sequence length",
                    ),
                ),
                (
                    "enable_random_digits",
                    models.BooleanField(
                        default=identifiers.conf.default_enable_random_digits,
                        verbose_name="Include 3 random digits in identifiers",
                    ),
                ),
                (
                    "enable_checksum",
                    models.BooleanField(
                        default=identifiers.conf.default_enable_checksum,
                        help_text="Ignored if random digits are not enabled.",
                        verbose_name="Include checksum at end of identifier",
                    ),
                ),
            ],
            options={
                "verbose_name": "Identifier field",
                "verbose_name_plural": "Identifier fields",
                "ordering": ("label",),
            },
        ),
        migrations.CreateModel(
            name="IdentifierRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_id", models.PositiveBigIntegerField(verbose_name="Entry")),
                ("value", models.CharField(max_length=80, verbose_name="Identifier")),
                ("seq", models.PositiveIntegerField(blank=True, null=True, verbose_name="Sequence")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Issued at")),
                (
                    "identifier_field",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="records",
                        to="identifiers.identifierfield",
                        verbose_name="Field",
                    ),
                ),
            ],
            options={
                "verbose_name": "Issued identifier",
                "verbose_name_plural": "Issued identifiers",
                "ordering": ("identifier_field", "seq", "id"),
                "constraints": [
                    models.UniqueConstraint(fields=("identifier_field", "entry_id"), name="identifiers_one_per_entry"),
                    models.UniqueConstraint(fields=("identifier_field", "value"), name="identifiers_unique_value"),
                    models.UniqueConstraint(fields=("identifier_field", "seq"), name="identifiers_unique_seq"),
                ],
            },
        ),
    ]
