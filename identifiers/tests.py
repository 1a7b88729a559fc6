import random
import re
from io import StringIO
from unittest import mock

import tablib
from django.contrib import admin
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import CommandError, call_command
from django.test import SimpleTestCase, TestCase, override_settings

from core.models import AuditLog
from identifiers.admin import IdentifierFieldAdmin
from identifiers.checksum import sum_digits
from identifiers.config import IdentifierConfig, IdentifierKind, check_config
from identifiers.exceptions import ConfigurationError, DuplicateIdentifierError
from identifiers.generator import IdentifierValue, format_order_id, generate, recover_seq
from identifiers.models import IdentifierField, IdentifierRecord
from identifiers.resources import IdentifierRecordResource
from identifiers.services import AssignmentService, ensure_unique, issue_identifier
from identifiers.store import SequenceStore


class StubRandom:
    """
    randint() replacement returning the given values in order
    (the last one repeats).
    """

    def __init__(self, *values):
        self.values = list(values)
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


# ============================================================
# Pure helpers
# ============================================================


class SumDigitsTests(SimpleTestCase):
    def test_sums_digits(self):
        self.assertEqual(sum_digits("0123"), 6)

    def test_ignores_non_digits(self):
        self.assertEqual(sum_digits("R12-34"), 10)
        self.assertEqual(sum_digits("ABC"), 0)
        self.assertEqual(sum_digits(""), 0)


class IdentifierConfigTests(SimpleTestCase):
    def test_prefix_with_digit_is_rejected(self):
        with self.assertRaises(ConfigurationError) as ctx:
            IdentifierConfig(prefix="AB1", sequence_length=4)
        self.assertEqual(
            ctx.exception.message_dict["prefix"],
            ["Must be 1 to 3 characters from A-Z."],
        )

    def test_letters_prefix_is_accepted_and_upper_cased(self):
        self.assertEqual(IdentifierConfig(prefix="AB").prefix, "AB")
        self.assertEqual(IdentifierConfig(prefix="ord").prefix, "ORD")

    def test_prefix_longer_than_three_letters_is_rejected(self):
        self.assertIn("prefix", check_config("ABCD", 4))

    def test_blank_prefix_is_required(self):
        self.assertEqual(check_config("  ", 4), {"prefix": "This is a required field."})

    def test_sequence_length_bounds(self):
        for bad in (0, 10, -1, "x"):
            with self.subTest(sequence_length=bad):
                with self.assertRaises(ConfigurationError) as ctx:
                    IdentifierConfig(prefix="R", sequence_length=bad)
                self.assertEqual(
                    ctx.exception.message_dict["sequence_length"],
                    ["Must be a number between 1 and 9."],
                )

        self.assertEqual(IdentifierConfig(prefix="R", sequence_length=5).sequence_length, 5)
        self.assertEqual(IdentifierConfig(prefix="R", sequence_length="9").sequence_length, 9)

    def test_missing_sequence_length_is_required(self):
        self.assertEqual(
            check_config("R", None),
            {"sequence_length": "This is a required field."},
        )

    def test_errors_for_both_fields_are_reported_together(self):
        with self.assertRaises(ConfigurationError) as ctx:
            IdentifierConfig(prefix="1", sequence_length=0)
        self.assertEqual(set(ctx.exception.message_dict), {"prefix", "sequence_length"})

    def test_non_ascii_letters_are_rejected(self):
        # Long s and the Kelvin sign case-fold to ASCII letters
        for prefix in ("K\u017f", "\u212a", "\u017fR"):
            with self.subTest(prefix=prefix):
                with self.assertRaises(ConfigurationError) as ctx:
                    IdentifierConfig(prefix=prefix, sequence_length=4)
                self.assertIn("prefix", ctx.exception.message_dict)

    def test_non_ascii_digit_length_is_rejected(self):
        self.assertIn("sequence_length", check_config("R", "\u0664"))

    def test_checksum_needs_random_digits(self):
        self.assertFalse(IdentifierConfig(enable_random_digits=False, enable_checksum=True).uses_checksum)
        self.assertTrue(IdentifierConfig(enable_random_digits=True, enable_checksum=True).uses_checksum)

    def test_order_id_layout(self):
        config = IdentifierConfig.order_id()
        self.assertTrue(config.is_order_id)
        self.assertEqual(config.prefix, "R")
        self.assertEqual(config.sequence_length, 5)


class GenerateTests(SimpleTestCase):
    def setUp(self):
        self.plain = IdentifierConfig(prefix="R", sequence_length=4, enable_random_digits=False)

    def test_first_identifier_starts_at_one(self):
        self.assertEqual(generate(self.plain, None), IdentifierValue("R0001", 1))

    def test_increments_current_max(self):
        self.assertEqual(generate(self.plain, 1), IdentifierValue("R0002", 2))
        self.assertEqual(generate(self.plain, 41), IdentifierValue("R0042", 42))

    def test_sequence_wider_than_padding_is_kept_whole(self):
        self.assertEqual(generate(self.plain, 9999).value, "R10000")
        narrow = IdentifierConfig(prefix="AB", sequence_length=1, enable_random_digits=False)
        self.assertEqual(generate(narrow, 11).value, "AB12")

    def test_random_digits_with_checksum(self):
        config = IdentifierConfig(prefix="R", sequence_length=4)
        rng = random.Random(7)

        for current in (None, 5, 99, 1234):
            result = generate(config, current, rng=rng)
            match = re.fullmatch(r"R(\d{4})-(\d{3})-(\d{1,2})", result.value)
            self.assertIsNotNone(match, result.value)
            seq_str, rand, checksum = match.groups()
            self.assertEqual(int(checksum), sum_digits(seq_str + rand))
            self.assertTrue(100 <= int(rand) <= 999)

    def test_random_digits_without_checksum(self):
        config = IdentifierConfig(prefix="ORD", sequence_length=3, enable_checksum=False)
        rng = StubRandom(517)
        self.assertEqual(generate(config, 6, rng=rng), IdentifierValue("ORD007-517", 7))
        self.assertEqual(rng.calls, [(100, 999)])

    def test_checksum_is_ignored_without_random_digits(self):
        config = IdentifierConfig(prefix="R", sequence_length=4, enable_random_digits=False, enable_checksum=True)
        self.assertEqual(generate(config, None).value, "R0001")

    def test_known_checksum(self):
        config = IdentifierConfig(prefix="R", sequence_length=4)
        self.assertEqual(generate(config, 122, rng=StubRandom(456)).value, "R0123-456-21")

    def test_order_id_format(self):
        config = IdentifierConfig.order_id()
        rng = StubRandom(42)
        self.assertEqual(generate(config, None, rng=rng), IdentifierValue("R000010042-9", 1))
        self.assertEqual(rng.calls, [(1, 999)])

    def test_order_id_overflow_grows_length_marker(self):
        self.assertEqual(format_order_id(123456, 7), "R1234560007-10")


class RecoverSeqTests(SimpleTestCase):
    def test_unique_identifier_values(self):
        config = IdentifierConfig(prefix="ORD", sequence_length=4)
        self.assertEqual(recover_seq("ORD0042-517-19", config), 42)
        self.assertEqual(recover_seq("ord12345", config), 12345)

    def test_order_id_values(self):
        config = IdentifierConfig.order_id()
        self.assertEqual(recover_seq("R000120042-9", config), 12)
        self.assertEqual(recover_seq("r000070999-9", config), 7)

    def test_unparsable_values(self):
        config = IdentifierConfig(prefix="R", sequence_length=4)
        self.assertIsNone(recover_seq("", config))
        self.assertIsNone(recover_seq(None, config))
        self.assertIsNone(recover_seq("X0001", config))


# ============================================================
# Database backed
# ============================================================


class BaseIdentifierTestCase(TestCase):
    def setUp(self):
        super().setUp()
        self.field = IdentifierField.objects.create(
            label="Order number",
            element_name="order-number",
            prefix="R",
            sequence_length=4,
            enable_random_digits=False,
            enable_checksum=False,
        )
        self.other_field = IdentifierField.objects.create(
            label="Invoice number",
            element_name="invoice-number",
            prefix="INV",
            sequence_length=4,
            enable_random_digits=False,
            enable_checksum=False,
        )

    def make_record(self, entry_id, value, seq=None, field=None):
        return IdentifierRecord.objects.create(
            identifier_field=field or self.field,
            entry_id=entry_id,
            value=value,
            seq=seq,
        )


class IdentifierFieldModelTests(BaseIdentifierTestCase):
    def test_full_clean_reports_configuration_errors(self):
        field = IdentifierField(label="Bad", element_name="bad", prefix="AB1", sequence_length=10)
        with self.assertRaises(ValidationError) as ctx:
            field.full_clean()
        self.assertIn("prefix", ctx.exception.message_dict)
        self.assertIn("sequence_length", ctx.exception.message_dict)

    def test_prefix_is_upper_cased_on_save(self):
        field = IdentifierField.objects.create(label="Lower", element_name="lower", prefix="ab")
        field.refresh_from_db()
        self.assertEqual(field.prefix, "AB")

    def test_order_id_kind_forces_layout(self):
        field = IdentifierField.objects.create(
            label="Legacy orders",
            element_name="legacy-orders",
            kind=IdentifierKind.ORDER_ID,
            prefix="ZZ",
            sequence_length=2,
        )
        field.refresh_from_db()
        self.assertEqual((field.prefix, field.sequence_length), ("R", 5))
        self.assertTrue(field.config.is_order_id)

    @override_settings(IDENTIFIERS={"DEFAULT_PREFIX": "inv", "DEFAULT_SEQUENCE_LENGTH": 6})
    def test_defaults_come_from_settings(self):
        field = IdentifierField.objects.create(label="Defaults", element_name="defaults")
        self.assertEqual(field.prefix, "INV")
        self.assertEqual(field.sequence_length, 6)
        self.assertTrue(field.enable_random_digits)
        self.assertTrue(field.enable_checksum)

    def test_save_rejects_invalid_configuration(self):
        with self.assertRaises(ConfigurationError):
            IdentifierField.objects.create(label="Bad", element_name="bad", prefix="AB1")
        self.assertFalse(IdentifierField.objects.filter(element_name="bad").exists())

    def test_configuration_is_locked_once_identifiers_exist(self):
        issue_identifier(self.field, entry_id=1)

        self.field.prefix = "Q"
        self.field.sequence_length = 2
        with self.assertRaises(ValidationError) as ctx:
            self.field.full_clean()
        self.assertIn("prefix", ctx.exception.message_dict)
        self.assertIn("sequence_length", ctx.exception.message_dict)

        with self.assertRaises(ConfigurationError):
            self.field.save()

        self.field.refresh_from_db()
        self.assertEqual((self.field.prefix, self.field.sequence_length), ("R", 4))
        self.assertEqual(issue_identifier(self.field, entry_id=2).value, "R0002")

    def test_label_can_change_after_identifiers_exist(self):
        issue_identifier(self.field, entry_id=1)
        self.field.label = "Order no."
        self.field.full_clean()
        self.field.save()

    def test_configuration_can_change_before_first_identifier(self):
        self.field.prefix = "Q"
        self.field.save()
        self.assertEqual(issue_identifier(self.field, entry_id=1).value, "Q0001")

    def test_admin_locks_configuration_fields(self):
        model_admin = IdentifierFieldAdmin(IdentifierField, admin.site)
        self.assertFalse(set(IdentifierField.CONFIG_FIELDS) & set(model_admin.get_readonly_fields(None, self.field)))

        issue_identifier(self.field, entry_id=1)
        self.assertTrue(set(IdentifierField.CONFIG_FIELDS) <= set(model_admin.get_readonly_fields(None, self.field)))


class SequenceStoreTests(BaseIdentifierTestCase):
    def setUp(self):
        super().setUp()
        self.store = SequenceStore()

    def test_max_seq_is_none_without_records(self):
        self.assertIsNone(self.store.fetch_max_seq(self.field.pk))

    def test_max_seq_is_per_field(self):
        self.make_record(1, "R0001", 1)
        self.make_record(2, "R0003", 3)
        self.make_record(3, "CUSTOM")
        self.make_record(1, "INV0009", 9, field=self.other_field)

        self.assertEqual(self.store.fetch_max_seq(self.field.pk), 3)
        self.assertEqual(self.store.fetch_max_seq(self.other_field.pk), 9)

    def test_fetch_by_entry(self):
        self.make_record(5, "R0001", 1)
        self.assertEqual(self.store.fetch_by_entry(self.field.pk, 5), IdentifierValue("R0001", 1))
        self.assertIsNone(self.store.fetch_by_entry(self.field.pk, 6))
        self.assertIsNone(self.store.fetch_by_entry(self.other_field.pk, 5))
        self.assertIsNone(self.store.fetch_by_entry(self.field.pk, None))

    def test_exists_value_excluding_entry(self):
        self.make_record(5, "R0001", 1)
        self.assertTrue(self.store.exists_value(self.field.pk, "R0001"))
        self.assertTrue(self.store.exists_value(self.field.pk, "R0001", excluding_entry_id=6))
        self.assertFalse(self.store.exists_value(self.field.pk, "R0001", excluding_entry_id=5))
        self.assertFalse(self.store.exists_value(self.other_field.pk, "R0001"))


class EnsureUniqueTests(BaseIdentifierTestCase):
    def test_conflict_with_other_entry(self):
        self.make_record(1, "R0001", 1)
        with self.assertRaises(DuplicateIdentifierError) as ctx:
            ensure_unique(SequenceStore(), self.field.pk, "R0001", entry_id=2)

        self.assertEqual(ctx.exception.value, "R0001")
        self.assertEqual(ctx.exception.code, "duplicate")
        self.assertEqual(ctx.exception.messages, ["Identifier R0001 is not unique."])

    def test_own_value_is_not_a_conflict(self):
        self.make_record(1, "R0001", 1)
        ensure_unique(SequenceStore(), self.field.pk, "R0001", entry_id=1)


class AssignmentServiceTests(BaseIdentifierTestCase):
    def service(self, field=None, rng=None):
        return AssignmentService.for_field(field or self.field, rng=rng)

    def test_scenario_first_second_and_duplicate(self):
        first = self.service().assign(None, entry_id=1)
        self.assertEqual(first, IdentifierValue("R0001", 1))
        self.make_record(1, first.value, first.seq)

        second = self.service().assign("", entry_id=2)
        self.assertEqual(second.seq, 2)
        self.make_record(2, second.value, second.seq)

        with self.assertRaises(DuplicateIdentifierError) as ctx:
            self.service().assign("R0001", entry_id=3)
        self.assertEqual(ctx.exception.value, "R0001")

    def test_existing_value_always_wins(self):
        self.make_record(1, "R0001", 1)

        for submitted in (None, "", "R9999", "SOMETHING-ELSE"):
            with self.subTest(submitted=submitted):
                self.assertEqual(
                    self.service().assign(submitted, entry_id=1),
                    IdentifierValue("R0001", 1),
                )

    def test_blank_stored_value_does_not_count_as_existing(self):
        self.make_record(1, "   ")
        self.assertEqual(self.service().assign(None, entry_id=1), IdentifierValue("R0001", 1))

    def test_submitted_value_on_new_entry_has_no_seq(self):
        self.assertEqual(
            self.service().assign("  CUSTOM-1 ", entry_id=4),
            IdentifierValue("CUSTOM-1", None),
        )

    def test_new_record_without_entry_id(self):
        self.make_record(1, "R0001", 1)
        self.assertEqual(self.service().assign(None, entry_id=None).seq, 2)
        with self.assertRaises(DuplicateIdentifierError):
            self.service().assign("R0001", entry_id=None)

    def test_generated_collision_is_reported_not_retried(self):
        field = IdentifierField.objects.create(
            label="Random", element_name="random", prefix="R", sequence_length=4, enable_checksum=False
        )
        # Someone else already holds the exact candidate
        self.make_record(9, "R0001-555", None, field=field)

        rng = StubRandom(555)
        with self.assertRaises(DuplicateIdentifierError):
            self.service(field, rng=rng).assign(None, entry_id=1)
        self.assertEqual(len(rng.calls), 1)

    def test_validate_does_not_write(self):
        self.service().validate(None, entry_id=1)
        self.assertFalse(IdentifierRecord.objects.exists())

    def test_validate_raises_on_duplicate(self):
        self.make_record(1, "R0001", 1)
        with self.assertRaises(DuplicateIdentifierError):
            self.service().validate("R0001", entry_id=2)

    def test_process_reuses_validated_candidate(self):
        field = IdentifierField.objects.create(
            label="Random", element_name="random", prefix="R", sequence_length=4
        )
        service = self.service(field, rng=StubRandom(111, 222))

        service.validate(None, entry_id=1)
        result = service.process(None, entry_id=1)

        self.assertEqual(result.value, "R0001-111-4")
        # A second process call without validate draws again
        self.assertEqual(service.process(None, entry_id=1).value, "R0001-222-7")

    def test_process_prefers_value_stored_after_validate(self):
        service = self.service()
        service.validate(None, entry_id=1)

        # Another save stored an identifier for the entry in between
        self.make_record(1, "R0042", 42)

        self.assertEqual(service.process(None, entry_id=1), IdentifierValue("R0042", 42))

    def test_process_rechecks_uniqueness_after_validate(self):
        service = self.service()
        service.validate("R0007", entry_id=2)
        self.make_record(1, "R0007", 7)

        with self.assertRaises(DuplicateIdentifierError):
            service.process("R0007", entry_id=2)

    def test_only_the_last_validation_is_kept(self):
        field = IdentifierField.objects.create(
            label="Random", element_name="random", prefix="R", sequence_length=4, enable_checksum=False
        )
        service = self.service(field, rng=StubRandom(111, 222, 333))

        service.validate(None, entry_id=1)
        service.validate(None, entry_id=2)

        # Entry 1 was superseded and draws again
        self.assertEqual(service.process(None, entry_id=1).value, "R0001-333")
        self.assertIsNone(service._last_decision)

    def test_sequence_is_monotonic(self):
        seqs = []
        for entry_id in range(1, 6):
            result = self.service().assign(None, entry_id=entry_id)
            self.make_record(entry_id, result.value, result.seq)
            seqs.append(result.seq)
        self.assertEqual(seqs, [1, 2, 3, 4, 5])

    def test_sequence_continues_after_custom_values(self):
        self.make_record(1, "R0001", 1)
        self.make_record(2, "CUSTOM")
        self.assertEqual(self.service().assign(None, entry_id=3), IdentifierValue("R0002", 2))


class IssueIdentifierTests(BaseIdentifierTestCase):
    def test_issue_creates_record(self):
        record = issue_identifier(self.field, entry_id=1)
        self.assertEqual((record.value, record.seq, record.entry_id), ("R0001", 1, 1))
        self.assertEqual(IdentifierRecord.objects.count(), 1)

    def test_issue_is_write_once(self):
        first = issue_identifier(self.field, entry_id=1)
        again = issue_identifier(self.field, entry_id=1, submitted_value="R0500")

        self.assertEqual(again.pk, first.pk)
        self.assertEqual(again.value, "R0001")
        self.assertEqual(IdentifierRecord.objects.count(), 1)

    def test_entries_across_fields_are_independent(self):
        self.assertEqual(issue_identifier(self.field, entry_id=1).value, "R0001")
        self.assertEqual(issue_identifier(self.other_field, entry_id=1).value, "INV0001")
        self.assertEqual(issue_identifier(self.field, entry_id=2).value, "R0002")

    def test_values_stay_unique(self):
        for entry_id in range(1, 11):
            issue_identifier(self.field, entry_id=entry_id)

        values = list(IdentifierRecord.objects.for_field(self.field.pk).values_list("value", flat=True))
        self.assertEqual(len(values), 10)
        self.assertEqual(len(set(values)), 10)

    def test_duplicate_submission_writes_nothing(self):
        issue_identifier(self.field, entry_id=1)
        with self.assertRaises(DuplicateIdentifierError):
            issue_identifier(self.field, entry_id=2, submitted_value="R0001")
        self.assertFalse(IdentifierRecord.objects.for_entry(2).exists())

    def test_fills_placeholder_row(self):
        placeholder = self.make_record(1, "")
        record = issue_identifier(self.field, entry_id=1)
        self.assertEqual(record.pk, placeholder.pk)
        self.assertEqual((record.value, record.seq), ("R0001", 1))

    def test_integrity_error_becomes_duplicate_error(self):
        self.make_record(1, "R0001", 1)
        with mock.patch.object(SequenceStore, "exists_value", return_value=False):
            with self.assertRaises(DuplicateIdentifierError) as ctx:
                issue_identifier(self.field, entry_id=2, submitted_value="R0001")
        self.assertEqual(ctx.exception.value, "R0001")
        self.assertEqual(IdentifierRecord.objects.count(), 1)

    def test_entry_id_is_required(self):
        with self.assertRaises(ValueError):
            issue_identifier(self.field, entry_id=None)

    @override_settings(IDENTIFIERS={"LOCK_SEQUENCE": False})
    def test_issue_without_sequence_lock(self):
        self.assertEqual(issue_identifier(self.field, entry_id=1).seq, 1)
        self.assertEqual(issue_identifier(self.field, entry_id=2).seq, 2)

    def test_issued_event_writes_audit_log(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            record = issue_identifier(self.field, entry_id=7)

        self.assertEqual(len(callbacks), 1)
        log = AuditLog.objects.get(target_object_id=str(record.pk))
        self.assertEqual(log.action, AuditLog.Action.CREATE)
        self.assertEqual(log.message, "Identifier R0001 issued for entry 7.")
        self.assertEqual(log.extra["seq"], 1)
        self.assertEqual(log.target, record)

    def test_existing_identifier_emits_nothing(self):
        issue_identifier(self.field, entry_id=7)
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            issue_identifier(self.field, entry_id=7)
        self.assertEqual(callbacks, [])


class IdentifierRecordResourceTests(BaseIdentifierTestCase):
    def dataset(self, *rows):
        dataset = tablib.Dataset(headers=["field", "entry_id", "value", "seq"])
        for row in rows:
            dataset.append(row)
        return dataset

    def test_export_unformatted_values(self):
        issue_identifier(self.field, entry_id=3)

        rows = IdentifierRecordResource().export().dict
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["field"], "order-number")
        self.assertEqual(rows[0]["value"], "R0001")
        self.assertEqual(str(rows[0]["entry_id"]), "3")

    def test_import_generates_blank_values(self):
        result = IdentifierRecordResource().import_data(
            self.dataset(["order-number", 10, "", ""], ["order-number", 11, "", ""]),
            dry_run=False,
            raise_errors=True,
        )

        self.assertFalse(result.has_errors())
        self.assertEqual(
            list(IdentifierRecord.objects.for_field(self.field.pk).values_list("entry_id", "value", "seq")),
            [(10, "R0001", 1), (11, "R0002", 2)],
        )

    def test_import_keeps_existing_identifier(self):
        issue_identifier(self.field, entry_id=10)

        IdentifierRecordResource().import_data(
            self.dataset(["order-number", 10, "CHANGED", ""]),
            dry_run=False,
            raise_errors=True,
        )

        record = IdentifierRecord.objects.get(identifier_field=self.field, entry_id=10)
        self.assertEqual((record.value, record.seq), ("R0001", 1))

    def test_import_goes_through_issue_identifier(self):
        user = get_user_model().objects.create_user(username="importer", password="pass123")

        with self.captureOnCommitCallbacks(execute=True):
            IdentifierRecordResource().import_data(
                self.dataset(["order-number", 12, "", ""]),
                dry_run=False,
                raise_errors=True,
                user=user,
            )

        record = IdentifierRecord.objects.get(identifier_field=self.field, entry_id=12)
        log = AuditLog.objects.get(target_object_id=str(record.pk))
        self.assertEqual(log.action, AuditLog.Action.CREATE)
        self.assertEqual(log.actor, user)

    def test_dry_run_import_writes_nothing(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = IdentifierRecordResource().import_data(
                self.dataset(["order-number", 12, "", ""]),
                dry_run=True,
                raise_errors=True,
            )

        self.assertFalse(result.has_errors())
        self.assertFalse(IdentifierRecord.objects.exists())
        self.assertFalse(AuditLog.objects.exists())


class BackfillIdentifierSeqCommandTests(BaseIdentifierTestCase):
    def test_recovers_seq_from_values(self):
        self.make_record(1, "R0007")
        self.make_record(2, "R0012")
        unparsable = self.make_record(3, "CUSTOM")

        out = StringIO()
        call_command("backfill_identifier_seq", stdout=out)

        self.assertEqual(
            dict(IdentifierRecord.objects.for_field(self.field.pk).values_list("entry_id", "seq")),
            {1: 7, 2: 12, 3: None},
        )
        unparsable.refresh_from_db()
        self.assertIsNone(unparsable.seq)
        self.assertIn("order-number: 2 recovered, 1 skipped", out.getvalue())
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.UPDATE).exists())

    def test_order_id_values(self):
        field = IdentifierField.objects.create(
            label="Legacy orders", element_name="legacy-orders", kind=IdentifierKind.ORDER_ID
        )
        self.make_record(1, "R000120042-9", field=field)

        call_command("backfill_identifier_seq", "--field", "legacy-orders", stdout=StringIO())

        self.assertEqual(field.records.get().seq, 12)

    def test_generation_continues_after_backfill(self):
        self.make_record(1, "R0041")
        call_command("backfill_identifier_seq", stdout=StringIO())
        self.assertEqual(issue_identifier(self.field, entry_id=2).value, "R0042")

    def test_conflicting_seq_is_skipped(self):
        self.make_record(1, "R0005", 5)
        self.make_record(2, "R0005-OLD")

        out = StringIO()
        call_command("backfill_identifier_seq", stdout=out)

        self.assertIsNone(IdentifierRecord.objects.get(entry_id=2, identifier_field=self.field).seq)
        self.assertIn("sequence 5 already used", out.getvalue())

    def test_dry_run_writes_nothing(self):
        self.make_record(1, "R0007")
        call_command("backfill_identifier_seq", "--dry-run", stdout=StringIO())
        self.assertIsNone(IdentifierRecord.objects.get().seq)

    def test_unknown_field(self):
        with self.assertRaises(CommandError):
            call_command("backfill_identifier_seq", "--field", "missing", stdout=StringIO())
