from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.contrib.contenttypes.models import ContentType
from django.test import SimpleTestCase, TestCase

from core.domain.dispatcher import DomainEventDispatcher
from core.domain.events import DomainEvent
from core.models import AuditLog
from core.services.audit import log_event

User = get_user_model()


@dataclass(frozen=True, kw_only=True)
class SomethingHappened(DomainEvent):
    name: str


class DomainEventDispatcherTests(SimpleTestCase):
    def setUp(self):
        self.dispatcher = DomainEventDispatcher()

    def test_emit_calls_registered_handlers(self):
        received = []

        @self.dispatcher.register_handler(SomethingHappened)
        def handler(event):
            received.append(event.name)

        self.dispatcher.emit(SomethingHappened(name="first"))
        self.assertEqual(received, ["first"])

    def test_handler_registered_once(self):
        received = []

        def handler(event):
            received.append(event.name)

        self.dispatcher.register_handler(SomethingHappened)(handler)
        self.dispatcher.register_handler(SomethingHappened)(handler)
        self.dispatcher.emit(SomethingHappened(name="once"))

        self.assertEqual(received, ["once"])

    def test_failing_handler_does_not_stop_others(self):
        received = []

        def broken(event):
            raise RuntimeError("boom")

        def working(event):
            received.append(event.name)

        self.dispatcher.register_handler(SomethingHappened)(broken)
        self.dispatcher.register_handler(SomethingHappened)(working)

        with self.assertLogs("core.domain.dispatcher", level="ERROR"):
            self.dispatcher.emit(SomethingHappened(name="second"))

        self.assertEqual(received, ["second"])

    def test_emit_without_handlers(self):
        self.dispatcher.emit(SomethingHappened(name="nobody listens"))


class LogEventTests(TestCase):
    def setUp(self):
        super().setUp()
        self.user = User.objects.create_user(username="staff", password="pass123")

    def test_creates_entry_with_target_and_actor(self):
        log = log_event(
            action=AuditLog.Action.CREATE,
            message="Created",
            actor=self.user,
            target=self.user,
            extra={"a": 1},
        )

        self.assertEqual(log.action, "create")
        self.assertEqual(log.actor, self.user)
        self.assertEqual(log.target_content_type, ContentType.objects.get_for_model(User))
        self.assertEqual(log.target_object_id, str(self.user.pk))
        self.assertEqual(log.extra, {"a": 1})

    def test_anonymous_actor_is_not_stored(self):
        log = log_event(action=AuditLog.Action.UPDATE, actor=object())
        self.assertIsNone(log.actor)

    def test_invalid_action(self):
        with self.assertRaises(ValueError):
            log_event(action="explode")
        self.assertFalse(AuditLog.objects.exists())

    def test_str(self):
        log = log_event(action=AuditLog.Action.UPDATE, message="Backfilled")
        self.assertEqual(str(log), "[update] Backfilled")
