"""
Tests for the notification dispatcher.

Emails go through the locmem backend (mailoutbox) or a recording transport.

Test Classes:
    TestRejectedDispatch: Unknown and unregistered events
    TestSingleRecipient: Channel fan-out for one recipient
    TestPreferenceGating: Email opt-outs and catalog defaults
    TestBatchDispatch: Many recipients through the worker pool
    TestFailureIsolation: One failing channel or recipient never stops the rest
    TestTestNotifications: Suppression of test emails in production
    TestDispatcherConfiguration: Construction and the process-wide instance
"""

import threading
import time
from dataclasses import replace
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from authentication.tests.factories import StudentFactory
from notifications.catalog import EventCode
from notifications.dispatch import (
    DispatchSummary,
    NotificationDispatcher,
    Recipient,
    configure_dispatcher,
    get_dispatcher,
)
from notifications.models import InAppNotification, NotificationLog
from notifications.preferences import PreferenceResolver
from notifications.tests.factories import NotificationPreferenceFactory


def module_payload(module_data):
    return lambda r: {"student_name": r.name, **module_data}


def assert_counts_add_up(summary: DispatchSummary):
    assert summary.attempted == summary.sent + summary.failed + summary.skipped


class TestRejectedDispatch:
    """Dispatches refused before any delivery attempt."""

    def test_unknown_event(self, dispatcher, student, mailoutbox):
        result = dispatcher.notify("NOT_AN_EVENT", Recipient.from_user(student), {})

        assert not result.success
        assert result.error_code == "UNKNOWN_EVENT"
        assert not NotificationLog.objects.exists()
        assert not InAppNotification.objects.exists()
        assert len(mailoutbox) == 0

    def test_event_without_renderers(self, dispatcher, student):
        """PASSWORD_RESET is in the catalog but has no renderer on any channel."""
        result = dispatcher.notify(EventCode.PASSWORD_RESET, Recipient.from_user(student), {})

        assert not result.success
        assert result.error_code == "EVENT_NOT_REGISTERED"
        assert not NotificationLog.objects.exists()

    def test_unserializable_metadata(self, dispatcher, student, grade_data, mailoutbox):
        result = dispatcher.notify(
            EventCode.GRADE_POSTED,
            Recipient.from_user(student),
            grade_data,
            metadata={"callback": object()},
        )

        assert not result.success
        assert result.error_code == "INVALID_METADATA"
        assert not NotificationLog.objects.exists()
        assert not InAppNotification.objects.exists()
        assert len(mailoutbox) == 0

    def test_metadata_must_be_a_mapping(self, dispatcher, student, grade_data):
        result = dispatcher.notify(
            EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data, metadata=["test"]
        )

        assert result.error_code == "INVALID_METADATA"

    def test_malformed_recipient_entry(self, dispatcher, student, grade_data, mailoutbox):
        result = dispatcher.notify_batch(
            EventCode.GRADE_POSTED,
            [Recipient.from_user(student), None],
            lambda r: grade_data,
        )

        assert not result.success
        assert result.error_code == "INVALID_RECIPIENT"
        assert not NotificationLog.objects.exists()
        assert not InAppNotification.objects.exists()
        assert len(mailoutbox) == 0

    def test_recipients_not_iterable(self, dispatcher, grade_data):
        result = dispatcher.notify_batch(EventCode.GRADE_POSTED, None, lambda r: grade_data)

        assert result.error_code == "INVALID_RECIPIENT"

    def test_empty_recipient_list(self, dispatcher):
        result = dispatcher.notify_batch(EventCode.GRADE_POSTED, [], lambda r: {})

        assert result.success
        assert result.data == DispatchSummary()


class TestSingleRecipient:
    def test_email_and_in_app(self, dispatcher, student, grade_data, mailoutbox):
        result = dispatcher.notify(
            EventCode.GRADE_POSTED,
            Recipient.from_user(student),
            grade_data,
            metadata={"test_id": 7},
        )

        summary = result.data
        assert summary.attempted == 2
        assert summary.sent == 2
        assert summary.errors == []

        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [student.email]
        assert mailoutbox[0].subject == "Grade Posted: Algebra Quiz"

        entry = InAppNotification.objects.get(recipient=student)
        assert entry.event_id == "GRADE_POSTED"
        assert entry.link == "/progress"
        assert entry.metadata == {"test_id": 7}

        logs = NotificationLog.objects.filter(recipient=student)
        assert {(log.channel, log.status) for log in logs} == {("email", "sent"), ("inapp", "sent")}
        assert all(log.metadata == {"test_id": 7} for log in logs)

    def test_email_only_event(self, dispatcher, student, mailoutbox):
        """ACCOUNT_CREATED has no in-app renderer."""
        recipient = Recipient.from_user(student)

        result = dispatcher.notify(
            EventCode.ACCOUNT_CREATED,
            recipient,
            {"name": recipient.name, "role": "student", "email": recipient.email},
        )

        assert result.data.sent == 1
        assert len(mailoutbox) == 1
        assert not InAppNotification.objects.exists()
        assert NotificationLog.objects.get().channel == "email"

    def test_in_app_only_event(self, dispatcher, student, mailoutbox):
        result = dispatcher.notify(
            EventCode.MODULE_COMPLETED,
            Recipient.from_user(student),
            {"module_title": "Photosynthesis", "total_steps": 5},
        )

        assert result.data.sent == 1
        assert len(mailoutbox) == 0
        assert InAppNotification.objects.filter(recipient=student).count() == 1

    def test_email_log_row_records_subject_and_address(self, dispatcher, student, grade_data):
        dispatcher.notify(EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data)

        log = NotificationLog.objects.get(channel="email")
        assert log.recipient_email == student.email
        assert log.subject == "Grade Posted: Algebra Quiz"
        assert log.error_message == ""

    def test_metadata_dates_and_decimals_are_stored(self, dispatcher, student, grade_data):
        result = dispatcher.notify(
            EventCode.GRADE_POSTED,
            Recipient.from_user(student),
            grade_data,
            metadata={"deadline": datetime(2026, 1, 1, tzinfo=dt_timezone.utc), "score": Decimal("12.50")},
        )

        assert result.data.sent == 2
        expected = {"deadline": "2026-01-01T00:00:00Z", "score": "12.50"}
        logs = NotificationLog.objects.filter(recipient=student, event_id="GRADE_POSTED")
        assert logs.count() == 2
        assert all(log.metadata == expected for log in logs)
        assert InAppNotification.objects.get(recipient=student).metadata == expected


class TestPreferenceGating:
    def test_opt_out_skips_email_only(self, dispatcher, student, grade_data, mailoutbox):
        NotificationPreferenceFactory(
            user=student, event_id=EventCode.GRADE_POSTED, email_enabled=False
        )

        result = dispatcher.notify(EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data)

        summary = result.data
        assert summary.skipped == 1
        assert summary.sent == 1
        assert_counts_add_up(summary)
        assert len(mailoutbox) == 0
        # Skipped attempts leave no log row
        assert list(NotificationLog.objects.values_list("channel", flat=True)) == ["inapp"]
        assert InAppNotification.objects.filter(recipient=student).exists()

    def test_opt_in_after_opt_out(self, dispatcher, student, grade_data, mailoutbox):
        NotificationPreferenceFactory(
            user=student, event_id=EventCode.GRADE_POSTED, email_enabled=True
        )

        dispatcher.notify(EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data)

        assert len(mailoutbox) == 1

    def test_preference_lookup_failure_uses_catalog_default(
        self, dispatcher, student, grade_data, mailoutbox, mocker
    ):
        mocker.patch.object(PreferenceResolver, "resolve_bulk", side_effect=RuntimeError("db down"))

        result = dispatcher.notify(EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data)

        assert result.data.sent == 2
        assert len(mailoutbox) == 1


class TestBatchDispatch:
    def test_section_with_one_opt_out(self, dispatcher, section_students, module_data, mailoutbox):
        """Three members, one opted out: two emails and three inbox entries."""
        opted_out = section_students[0]
        NotificationPreferenceFactory(
            user=opted_out, event_id=EventCode.MODULE_PUBLISHED, email_enabled=False
        )

        result = dispatcher.notify_batch(
            EventCode.MODULE_PUBLISHED,
            [Recipient.from_user(s) for s in section_students],
            module_payload(module_data),
            metadata={"module_id": 3},
        )

        summary = result.data
        assert summary.attempted == 6
        assert summary.sent == 5
        assert summary.skipped == 1
        assert_counts_add_up(summary)

        assert len(mailoutbox) == 2
        assert opted_out.email not in {m.to[0] for m in mailoutbox}
        assert InAppNotification.objects.filter(event_id="MODULE_PUBLISHED").count() == 3
        assert NotificationLog.objects.filter(channel="email").count() == 2
        assert NotificationLog.objects.filter(channel="inapp").count() == 3

    def test_payload_built_per_recipient(self, dispatcher, section_students, module_data, mailoutbox):
        dispatcher.notify_batch(
            EventCode.MODULE_PUBLISHED,
            [Recipient.from_user(s) for s in section_students],
            module_payload(module_data),
        )

        for student in section_students:
            message = next(m for m in mailoutbox if m.to == [student.email])
            assert student.name in message.alternatives[0][0]

    def test_duplicate_recipients_are_not_merged(self, dispatcher, student, grade_data):
        recipient = Recipient.from_user(student)

        result = dispatcher.notify_batch(
            EventCode.GRADE_POSTED, [recipient, recipient], lambda r: grade_data
        )

        assert result.data.sent == 4
        assert InAppNotification.objects.filter(recipient=student).count() == 2

    def test_single_worker(self, student, other_student, grade_data, recording_sender):
        dispatcher = NotificationDispatcher(transport=recording_sender, max_workers=1)

        result = dispatcher.notify_batch(
            EventCode.GRADE_POSTED,
            [Recipient.from_user(student), Recipient.from_user(other_student)],
            lambda r: grade_data,
        )

        assert result.data.sent == 4
        assert len(recording_sender.sent) == 2

    def test_concurrent_sends_capped_at_pool_width(self, db, grade_data):
        students = StudentFactory.create_batch(12, section="CSE-B")
        sender = SlowCountingSender()
        dispatcher = NotificationDispatcher(transport=sender, max_workers=3)

        result = dispatcher.notify_batch(
            EventCode.GRADE_POSTED,
            [Recipient.from_user(s) for s in students],
            lambda r: grade_data,
        )

        assert result.data.sent == 24
        assert sender.calls == 12
        assert 1 < sender.peak <= 3


class SlowCountingSender:
    """EmailSender that tracks how many sends overlap."""

    def __init__(self, delay=0.05):
        self.delay = delay
        self.lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.calls = 0

    def send(self, to, subject, body_text=None, body_html=None, **kwargs):
        with self.lock:
            self.active += 1
            self.calls += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
        finally:
            with self.lock:
                self.active -= 1
        return 1


class TestFailureIsolation:
    def test_one_malformed_address(self, dispatcher, section_students, mailoutbox):
        """R recipients with one bad address: R-1 sent and 1 failed."""
        recipients = [Recipient.from_user(s) for s in section_students]
        recipients[1] = replace(recipients[1], email="not-an-address")

        result = dispatcher.notify_batch(
            EventCode.ACCOUNT_CREATED,
            recipients,
            lambda r: {"name": r.name, "role": r.type, "email": r.email},
        )

        summary = result.data
        assert summary.sent == 2
        assert summary.failed == 1
        assert_counts_add_up(summary)
        assert summary.errors[0]["recipient_id"] == recipients[1].id
        assert summary.errors[0]["channel"] == "email"
        assert len(mailoutbox) == 2

        failed = NotificationLog.objects.get(status="failed")
        assert failed.recipient_id == recipients[1].id
        assert failed.recipient_email == "not-an-address"
        assert "Invalid recipient address" in failed.error_message

    def test_transport_failure_keeps_in_app(self, recording_dispatcher, recording_sender, student, grade_data):
        recording_sender.fail_for.add(student.email)

        result = recording_dispatcher.notify(
            EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data
        )

        assert result.data.failed == 1
        assert result.data.sent == 1
        assert InAppNotification.objects.filter(recipient=student).exists()
        assert NotificationLog.objects.get(channel="email").status == "failed"

    def test_payload_builder_failure_fails_that_recipient(
        self, recording_dispatcher, student, other_student, grade_data
    ):
        def data_fn(recipient):
            if recipient.id == student.id:
                raise ValueError("no grade for this student")
            return grade_data

        result = recording_dispatcher.notify_batch(
            EventCode.GRADE_POSTED,
            [Recipient.from_user(student), Recipient.from_user(other_student)],
            data_fn,
        )

        summary = result.data
        assert summary.failed == 2
        assert summary.sent == 2
        assert {e["recipient_id"] for e in summary.errors} == {student.id}
        assert all("Payload error" in e["error"] for e in summary.errors)
        assert NotificationLog.objects.filter(recipient=student, status="failed").count() == 2
        assert not InAppNotification.objects.filter(recipient=student).exists()

    def test_render_failure_on_one_channel(self, empty_registry, recording_sender, student):
        empty_registry.register(EventCode.GRADE_POSTED, "email", lambda d: d["missing"])
        empty_registry.register(
            EventCode.GRADE_POSTED, "inapp", lambda d: {"title": "Grade Posted", "message": "ok"}
        )
        dispatcher = NotificationDispatcher(transport=recording_sender, registry=empty_registry)

        result = dispatcher.notify(EventCode.GRADE_POSTED, Recipient.from_user(student), {})

        assert result.data.failed == 1
        assert result.data.sent == 1
        assert recording_sender.sent == []
        assert "Missing template data key" in result.data.errors[0]["error"]

    def test_inbox_write_failure_is_recorded(self, recording_dispatcher, student, grade_data, mocker):
        mocker.patch(
            "notifications.dispatch.InAppChannel.create", side_effect=RuntimeError("disk full")
        )

        result = recording_dispatcher.notify(
            EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data
        )

        assert result.data.sent == 1
        assert result.data.failed == 1
        log = NotificationLog.objects.get(channel="inapp")
        assert log.status == "failed"
        assert log.error_message == "disk full"


class TestTestNotifications:
    """metadata["test"] emails are suppressed only in production."""

    def test_suppressed_in_production(self, recording_sender, student, grade_data):
        dispatcher = NotificationDispatcher(transport=recording_sender, environment="production")

        result = dispatcher.notify(
            EventCode.GRADE_POSTED,
            Recipient.from_user(student),
            grade_data,
            metadata={"test": True},
        )

        assert result.data.skipped == 1
        assert result.data.sent == 1
        assert recording_sender.sent == []

    def test_sent_outside_production(self, recording_sender, student, grade_data):
        dispatcher = NotificationDispatcher(transport=recording_sender, environment="development")

        dispatcher.notify(
            EventCode.GRADE_POSTED,
            Recipient.from_user(student),
            grade_data,
            metadata={"test": True},
        )

        assert len(recording_sender.sent) == 1

    def test_regular_mail_in_production(self, recording_sender, student, grade_data):
        dispatcher = NotificationDispatcher(transport=recording_sender, environment="production")

        dispatcher.notify(EventCode.GRADE_POSTED, Recipient.from_user(student), grade_data)

        assert len(recording_sender.sent) == 1


class TestDispatcherConfiguration:
    def test_worker_count_at_least_one(self, recording_sender):
        assert NotificationDispatcher(transport=recording_sender, max_workers=0).max_workers >= 1

    def test_from_settings(self, recording_sender, settings):
        settings.NOTIFICATIONS = {
            **settings.NOTIFICATIONS,
            "MAX_WORKERS": 3,
            "ENVIRONMENT": "production",
        }

        dispatcher = NotificationDispatcher.from_settings(recording_sender)

        assert dispatcher.max_workers == 3
        assert dispatcher.environment == "production"

    @pytest.fixture
    def restore_dispatcher(self):
        original = get_dispatcher()
        yield
        configure_dispatcher(original)

    def test_configure_dispatcher(self, restore_dispatcher, recording_dispatcher):
        configure_dispatcher(recording_dispatcher)

        assert get_dispatcher() is recording_dispatcher

    def test_get_dispatcher_builds_lazily(self, restore_dispatcher):
        configure_dispatcher(None)

        assert isinstance(get_dispatcher(), NotificationDispatcher)

    def test_recipient_serializes_for_queue(self, student):
        recipient = Recipient.from_user(student)

        assert Recipient.from_dict(recipient.to_dict()) == recipient
        assert recipient.section == "CSE-A"
