"""
Tests for the template registry and the catalog renderers.

Test Classes:
    TestTemplateRegistry: Registration, lookup and render error mapping
    TestRenderers: Content produced for each registered event
"""

import pytest

from notifications.catalog import EventCode
from notifications.exceptions import ChannelError
from notifications.models import Channel
from notifications.registry import EmailContent, InAppContent, default_registry
from notifications.renderers import format_date, format_datetime


class TestTemplateRegistry:
    """Tests for TemplateRegistry on a fresh instance."""

    def test_register_as_decorator(self, empty_registry):
        @empty_registry.register("GRADE_POSTED", Channel.INAPP)
        def render(data):
            return {"title": "Hi", "message": data["name"]}

        assert empty_registry.get("GRADE_POSTED", Channel.INAPP) is render

    def test_register_direct_call(self, empty_registry):
        def render(data):
            return {"subject": "S", "body_html": "<p>B</p>"}

        empty_registry.register("ACCOUNT_CREATED", Channel.EMAIL, render)

        assert empty_registry.is_registered("ACCOUNT_CREATED")

    def test_unknown_channel_rejected(self, empty_registry):
        with pytest.raises(ValueError):
            empty_registry.register("GRADE_POSTED", "sms", lambda data: {})

    def test_channels_for_lists_email_first(self, empty_registry):
        empty_registry.register("GRADE_POSTED", Channel.INAPP, lambda d: {})
        empty_registry.register("GRADE_POSTED", Channel.EMAIL, lambda d: {})

        assert empty_registry.channels_for("GRADE_POSTED") == [Channel.EMAIL, Channel.INAPP]

    def test_channels_for_unregistered_event_is_empty(self, empty_registry):
        assert empty_registry.channels_for("GRADE_POSTED") == []
        assert empty_registry.is_registered("GRADE_POSTED") is False

    def test_register_replaces_previous_renderer(self, empty_registry):
        empty_registry.register("GRADE_POSTED", Channel.INAPP, lambda d: {"title": "a", "message": "a"})
        empty_registry.register("GRADE_POSTED", Channel.INAPP, lambda d: {"title": "b", "message": "b"})

        content = empty_registry.render("GRADE_POSTED", Channel.INAPP, {})

        assert content.title == "b"

    def test_unregister(self, empty_registry):
        empty_registry.register("GRADE_POSTED", Channel.INAPP, lambda d: {})

        empty_registry.unregister("GRADE_POSTED", Channel.INAPP)

        assert empty_registry.get("GRADE_POSTED", Channel.INAPP) is None

    def test_render_missing_renderer(self, empty_registry):
        with pytest.raises(ChannelError) as exc_info:
            empty_registry.render("GRADE_POSTED", Channel.EMAIL, {})

        assert exc_info.value.error_code == "RENDERER_NOT_FOUND"

    def test_render_missing_data_key(self, empty_registry):
        empty_registry.register(
            "GRADE_POSTED", Channel.INAPP, lambda d: {"title": d["title"], "message": ""}
        )

        with pytest.raises(ChannelError) as exc_info:
            empty_registry.render("GRADE_POSTED", Channel.INAPP, {})

        assert exc_info.value.error_code == "TEMPLATE_DATA_MISSING"

    def test_render_renderer_crash(self, empty_registry):
        empty_registry.register("GRADE_POSTED", Channel.INAPP, lambda d: 1 / 0)

        with pytest.raises(ChannelError) as exc_info:
            empty_registry.render("GRADE_POSTED", Channel.INAPP, {})

        assert exc_info.value.error_code == "TEMPLATE_RENDER_FAILED"

    def test_render_malformed_output(self, empty_registry):
        empty_registry.register("GRADE_POSTED", Channel.EMAIL, lambda d: {"subject": "only"})

        with pytest.raises(ChannelError) as exc_info:
            empty_registry.render("GRADE_POSTED", Channel.EMAIL, {})

        assert exc_info.value.error_code == "TEMPLATE_OUTPUT_INVALID"

    def test_render_in_app_link_optional(self, empty_registry):
        empty_registry.register("GRADE_POSTED", Channel.INAPP, lambda d: {"title": "t", "message": "m"})

        content = empty_registry.render("GRADE_POSTED", Channel.INAPP, {})

        assert content == InAppContent(title="t", message="m", link="")


class TestRenderers:
    """Tests for the renderers registered on the default registry."""

    @pytest.mark.parametrize(
        "event_code,channels",
        [
            (EventCode.ACCOUNT_CREATED, [Channel.EMAIL]),
            (EventCode.MODULE_PUBLISHED, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.MODULE_COMPLETED, [Channel.INAPP]),
            (EventCode.MODULE_COMPLETED_BY_STUDENT, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.TEST_ASSIGNED, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.TEST_DEADLINE_REMINDER, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.TEST_DEADLINE_24H, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.GRADE_POSTED, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.TEST_SUBMITTED, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.LOW_CLASS_PERFORMANCE, [Channel.EMAIL, Channel.INAPP]),
            (EventCode.PASSWORD_RESET, []),
            (EventCode.WEEKLY_PROGRESS_SUMMARY, []),
        ],
    )
    def test_channel_coverage(self, event_code, channels):
        assert default_registry.channels_for(event_code) == channels

    def test_account_created_email(self):
        content = default_registry.render(
            EventCode.ACCOUNT_CREATED,
            Channel.EMAIL,
            {
                "name": "Ada Lovelace",
                "role": "student",
                "email": "ada@school.test",
                "reg_no": "REG0001",
                "section": "CSE-A",
            },
        )

        assert isinstance(content, EmailContent)
        assert content.subject.startswith("Welcome to ")
        assert "Ada Lovelace" in content.body_html
        assert "REG0001" in content.body_html
        assert "/settings/notifications" in content.body_html

    def test_module_published(self, module_data):
        data = {"student_name": "Ada", **module_data}

        email = default_registry.render(EventCode.MODULE_PUBLISHED, Channel.EMAIL, data)
        inapp = default_registry.render(EventCode.MODULE_PUBLISHED, Channel.INAPP, data)

        assert email.subject == "New Module Available: Photosynthesis"
        assert "Biology" in email.body_html
        assert inapp.title == "New Module Available"
        assert "Grace Hopper" in inapp.message
        assert "CSE-A" in inapp.message
        assert inapp.link == "/courses"

    def test_module_published_without_subject(self, module_data):
        data = {"student_name": "Ada", **module_data, "subject": None}

        email = default_registry.render(EventCode.MODULE_PUBLISHED, Channel.EMAIL, data)

        assert "Not specified" in email.body_html

    def test_test_assigned_in_app(self):
        content = default_registry.render(
            EventCode.TEST_ASSIGNED,
            Channel.INAPP,
            {
                "test_title": "Algebra Quiz",
                "teacher_name": "Grace Hopper",
                "deadline": "2026-03-01T17:00:00+00:00",
            },
        )

        assert content.message == (
            '📝 Test "Algebra Quiz" assigned by Grace Hopper. Due: Mar 01, 2026'
        )
        assert content.link == "/test"

    def test_deadline_reminder_subject_has_hours(self):
        content = default_registry.render(
            EventCode.TEST_DEADLINE_REMINDER,
            Channel.EMAIL,
            {
                "student_name": "Ada",
                "test_title": "Algebra Quiz",
                "section": "CSE-A",
                "teacher_name": "Grace Hopper",
                "deadline": "2026-03-01T17:00:00+00:00",
                "hours_remaining": 3,
                "total_questions": 10,
            },
        )

        assert "Due in 3 Hours" in content.subject

    @pytest.mark.parametrize(
        "submitted,expected",
        [(True, "already submitted"), (False, "not submitted it yet")],
    )
    def test_deadline_24h_reflects_submission(self, submitted, expected):
        content = default_registry.render(
            EventCode.TEST_DEADLINE_24H,
            Channel.INAPP,
            {
                "test_title": "Algebra Quiz",
                "deadline": "2026-03-01T17:00:00+00:00",
                "submitted": submitted,
            },
        )

        assert content.title == "Test Due in 24 Hours"
        assert expected in content.message

    def test_grade_posted(self, grade_data):
        email = default_registry.render(EventCode.GRADE_POSTED, Channel.EMAIL, grade_data)
        inapp = default_registry.render(EventCode.GRADE_POSTED, Channel.INAPP, grade_data)

        assert email.subject == "Grade Posted: Algebra Quiz"
        assert "80.0" in email.body_html
        assert inapp.message == 'You scored 8/10 (80.0%) on "Algebra Quiz".'
        assert inapp.link == "/progress"

    def test_grade_posted_missing_key_is_channel_error(self, grade_data):
        del grade_data["score"]

        with pytest.raises(ChannelError) as exc_info:
            default_registry.render(EventCode.GRADE_POSTED, Channel.INAPP, grade_data)

        assert exc_info.value.error_code == "TEMPLATE_DATA_MISSING"

    def test_test_submitted_links_to_submissions(self):
        content = default_registry.render(
            EventCode.TEST_SUBMITTED,
            Channel.INAPP,
            {
                "student_name": "Ada",
                "test_title": "Algebra Quiz",
                "score": 8,
                "total_questions": 10,
                "percentage": 80.0,
                "test_id": 42,
            },
        )

        assert content.link == "/teacher/submissions/42"

    def test_low_class_performance(self):
        data = {
            "teacher_name": "Grace Hopper",
            "test_title": "Algebra Quiz",
            "test_id": 42,
            "section": "CSE-A",
            "average_percentage": 41.5,
            "submission_count": 12,
            "total_students": 30,
        }

        email = default_registry.render(EventCode.LOW_CLASS_PERFORMANCE, Channel.EMAIL, data)
        inapp = default_registry.render(EventCode.LOW_CLASS_PERFORMANCE, Channel.INAPP, data)

        assert email.subject == "Class Performance Alert: Algebra Quiz"
        assert "41.5" in email.body_html
        assert "(12/30 submitted)" in inapp.message


class TestFormatting:
    def test_format_datetime_from_iso_string(self):
        assert format_datetime("2026-03-01T17:05:00+00:00") == "Mar 01, 2026 05:05 PM"

    def test_format_date_from_iso_string(self):
        assert format_date("2026-03-01T17:05:00+00:00") == "Mar 01, 2026"

    def test_unparseable_string_returned_as_is(self):
        assert format_datetime("next Friday") == "next Friday"
