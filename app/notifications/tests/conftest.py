"""
Test configuration and fixtures for notification tests.

This module provides:
- Student, teacher and admin fixtures (section CSE-A)
- Dispatcher fixtures wired to the locmem mail backend or a recording transport
- An empty TemplateRegistry for renderer-level tests
- API client helpers for authenticated requests

Usage:
    def test_example(student, dispatcher, mailoutbox):
        result = dispatcher.notify("GRADE_POSTED", Recipient.from_user(student), data)
        assert result.data.sent == 2
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import AdminFactory, StudentFactory, TeacherFactory
from core.exceptions import ExternalServiceError


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def student(db):
    """Create a student enrolled in CSE-A."""
    return StudentFactory(name="Ada Lovelace", section="CSE-A")


@pytest.fixture
def other_student(db):
    """Create another student in CSE-A for scoping tests."""
    return StudentFactory(section="CSE-A")


@pytest.fixture
def section_students(db):
    """Three students of CSE-A."""
    return StudentFactory.create_batch(3, section="CSE-A")


@pytest.fixture
def teacher(db):
    return TeacherFactory(name="Grace Hopper")


@pytest.fixture
def admin_user(db):
    return AdminFactory()


# =============================================================================
# Dispatch Fixtures
# =============================================================================


class RecordingSender:
    """
    EmailSender that records messages instead of sending them.

    Addresses listed in fail_for raise ExternalServiceError.
    """

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, to, subject, body_text=None, body_html=None, **kwargs):
        if to in self.fail_for:
            raise ExternalServiceError("SMTP 550 mailbox unavailable", error_code="MAIL_TRANSPORT_ERROR")
        self.sent.append({"to": to, "subject": subject, "body_html": body_html})
        return 1


@pytest.fixture
def recording_sender():
    return RecordingSender()


@pytest.fixture
def dispatcher(db):
    """Dispatcher over the locmem mail backend (see mailoutbox)."""
    from notifications.dispatch import NotificationDispatcher
    from toolkit.services.email import EmailService

    return NotificationDispatcher(transport=EmailService.from_settings(), max_workers=4)


@pytest.fixture
def recording_dispatcher(db, recording_sender):
    """Dispatcher whose emails land in recording_sender.sent."""
    from notifications.dispatch import NotificationDispatcher

    return NotificationDispatcher(transport=recording_sender, max_workers=4)


@pytest.fixture
def empty_registry():
    """A TemplateRegistry with nothing registered."""
    from notifications.registry import TemplateRegistry

    return TemplateRegistry()


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client for public endpoints."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, teacher):
            client = authenticated_client_factory(teacher)
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


@pytest.fixture
def authenticated_client(authenticated_client_factory, student):
    """API client authenticated as the student fixture."""
    return authenticated_client_factory(student)


@pytest.fixture
def teacher_client(authenticated_client_factory, teacher):
    return authenticated_client_factory(teacher)


# =============================================================================
# Payload Fixtures
# =============================================================================


@pytest.fixture
def grade_data():
    """Valid GRADE_POSTED payload."""
    return {
        "student_name": "Ada Lovelace",
        "test_title": "Algebra Quiz",
        "score": 8,
        "total_questions": 10,
        "percentage": 80.0,
        "status": "completed",
    }


@pytest.fixture
def module_data():
    """MODULE_PUBLISHED payload builder input (student_name added per recipient)."""
    return {
        "section": "CSE-A",
        "topic_title": "Photosynthesis",
        "subject": "Biology",
        "teacher_name": "Grace Hopper",
        "step_count": 5,
    }
