"""
Event catalog lookups.

The catalog is the set of NotificationEvent rows seeded by migration 0002.
EventCode mirrors those codes for use in code; EventCatalog answers
questions about the stored rows.

Usage:
    from notifications.catalog import EventCatalog, EventCode

    event = EventCatalog.get(EventCode.MODULE_PUBLISHED)
    if event is None:
        ...  # unknown code
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from collections.abc import Iterable

    from notifications.models import NotificationEvent


class EventCode(models.TextChoices):
    """Codes of the seeded catalog events."""

    # System
    ACCOUNT_CREATED = "ACCOUNT_CREATED", "Account Created"
    PASSWORD_RESET = "PASSWORD_RESET", "Password Reset"
    ANNOUNCEMENT_POSTED = "ANNOUNCEMENT_POSTED", "Announcement Posted"
    # Modules
    MODULE_PUBLISHED = "MODULE_PUBLISHED", "Module Published"
    MODULE_UPDATED = "MODULE_UPDATED", "Module Updated"
    MODULE_COMPLETED = "MODULE_COMPLETED", "Module Completed"
    MODULE_COMPLETED_BY_STUDENT = "MODULE_COMPLETED_BY_STUDENT", "Student Completed Module"
    # Tests
    TEST_ASSIGNED = "TEST_ASSIGNED", "Test Assigned"
    TEST_UPDATED = "TEST_UPDATED", "Test Updated"
    TEST_DEADLINE_REMINDER = "TEST_DEADLINE_REMINDER", "Test Deadline Reminder"
    TEST_DEADLINE_24H = "TEST_DEADLINE_24H", "Test Due in 24 Hours"
    TEST_CLOSED = "TEST_CLOSED", "Test Closed"
    # Submissions
    TEST_SUBMITTED = "TEST_SUBMITTED", "Test Submitted"
    CODE_SUBMITTED = "CODE_SUBMITTED", "Code Submitted"
    LATE_SUBMISSION = "LATE_SUBMISSION", "Late Submission"
    # Grades
    GRADE_POSTED = "GRADE_POSTED", "Grade Posted"
    GRADE_UPDATED = "GRADE_UPDATED", "Grade Updated"
    # Performance
    LOW_CLASS_PERFORMANCE = "LOW_CLASS_PERFORMANCE", "Low Class Performance"
    STUDENT_INACTIVE = "STUDENT_INACTIVE", "Student Inactive"
    WEEKLY_PROGRESS_SUMMARY = "WEEKLY_PROGRESS_SUMMARY", "Weekly Progress Summary"


class EventCatalog:
    """
    Read-only access to the seeded event catalog.

    Every method hits the database; the catalog is small and lookups
    are by unique key.
    """

    @staticmethod
    def get(code: str) -> NotificationEvent | None:
        """Return the catalog event for code, or None if unknown."""
        from notifications.models import NotificationEvent

        return NotificationEvent.objects.filter(code=code).first()

    @staticmethod
    def exists(code: str) -> bool:
        from notifications.models import NotificationEvent

        return NotificationEvent.objects.filter(code=code).exists()

    @staticmethod
    def all() -> Iterable[NotificationEvent]:
        """All catalog events ordered by category then code."""
        from notifications.models import NotificationEvent

        return NotificationEvent.objects.order_by("category", "code")
