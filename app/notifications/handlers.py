"""
Business event handlers.

The surrounding classroom system calls these functions after it has saved
its own records (modules, tests, submissions). Each handler looks up the
recipients, builds per-recipient payloads and publishes through the
configured NotificationPublisher, so delivery happens only after the
caller's transaction commits.

Related files:
    - publishers.py: On-commit / Celery hand-off
    - roster.py: Recipient lookups
    - renderers.py: Payload keys each event expects
    - apps.py: Signal receiver registration

Event Sources:
    - authentication: User created (post_save receiver below)
    - modules: published, completed by a student
    - tests: assigned, submitted and graded, deadline reminders,
      low class performance

Payload values are JSON-compatible (datetimes as ISO strings) so the same
payload works for the in-process and Celery publishers.

Usage:
    from notifications import handlers

    handlers.module_published(
        section="CSE-A",
        topic_title="Photosynthesis",
        teacher_name="Ms. Rao",
        step_count=5,
        module_id=module.id,
    )
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from django.utils import timezone

from notifications.catalog import EventCode
from notifications.dispatch import Recipient
from notifications.publishers import get_publisher
from notifications.roster import UserRosterDirectory

if TYPE_CHECKING:
    from datetime import datetime

    from authentication.models import User
    from toolkit.protocols import NotificationPublisher, RosterDirectory

logger = logging.getLogger(__name__)

# Class average (percent) below which the teacher is alerted
LOW_PERFORMANCE_THRESHOLD = 50


def _iso(value: datetime | str | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def _collaborators(
    roster: RosterDirectory | None,
    publisher: NotificationPublisher | None,
) -> tuple[RosterDirectory, NotificationPublisher]:
    return roster or UserRosterDirectory(), publisher or get_publisher()


# =============================================================================
# Accounts
# =============================================================================


def account_created(sender, instance: User, created: bool, raw: bool = False, **kwargs):
    """
    post_save receiver for the user model: welcome email for new accounts.

    Connected in NotificationsConfig.ready().
    """
    if not created or raw or not instance.email:
        return

    get_publisher().publish(
        EventCode.ACCOUNT_CREATED,
        [Recipient.from_user(instance)],
        lambda r: {
            "name": r.name,
            "role": r.type,
            "email": r.email,
            "reg_no": r.reg_no or None,
            "section": r.section or None,
        },
        metadata={"user_id": instance.id},
    )


# =============================================================================
# Modules
# =============================================================================


def module_published(
    *,
    section: str,
    topic_title: str,
    teacher_name: str,
    step_count: int,
    subject: str | None = None,
    module_id: int | None = None,
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """
    Notify every student of the section about a new module.

    Email opt-outs still get the inbox entry; the dispatcher gates email.

    Returns:
        Number of recipients published to
    """
    roster, publisher = _collaborators(roster, publisher)
    students = roster.get_students_in_section(section)
    if not students:
        logger.info(f"No students in section {section} for module {module_id}")
        return 0

    publisher.publish(
        EventCode.MODULE_PUBLISHED,
        students,
        lambda r: {
            "student_name": r.name,
            "section": section,
            "topic_title": topic_title,
            "subject": subject,
            "teacher_name": teacher_name,
            "step_count": step_count,
        },
        metadata={"module_id": module_id, "section": section},
    )
    return len(students)


def module_completed(
    *,
    student: User,
    teacher_id: int,
    module_title: str,
    section: str,
    total_steps: int,
    module_id: int | None = None,
    completed_at: datetime | None = None,
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """
    Congratulate the student and tell the module's teacher.

    Returns:
        Number of recipients published to (1 or 2)
    """
    roster, publisher = _collaborators(roster, publisher)
    completed_at = _iso(completed_at or timezone.now())
    metadata = {"module_id": module_id, "student_id": student.id}

    publisher.publish(
        EventCode.MODULE_COMPLETED,
        [Recipient.from_user(student)],
        lambda r: {"module_title": module_title, "total_steps": total_steps},
        metadata=metadata,
    )

    teacher = roster.get_teacher_by_id(teacher_id)
    if teacher is None:
        logger.warning(f"Teacher {teacher_id} not found for module {module_id}")
        return 1

    publisher.publish(
        EventCode.MODULE_COMPLETED_BY_STUDENT,
        [teacher],
        lambda r: {
            "teacher_name": r.name,
            "student_name": student.get_full_name(),
            "student_reg_no": student.reg_no,
            "module_title": module_title,
            "section": section,
            "completion_time": completed_at,
            "total_steps": total_steps,
        },
        metadata=metadata,
    )
    return 2


# =============================================================================
# Tests
# =============================================================================


def test_assigned(
    *,
    section: str,
    test_title: str,
    teacher_name: str,
    total_questions: int,
    start_date: datetime | str,
    deadline: datetime | str,
    description: str | None = None,
    test_id: int | None = None,
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Notify every student of the section about a new test."""
    roster, publisher = _collaborators(roster, publisher)
    students = roster.get_students_in_section(section)
    if not students:
        return 0

    start_date, deadline = _iso(start_date), _iso(deadline)
    publisher.publish(
        EventCode.TEST_ASSIGNED,
        students,
        lambda r: {
            "student_name": r.name,
            "test_title": test_title,
            "teacher_name": teacher_name,
            "section": section,
            "total_questions": total_questions,
            "start_date": start_date,
            "deadline": deadline,
            "description": description,
        },
        metadata={"test_id": test_id, "section": section},
    )
    return len(students)


def grade_posted(
    *,
    student: User,
    test_title: str,
    score: int,
    total_questions: int,
    percentage: float,
    status: str,
    test_id: int | None = None,
    submission_id: int | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Send the student their result."""
    publisher = publisher or get_publisher()
    publisher.publish(
        EventCode.GRADE_POSTED,
        [Recipient.from_user(student)],
        lambda r: {
            "student_name": r.name,
            "test_title": test_title,
            "score": score,
            "total_questions": total_questions,
            "percentage": percentage,
            "status": status,
        },
        metadata={"test_id": test_id, "submission_id": submission_id},
    )
    return 1


def test_submitted(
    *,
    student: User,
    teacher_id: int,
    test_title: str,
    test_id: int,
    score: int,
    total_questions: int,
    percentage: float,
    status: str,
    submission_id: int | None = None,
    submitted_at: datetime | None = None,
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """
    Tell the teacher about a submission and post the grade to the student.

    Returns:
        Number of recipients published to (1 or 2)
    """
    roster, publisher = _collaborators(roster, publisher)
    submitted_at = _iso(submitted_at or timezone.now())
    sent = 0

    teacher = roster.get_teacher_by_id(teacher_id)
    if teacher is None:
        logger.warning(f"Teacher {teacher_id} not found for test {test_id}")
    else:
        publisher.publish(
            EventCode.TEST_SUBMITTED,
            [teacher],
            lambda r: {
                "teacher_name": r.name,
                "student_name": student.get_full_name(),
                "student_reg_no": student.reg_no,
                "test_title": test_title,
                "score": score,
                "total_questions": total_questions,
                "percentage": percentage,
                "status": status,
                "submitted_at": submitted_at,
                "test_id": test_id,
            },
            metadata={
                "test_id": test_id,
                "student_id": student.id,
                "submission_id": submission_id,
            },
        )
        sent += 1

    sent += grade_posted(
        student=student,
        test_title=test_title,
        score=score,
        total_questions=total_questions,
        percentage=percentage,
        status=status,
        test_id=test_id,
        submission_id=submission_id,
        publisher=publisher,
    )
    return sent


def deadline_reminder(
    *,
    section: str,
    test_title: str,
    teacher_name: str,
    deadline: datetime,
    total_questions: int,
    test_id: int | None = None,
    submitted_student_ids: set[int] | frozenset[int] = frozenset(),
    now: datetime | None = None,
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """
    Urgent reminder to students of the section who have not submitted.

    Returns:
        Number of recipients published to
    """
    roster, publisher = _collaborators(roster, publisher)
    now = now or timezone.now()
    if deadline <= now:
        logger.info(f"Deadline for test {test_id} already passed; no reminder sent")
        return 0

    students = [
        s for s in roster.get_students_in_section(section) if s.id not in submitted_student_ids
    ]
    if not students:
        return 0

    hours_remaining = math.ceil((deadline - now).total_seconds() / 3600)
    deadline_iso = _iso(deadline)
    publisher.publish(
        EventCode.TEST_DEADLINE_REMINDER,
        students,
        lambda r: {
            "student_name": r.name,
            "test_title": test_title,
            "teacher_name": teacher_name,
            "section": section,
            "deadline": deadline_iso,
            "hours_remaining": hours_remaining,
            "total_questions": total_questions,
        },
        metadata={"test_id": test_id, "priority": "high"},
    )
    return len(students)


def deadline_24h(
    *,
    section: str,
    test_title: str,
    deadline: datetime | str,
    test_id: int | None = None,
    submitted_student_ids: set[int] | frozenset[int] = frozenset(),
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> int:
    """Day-before notice to every student of the section, with their submission state."""
    roster, publisher = _collaborators(roster, publisher)
    students = roster.get_students_in_section(section)
    if not students:
        return 0

    deadline_iso = _iso(deadline)
    publisher.publish(
        EventCode.TEST_DEADLINE_24H,
        students,
        lambda r: {
            "student_name": r.name,
            "test_title": test_title,
            "deadline": deadline_iso,
            "submitted": r.id in submitted_student_ids,
        },
        metadata={"test_id": test_id},
    )
    return len(students)


def low_class_performance(
    *,
    teacher_id: int,
    test_title: str,
    test_id: int,
    section: str,
    average_percentage: float,
    submission_count: int,
    total_students: int,
    threshold: float = LOW_PERFORMANCE_THRESHOLD,
    roster: RosterDirectory | None = None,
    publisher: NotificationPublisher | None = None,
) -> bool:
    """
    Alert the teacher when the class average falls below threshold.

    Returns:
        True if an alert was published
    """
    if average_percentage >= threshold:
        return False

    roster, publisher = _collaborators(roster, publisher)
    teacher = roster.get_teacher_by_id(teacher_id)
    if teacher is None:
        logger.warning(f"Teacher {teacher_id} not found for test {test_id}")
        return False

    payload: dict[str, Any] = {
        "test_title": test_title,
        "section": section,
        "average_percentage": round(average_percentage, 1),
        "submission_count": submission_count,
        "total_students": total_students,
        "test_id": test_id,
    }
    publisher.publish(
        EventCode.LOW_CLASS_PERFORMANCE,
        [teacher],
        lambda r: {"teacher_name": r.name, **payload},
        metadata={"test_id": test_id, "section": section},
    )
    return True
