"""
Renderers for the catalog events.

Importing this module registers every renderer on the default registry;
NotificationsConfig.ready() does that at startup.

Channel coverage:
    email:  ACCOUNT_CREATED, MODULE_PUBLISHED, TEST_ASSIGNED,
            TEST_DEADLINE_REMINDER, TEST_DEADLINE_24H, GRADE_POSTED,
            MODULE_COMPLETED_BY_STUDENT, TEST_SUBMITTED, LOW_CLASS_PERFORMANCE
    in-app: MODULE_PUBLISHED, MODULE_COMPLETED, MODULE_COMPLETED_BY_STUDENT,
            TEST_ASSIGNED, TEST_DEADLINE_REMINDER, TEST_DEADLINE_24H,
            GRADE_POSTED, TEST_SUBMITTED, LOW_CLASS_PERFORMANCE

Required payload keys are read with item access so a missing key raises
KeyError, which the registry reports as a failed channel attempt. Optional
keys use .get().

In-app links are front-end routes; email links are absolute URLs built
from settings.FRONTEND_URL.
"""

from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.template.loader import render_to_string
from django.utils.dateparse import parse_datetime

from notifications.catalog import EventCode
from notifications.models import Channel
from notifications.registry import default_registry as registry

PASSING_PERCENTAGE = 50


def format_datetime(value) -> str:
    """Human-readable timestamp from a datetime or ISO-8601 string."""
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            return value
        value = parsed
    if isinstance(value, datetime):
        return value.strftime("%b %d, %Y %I:%M %p")
    return str(value)


def format_date(value) -> str:
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            return value
        value = parsed
    if isinstance(value, datetime):
        return value.strftime("%b %d, %Y")
    return str(value)


def render_email(template: str, subject: str, context: dict) -> dict:
    """Render notifications/email/<template>.html with the shared context."""
    context = {
        "frontend_url": settings.FRONTEND_URL,
        "platform_name": settings.PLATFORM_NAME,
        "subject": subject,
        **context,
    }
    return {
        "subject": subject,
        "body_html": render_to_string(f"notifications/email/{template}.html", context),
    }


# =============================================================================
# System
# =============================================================================


@registry.register(EventCode.ACCOUNT_CREATED, Channel.EMAIL)
def account_created_email(data):
    return render_email(
        "account_created",
        f"Welcome to {settings.PLATFORM_NAME}",
        {
            "name": data["name"],
            "role": data["role"],
            "email": data["email"],
            "reg_no": data.get("reg_no"),
            "section": data.get("section"),
            "activity": "learning" if data["role"] == "student" else "teaching",
        },
    )


# =============================================================================
# Modules
# =============================================================================


@registry.register(EventCode.MODULE_PUBLISHED, Channel.EMAIL)
def module_published_email(data):
    return render_email(
        "module_published",
        f"New Module Available: {data['topic_title']}",
        {
            "student_name": data["student_name"],
            "section": data["section"],
            "topic_title": data["topic_title"],
            "subject_name": data.get("subject") or "Not specified",
            "teacher_name": data["teacher_name"],
            "step_count": data["step_count"],
        },
    )


@registry.register(EventCode.MODULE_PUBLISHED, Channel.INAPP)
def module_published_inapp(data):
    return {
        "title": "New Module Available",
        "message": (
            f"📚 {data['teacher_name']} published \"{data['topic_title']}\" "
            f"for {data['section']}. Start learning now!"
        ),
        "link": "/courses",
    }


@registry.register(EventCode.MODULE_COMPLETED, Channel.INAPP)
def module_completed_inapp(data):
    return {
        "title": "🎉 Module Completed!",
        "message": (
            f"Congratulations! You completed \"{data['module_title']}\" "
            f"with all {data['total_steps']} steps."
        ),
        "link": "/progress",
    }


@registry.register(EventCode.MODULE_COMPLETED_BY_STUDENT, Channel.EMAIL)
def module_completed_by_student_email(data):
    return render_email(
        "module_completed_by_student",
        f"Student Completed Module: {data['student_name']} - {data['module_title']}",
        {
            "teacher_name": data["teacher_name"],
            "student_name": data["student_name"],
            "student_reg_no": data.get("student_reg_no") or "N/A",
            "module_title": data["module_title"],
            "section": data["section"],
            "completion_time": format_datetime(data["completion_time"]),
            "total_steps": data["total_steps"],
        },
    )


@registry.register(EventCode.MODULE_COMPLETED_BY_STUDENT, Channel.INAPP)
def module_completed_by_student_inapp(data):
    return {
        "title": "Student Completed Module",
        "message": (
            f"{data['student_name']} has completed the module "
            f"\"{data['module_title']}\" with all {data['total_steps']} steps."
        ),
        "link": "/teacher/analytics",
    }


# =============================================================================
# Tests
# =============================================================================


@registry.register(EventCode.TEST_ASSIGNED, Channel.EMAIL)
def test_assigned_email(data):
    return render_email(
        "test_assigned",
        f"New Test Assigned: {data['test_title']}",
        {
            "student_name": data["student_name"],
            "test_title": data["test_title"],
            "section": data["section"],
            "total_questions": data["total_questions"],
            "start_date": format_datetime(data["start_date"]),
            "deadline": format_datetime(data["deadline"]),
            "description": data.get("description"),
        },
    )


@registry.register(EventCode.TEST_ASSIGNED, Channel.INAPP)
def test_assigned_inapp(data):
    return {
        "title": "New Test Assigned",
        "message": (
            f"📝 Test \"{data['test_title']}\" assigned by {data['teacher_name']}. "
            f"Due: {format_date(data['deadline'])}"
        ),
        "link": "/test",
    }


@registry.register(EventCode.TEST_DEADLINE_REMINDER, Channel.EMAIL)
def test_deadline_reminder_email(data):
    return render_email(
        "test_deadline_reminder",
        f"⏰ Urgent: Test \"{data['test_title']}\" Due in {data['hours_remaining']} Hours!",
        {
            "student_name": data["student_name"],
            "test_title": data["test_title"],
            "section": data["section"],
            "teacher_name": data["teacher_name"],
            "deadline": format_datetime(data["deadline"]),
            "hours_remaining": data["hours_remaining"],
            "total_questions": data["total_questions"],
        },
    )


@registry.register(EventCode.TEST_DEADLINE_REMINDER, Channel.INAPP)
def test_deadline_reminder_inapp(data):
    return {
        "title": "⏰ Test Deadline Reminder",
        "message": (
            f"\"{data['test_title']}\" is due in {data['hours_remaining']} hours "
            f"({format_datetime(data['deadline'])}). Submit before the deadline!"
        ),
        "link": "/test",
    }


@registry.register(EventCode.TEST_DEADLINE_24H, Channel.EMAIL)
def test_deadline_24h_email(data):
    return render_email(
        "test_deadline_24h",
        f"Reminder: Test \"{data['test_title']}\" Due in 24 Hours",
        {
            "student_name": data["student_name"],
            "test_title": data["test_title"],
            "deadline": format_datetime(data["deadline"]),
            "submitted": bool(data.get("submitted")),
        },
    )


@registry.register(EventCode.TEST_DEADLINE_24H, Channel.INAPP)
def test_deadline_24h_inapp(data):
    if data.get("submitted"):
        status = "You have already submitted it."
    else:
        status = "You have not submitted it yet."
    return {
        "title": "Test Due in 24 Hours",
        "message": f"\"{data['test_title']}\" is due {format_datetime(data['deadline'])}. {status}",
        "link": "/test",
    }


# =============================================================================
# Grades and submissions
# =============================================================================


@registry.register(EventCode.GRADE_POSTED, Channel.EMAIL)
def grade_posted_email(data):
    percentage = data["percentage"]
    return render_email(
        "grade_posted",
        f"Grade Posted: {data['test_title']}",
        {
            "student_name": data["student_name"],
            "test_title": data["test_title"],
            "score": data["score"],
            "total_questions": data["total_questions"],
            "percentage": percentage,
            "status": data["status"],
            "passed": float(percentage) >= PASSING_PERCENTAGE,
        },
    )


@registry.register(EventCode.GRADE_POSTED, Channel.INAPP)
def grade_posted_inapp(data):
    return {
        "title": "Grade Posted",
        "message": (
            f"You scored {data['score']}/{data['total_questions']} "
            f"({data['percentage']}%) on \"{data['test_title']}\"."
        ),
        "link": "/progress",
    }


@registry.register(EventCode.TEST_SUBMITTED, Channel.EMAIL)
def test_submitted_email(data):
    return render_email(
        "test_submitted",
        f"Test Submission: {data['student_name']} - {data['test_title']}",
        {
            "teacher_name": data["teacher_name"],
            "student_name": data["student_name"],
            "student_reg_no": data.get("student_reg_no") or "N/A",
            "test_title": data["test_title"],
            "test_id": data["test_id"],
            "score": data["score"],
            "total_questions": data["total_questions"],
            "percentage": data["percentage"],
            "status": data["status"],
            "submitted_at": format_datetime(data["submitted_at"]),
        },
    )


@registry.register(EventCode.TEST_SUBMITTED, Channel.INAPP)
def test_submitted_inapp(data):
    return {
        "title": "New Test Submission",
        "message": (
            f"{data['student_name']} submitted \"{data['test_title']}\" "
            f"scoring {data['score']}/{data['total_questions']} ({data['percentage']}%)."
        ),
        "link": f"/teacher/submissions/{data['test_id']}",
    }


@registry.register(EventCode.LOW_CLASS_PERFORMANCE, Channel.EMAIL)
def low_class_performance_email(data):
    return render_email(
        "low_class_performance",
        f"Class Performance Alert: {data['test_title']}",
        {
            "teacher_name": data["teacher_name"],
            "test_title": data["test_title"],
            "test_id": data["test_id"],
            "section": data["section"],
            "average_percentage": data["average_percentage"],
            "submission_count": data["submission_count"],
            "total_students": data["total_students"],
        },
    )


@registry.register(EventCode.LOW_CLASS_PERFORMANCE, Channel.INAPP)
def low_class_performance_inapp(data):
    return {
        "title": "Low Class Performance",
        "message": (
            f"Average score on \"{data['test_title']}\" for {data['section']} "
            f"is {data['average_percentage']}% "
            f"({data['submission_count']}/{data['total_students']} submitted)."
        ),
        "link": f"/teacher/submissions/{data['test_id']}",
    }
