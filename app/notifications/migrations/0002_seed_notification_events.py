# Data migration: seed the notification event catalog

from django.db import migrations

# (code, name, recipient_role, category, default_enabled, description)
EVENTS = [
    ("ACCOUNT_CREATED", "Account Created", "both", "system", True,
     "Welcome email when your account is created"),
    ("PASSWORD_RESET", "Password Reset", "both", "system", True,
     "Password reset instructions"),
    ("ANNOUNCEMENT_POSTED", "Announcement Posted", "both", "system", True,
     "School-wide announcements"),
    ("MODULE_PUBLISHED", "Module Published", "student", "module", True,
     "A teacher published a new learning module for your section"),
    ("MODULE_UPDATED", "Module Updated", "student", "module", True,
     "A module you are enrolled in was changed"),
    ("MODULE_COMPLETED", "Module Completed", "student", "module", True,
     "You completed every step of a module"),
    ("MODULE_COMPLETED_BY_STUDENT", "Student Completed Module", "teacher", "module", True,
     "One of your students completed a module"),
    ("TEST_ASSIGNED", "Test Assigned", "student", "test", True,
     "A new test was assigned to your section"),
    ("TEST_UPDATED", "Test Updated", "student", "test", True,
     "An assigned test was changed"),
    ("TEST_DEADLINE_REMINDER", "Test Deadline Reminder", "student", "test", True,
     "Urgent reminder for an unsubmitted test"),
    ("TEST_DEADLINE_24H", "Test Due in 24 Hours", "student", "test", True,
     "A test is due within 24 hours"),
    ("TEST_CLOSED", "Test Closed", "student", "test", True,
     "A test is no longer accepting submissions"),
    ("TEST_SUBMITTED", "Test Submitted", "teacher", "submission", True,
     "A student submitted one of your tests"),
    ("CODE_SUBMITTED", "Code Submitted", "teacher", "submission", True,
     "A student submitted a coding exercise"),
    ("LATE_SUBMISSION", "Late Submission", "teacher", "submission", True,
     "A student submitted after the deadline"),
    ("GRADE_POSTED", "Grade Posted", "student", "grade", True,
     "Your grade for a test was posted"),
    ("GRADE_UPDATED", "Grade Updated", "student", "grade", True,
     "Your grade for a test was changed"),
    ("LOW_CLASS_PERFORMANCE", "Low Class Performance", "teacher", "performance", True,
     "Class average on a test fell below 50%"),
    ("STUDENT_INACTIVE", "Student Inactive", "teacher", "performance", True,
     "A student has not been active recently"),
    ("WEEKLY_PROGRESS_SUMMARY", "Weekly Progress Summary", "both", "performance", False,
     "Weekly digest of progress"),
]


def seed_events(apps, schema_editor):
    NotificationEvent = apps.get_model("notifications", "NotificationEvent")
    for code, name, role, category, default_enabled, description in EVENTS:
        NotificationEvent.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "recipient_role": role,
                "category": category,
                "default_enabled": default_enabled,
                "description": description,
            },
        )


def remove_events(apps, schema_editor):
    NotificationEvent = apps.get_model("notifications", "NotificationEvent")
    NotificationEvent.objects.filter(code__in=[row[0] for row in EVENTS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_events, remove_events),
    ]
