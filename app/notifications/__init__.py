"""
Notifications app: event catalog, template registry and delivery engine.

This app provides:
- NotificationEvent catalog seeded by migration, with per-user preferences
- TemplateRegistry of email and in-app renderers per event
- NotificationDispatcher fanning events out over a bounded worker pool
- NotificationLog audit trail with history and daily stats
- InAppNotification inbox behind the notification bell API

Usage:
    from notifications import handlers

    handlers.grade_posted(
        student=student,
        test_title="Unit 3 Quiz",
        score=8,
        total_questions=10,
        percentage=80.0,
        status="completed",
    )
"""
