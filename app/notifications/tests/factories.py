"""
Factory Boy factories for notification models.

Events are seeded by migration, so factories reference them by code
(event_id) instead of creating catalog rows.

Usage:
    from notifications.tests.factories import (
        InAppNotificationFactory,
        NotificationLogFactory,
        NotificationPreferenceFactory,
    )

    entry = InAppNotificationFactory(recipient=student)
    log = NotificationLogFactory(recipient=student, status="failed")
    pref = NotificationPreferenceFactory(user=student, event_id="GRADE_POSTED")
"""

import factory

from authentication.tests.factories import StudentFactory


class InAppNotificationFactory(factory.django.DjangoModelFactory):
    """
    Factory for InAppNotification.

    Creates an unread GRADE_POSTED entry for a new student by default.

    Examples:
        entry = InAppNotificationFactory(recipient=user)
        read = InAppNotificationFactory(recipient=user, is_read=True)
    """

    class Meta:
        model = "notifications.InAppNotification"

    recipient = factory.SubFactory(StudentFactory)
    recipient_type = factory.LazyAttribute(lambda o: o.recipient.role)
    event_id = "GRADE_POSTED"
    title = factory.Sequence(lambda n: f"Notification {n}")
    message = "You scored 8/10 (80.0%) on \"Algebra Quiz\"."
    link = "/progress"
    metadata = factory.LazyFunction(dict)
    is_read = False


class NotificationLogFactory(factory.django.DjangoModelFactory):
    """
    Factory for NotificationLog.

    Creates a successful email attempt by default.
    """

    class Meta:
        model = "notifications.NotificationLog"

    recipient = factory.SubFactory(StudentFactory)
    recipient_type = factory.LazyAttribute(lambda o: o.recipient.role)
    recipient_email = factory.LazyAttribute(
        lambda o: o.recipient.email if o.channel == "email" else ""
    )
    event_id = "GRADE_POSTED"
    channel = "email"
    status = "sent"
    subject = "Grade Posted: Algebra Quiz"
    metadata = factory.LazyFunction(dict)


class NotificationPreferenceFactory(factory.django.DjangoModelFactory):
    """Factory for NotificationPreference (an email opt-out by default)."""

    class Meta:
        model = "notifications.NotificationPreference"

    user = factory.SubFactory(StudentFactory)
    user_type = factory.LazyAttribute(lambda o: o.user.role)
    event_id = "GRADE_POSTED"
    email_enabled = False
    sms_enabled = False
