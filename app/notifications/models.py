"""
Notification system models.

This module defines the persisted state of the notification engine:
- NotificationEvent: Catalog of event codes (seeded by data migration)
- NotificationPreference: Per-user, per-event channel opt-in
- NotificationLog: Append-only audit row for every channel attempt
- InAppNotification: Inbox entry shown by the notification bell

Design Decisions:
    - NotificationEvent is keyed by its code; every other table references
      it with to_field="code" so rows can never carry an unknown event
    - Event rows are immutable after seeding (save() refuses updates)
    - Missing preference rows mean "use the catalog default"
    - NotificationLog rows are never updated; they disappear only when the
      recipient is deleted (CASCADE)
    - InAppNotification.is_read only moves from False to True

Usage:
    from notifications.models import InAppNotification, NotificationLog

    unread = InAppNotification.objects.filter(recipient=user, is_read=False)
    failures = NotificationLog.objects.filter(status=DeliveryStatus.FAILED)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel


# =============================================================================
# Enums
# =============================================================================


class RecipientRole(models.TextChoices):
    """Which audience an event is meant for."""

    STUDENT = "student", "Student"
    TEACHER = "teacher", "Teacher"
    BOTH = "both", "Both"


class RecipientType(models.TextChoices):
    """Type of the identity a notification row belongs to."""

    STUDENT = "student", "Student"
    TEACHER = "teacher", "Teacher"
    ADMIN = "admin", "Admin"


class EventCategory(models.TextChoices):
    """Grouping used by the preferences page and the stats view."""

    SYSTEM = "system", "System"
    MODULE = "module", "Module"
    TEST = "test", "Test"
    SUBMISSION = "submission", "Submission"
    GRADE = "grade", "Grade"
    PERFORMANCE = "performance", "Performance"


class Channel(models.TextChoices):
    """Delivery channels."""

    EMAIL = "email", "Email"
    INAPP = "inapp", "In-App"


class DeliveryStatus(models.TextChoices):
    """Outcome of one channel attempt."""

    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"


# =============================================================================
# Catalog
# =============================================================================


class NotificationEvent(models.Model):
    """
    Catalog entry for one business event.

    Seeded once by migration 0002; immutable at runtime.

    Fields:
        code: Stable identifier (e.g., "MODULE_PUBLISHED")
        name: Human-readable name for the preferences page
        recipient_role: student, teacher or both
        category: Grouping for preferences and stats
        default_enabled: Email setting used when a user has no stored preference
    """

    code = models.CharField(
        max_length=64,
        unique=True,
        help_text="Stable event identifier (e.g., 'MODULE_PUBLISHED')",
    )

    name = models.CharField(
        max_length=200,
        help_text="Human-readable event name",
    )

    recipient_role = models.CharField(
        max_length=10,
        choices=RecipientRole.choices,
        help_text="Audience of this event",
    )

    category = models.CharField(
        max_length=20,
        choices=EventCategory.choices,
        db_index=True,
        help_text="Category for grouping",
    )

    default_enabled = models.BooleanField(
        default=True,
        help_text="Email enablement when the user has no stored preference",
    )

    description = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Explanation shown on the preferences page",
    )

    class Meta:
        db_table = "notifications_event"
        verbose_name = "notification event"
        verbose_name_plural = "notification events"
        ordering = ["category", "code"]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        if self.pk is not None and type(self).objects.filter(pk=self.pk).exists():
            raise ValueError("Notification events are immutable once seeded")
        super().save(*args, **kwargs)


# =============================================================================
# Preferences
# =============================================================================


class NotificationPreference(BaseModel):
    """
    A user's stored channel settings for one event.

    Absence of a row means the catalog default applies. Rows are created
    lazily by PreferenceService.set_preference().

    Fields:
        user: Owner of the preference
        user_type: student, teacher or admin
        event: Catalog event (referenced by code)
        email_enabled: Whether email is delivered for this event
        sms_enabled: Stored for a future SMS channel; no delivery uses it
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notification_preferences",
    )

    user_type = models.CharField(
        max_length=10,
        choices=RecipientType.choices,
        help_text="Identity type the preference belongs to",
    )

    event = models.ForeignKey(
        NotificationEvent,
        to_field="code",
        db_column="event_code",
        on_delete=models.CASCADE,
        related_name="preferences",
    )

    email_enabled = models.BooleanField(
        default=True,
        help_text="Deliver this event by email",
    )

    sms_enabled = models.BooleanField(
        default=False,
        help_text="Reserved for a future SMS channel",
    )

    class Meta:
        db_table = "notifications_preference"
        verbose_name = "notification preference"
        verbose_name_plural = "notification preferences"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "user_type", "event"],
                name="unique_user_type_event_pref",
            ),
        ]

    def __str__(self) -> str:
        status = "on" if self.email_enabled else "off"
        return f"Preference(user={self.user_id}, {self.event_id}, email={status})"


# =============================================================================
# Delivery records
# =============================================================================


class NotificationLog(models.Model):
    """
    Audit row for one channel attempt.

    Exactly one row is written per (recipient, channel) attempt, whether it
    succeeded or failed. Rows are append-only.

    Fields:
        event: Catalog event (referenced by code)
        recipient: User the attempt was addressed to
        recipient_type: student, teacher or admin
        recipient_email: Address used (empty for in-app attempts)
        channel: email or inapp
        status: sent or failed
        subject: Email subject or in-app title
        message: Short description of what was sent
        metadata: Caller context (ids, flags)
        error_message: Failure text, truncated
        created_at: When the attempt finished
    """

    event = models.ForeignKey(
        NotificationEvent,
        to_field="code",
        db_column="event_code",
        on_delete=models.PROTECT,
        related_name="logs",
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notification_logs",
    )

    recipient_type = models.CharField(
        max_length=10,
        choices=RecipientType.choices,
    )

    recipient_email = models.CharField(
        max_length=254,
        blank=True,
        default="",
        help_text="Address the email was sent to (blank for in-app)",
    )

    channel = models.CharField(
        max_length=10,
        choices=Channel.choices,
    )

    status = models.CharField(
        max_length=10,
        choices=DeliveryStatus.choices,
        db_index=True,
    )

    subject = models.CharField(
        max_length=500,
        blank=True,
        default="",
    )

    message = models.TextField(
        blank=True,
        default="",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
    )

    error_message = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Failure reason (truncated)",
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
    )

    class Meta:
        db_table = "notifications_log"
        verbose_name = "notification log"
        verbose_name_plural = "notification logs"
        ordering = ["-created_at"]
        indexes = [
            # Personal history
            models.Index(
                fields=["recipient", "-created_at"],
                name="notif_log_recipient_idx",
            ),
            # Daily stats aggregation
            models.Index(
                fields=["created_at", "event"],
                name="notif_log_stats_idx",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"Log({self.event_id}, {self.channel}, {self.status}) "
            f"-> User {self.recipient_id}"
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Notification log rows are append-only")
        super().save(*args, **kwargs)


class InAppNotification(BaseModel):
    """
    Inbox entry for the notification bell.

    Fields:
        recipient: Owner of the inbox entry (scopes all queries)
        recipient_type: student, teacher or admin
        event: Catalog event (referenced by code)
        title: Rendered title
        message: Rendered message
        link: Front-end path to open on click
        metadata: Caller context
        is_read: Read flag; only ever moves from False to True
        read_at: When the entry was first marked read
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="inapp_notifications",
    )

    recipient_type = models.CharField(
        max_length=10,
        choices=RecipientType.choices,
    )

    event = models.ForeignKey(
        NotificationEvent,
        to_field="code",
        db_column="event_code",
        on_delete=models.PROTECT,
        related_name="inapp_notifications",
    )

    title = models.CharField(max_length=255)

    message = models.TextField()

    link = models.CharField(
        max_length=500,
        blank=True,
        default="",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "notifications_inapp"
        verbose_name = "in-app notification"
        verbose_name_plural = "in-app notifications"
        ordering = ["-created_at", "-id"]
        indexes = [
            # Unread badge and inbox listing
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_inapp_unread_idx",
            ),
        ]

    def __str__(self) -> str:
        read_status = "read" if self.is_read else "unread"
        return f"InApp({self.event_id}) -> User {self.recipient_id} [{read_status}]"

    def mark_read(self) -> bool:
        """
        Move the entry to the read state.

        Returns:
            True if the row changed, False if it was already read
        """
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=["is_read", "read_at", "updated_at"])
        return True
