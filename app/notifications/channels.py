"""
Delivery channels.

EmailChannel wraps an injected mail transport (toolkit.protocols.EmailSender).
InAppChannel owns the InAppNotification inbox.
record_attempt() writes the NotificationLog row for one channel attempt.

Threading:
    EmailChannel.send() is called from dispatcher worker threads and touches
    no database state. record_attempt() and InAppChannel.create() run on the
    dispatching thread.

Usage:
    from notifications.channels import EmailChannel, InAppChannel

    channel = EmailChannel(EmailService.from_settings())
    channel.send(content.subject, content.body_html, "student@example.com")

    InAppChannel.create(recipient, title, message, link, "GRADE_POSTED")
    InAppChannel.unread_count(user)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.exceptions import ExternalServiceError
from core.services import BaseService, ServiceResult
from toolkit.helpers import mask_email, truncate

from notifications.exceptions import ChannelError, NotFoundError
from notifications.models import (
    Channel,
    InAppNotification,
    NotificationLog,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User
    from toolkit.protocols import EmailSender

    from notifications.dispatch import Recipient

logger = logging.getLogger(__name__)

DEFAULT_INBOX_LIMIT = 20


def error_message_limit() -> int:
    return settings.NOTIFICATIONS.get("ERROR_MESSAGE_MAX_LENGTH", 500)


def record_attempt(
    event_code: str,
    recipient: Recipient,
    channel: str,
    status: str,
    subject: str = "",
    message: str = "",
    metadata: dict | None = None,
    error: str = "",
) -> NotificationLog:
    """
    Write the audit row for one channel attempt.

    Exactly one row per (recipient, channel) attempt; failure text is
    truncated to NOTIFICATIONS["ERROR_MESSAGE_MAX_LENGTH"].
    """
    return NotificationLog.objects.create(
        event_id=event_code,
        recipient_id=recipient.id,
        recipient_type=recipient.type,
        recipient_email=recipient.email if channel == Channel.EMAIL else "",
        channel=channel,
        status=status,
        subject=truncate(subject, 500),
        message=message,
        metadata=metadata or {},
        error_message=truncate(error, error_message_limit()),
    )


class EmailChannel:
    """
    Email delivery through the injected transport.

    No retries: one transport call per attempt.
    """

    def __init__(self, transport: EmailSender):
        self.transport = transport

    def send(self, subject: str, body_html: str, address: str) -> None:
        """
        Deliver one rendered email.

        Raises:
            ChannelError: Missing or invalid address, or the transport failed
        """
        if not address:
            raise ChannelError("Recipient has no email address", error_code="INVALID_RECIPIENT")

        try:
            self.transport.send(to=address, subject=subject, body_html=body_html)
        except ExternalServiceError as e:
            logger.warning(f"Email to {mask_email(address)} failed: {e.message}")
            raise ChannelError(e.message, error_code=e.error_code) from e


class InAppChannel(BaseService):
    """
    Inbox operations for the notification bell.

    Every query is scoped to the requesting user; rows belonging to other
    users behave exactly like missing rows.
    """

    @classmethod
    def create(
        cls,
        recipient: Recipient,
        title: str,
        message: str,
        link: str,
        event_code: str,
        metadata: dict | None = None,
    ) -> InAppNotification:
        """Insert an unread inbox entry."""
        notification = InAppNotification.objects.create(
            recipient_id=recipient.id,
            recipient_type=recipient.type,
            event_id=event_code,
            title=truncate(title, 255),
            message=message,
            link=link,
            metadata=metadata or {},
        )
        cls.get_logger().debug(
            f"Created in-app notification {notification.id} ({event_code}) "
            f"for user {recipient.id}"
        )
        return notification

    @classmethod
    def get_owned(cls, notification_id: int, user: User) -> InAppNotification:
        """
        Raises:
            NotFoundError: No entry with this id belongs to the user
        """
        notification = InAppNotification.objects.filter(
            id=notification_id,
            recipient=user,
        ).first()
        if notification is None:
            raise NotFoundError("Not found.", error_code="NOT_FOUND")
        return notification

    @classmethod
    def mark_read(cls, notification_id: int, user: User) -> ServiceResult[InAppNotification]:
        """
        Mark one of the user's entries as read.

        Idempotent: marking an already-read entry succeeds without changes.

        Error codes:
            NOT_FOUND: No entry with this id belongs to the user
        """
        try:
            notification = cls.get_owned(notification_id, user)
        except NotFoundError as e:
            return ServiceResult.from_exception(e)

        if notification.mark_read():
            cls.get_logger().debug(f"Marked notification {notification.id} as read")
        return ServiceResult.success(notification)

    @classmethod
    def mark_all_read(cls, user: User) -> ServiceResult[int]:
        """
        Mark every unread entry of the user as read.

        Returns:
            ServiceResult with the number of entries changed (zero is valid)
        """
        now = timezone.now()
        count = InAppNotification.objects.filter(
            recipient=user,
            is_read=False,
        ).update(is_read=True, read_at=now, updated_at=now)

        cls.get_logger().info(f"Marked {count} notifications as read for user {user.id}")
        return ServiceResult.success(count)

    @classmethod
    def list_inbox(cls, user: User, limit: int = DEFAULT_INBOX_LIMIT) -> QuerySet[InAppNotification]:
        """The user's newest `limit` entries."""
        return InAppNotification.objects.filter(recipient=user).order_by(
            "-created_at", "-id"
        )[: max(limit, 0)]

    @classmethod
    def unread_count(cls, user: User) -> int:
        return InAppNotification.objects.filter(recipient=user, is_read=False).count()

