"""
Email service wrapping Django's mail backend.

This module provides the EmailService class, the mail transport used by
the notification email channel. It is constructed once from settings by
the notifications app config and shared by every dispatch worker.

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT, EMAIL_USE_TLS, EMAIL_TIMEOUT
    - DEFAULT_FROM_EMAIL

Concurrency:
    Each send() opens its own backend connection, so one instance can be
    used from several threads at once. The worker pool width bounds how
    many connections are open simultaneously.

Usage:
    from toolkit.services.email import EmailService

    transport = EmailService.from_settings()
    transport.send(
        to="student@school.test",
        subject="New Module Available",
        body_text="...",
        body_html="<p>...</p>",
    )
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import EmailMultiAlternatives, get_connection
from django.core.validators import validate_email
from django.utils.html import strip_tags

from core.exceptions import ExternalServiceError
from toolkit.helpers import mask_email

logger = logging.getLogger(__name__)


class EmailService:
    """
    Mail transport with HTML + plain text support.

    Sends are attempted once. Any backend failure is raised as
    ExternalServiceError so callers can record it; nothing is retried here.

    Attributes:
        from_email: Sender address for every message
        backend: Dotted path of the Django email backend (None = EMAIL_BACKEND)
        timeout: Connection timeout in seconds passed to the backend
    """

    def __init__(
        self,
        from_email: str,
        backend: str | None = None,
        timeout: int | None = None,
    ):
        self.from_email = from_email
        self.backend = backend
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> EmailService:
        """
        Build a transport from the EMAIL_* settings.

        The backend is left unpinned so EMAIL_BACKEND is read per send.
        """
        return cls(
            from_email=settings.DEFAULT_FROM_EMAIL,
            timeout=getattr(settings, "EMAIL_TIMEOUT", None),
        )

    def send(
        self,
        to: str,
        subject: str,
        body_text: str | None = None,
        body_html: str | None = None,
        reply_to: str | None = None,
    ) -> int:
        """
        Send one email.

        Args:
            to: Recipient email address
            subject: Email subject line
            body_text: Plain text body (derived from body_html when omitted)
            body_html: HTML body (optional)
            reply_to: Reply-to address

        Returns:
            Number of messages accepted by the backend (1)

        Raises:
            ExternalServiceError: Invalid recipient address or backend failure
        """
        try:
            validate_email(to)
        except DjangoValidationError:
            raise ExternalServiceError(
                f"Invalid recipient address: {to!r}",
                error_code="INVALID_RECIPIENT",
            ) from None

        if body_text is None:
            body_text = strip_tags(body_html or "").strip()

        message = EmailMultiAlternatives(
            subject=subject,
            body=body_text,
            from_email=self.from_email,
            to=[to],
            reply_to=[reply_to] if reply_to else None,
            connection=self._connection(),
        )
        if body_html:
            message.attach_alternative(body_html, "text/html")

        try:
            sent = message.send(fail_silently=False)
        except (SMTPException, OSError) as e:
            logger.warning(f"Mail transport failed for {mask_email(to)}: {e}")
            raise ExternalServiceError(
                f"Mail transport error: {e}",
                error_code="MAIL_TRANSPORT_ERROR",
            ) from e

        if not sent:
            raise ExternalServiceError(
                "Mail backend accepted no messages",
                error_code="MAIL_NOT_ACCEPTED",
            )

        logger.debug(f"Email sent to {mask_email(to)}: {subject}")
        return sent

    def _connection(self):
        kwargs = {"fail_silently": False}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return get_connection(self.backend, **kwargs)
