"""
Protocol definitions (interfaces) for cross-app services.

Protocols let business code depend on an abstraction instead of a concrete
global service, and make collaborators easy to replace in tests.

Available Protocols:
    EmailSender: Mail transport interface
    NotificationPublisher: Hand-off point between business handlers and the
        notification dispatcher
    RosterDirectory: Read-only lookup of notification recipients

Usage:
    from toolkit.protocols import NotificationPublisher

    def publish_grade(publisher: NotificationPublisher, student, data):
        publisher.publish("GRADE_POSTED", [student], lambda r: data)

Note:
    @runtime_checkable allows isinstance() checks in app wiring code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from typing import Any

    from notifications.dispatch import Recipient


@runtime_checkable
class EmailSender(Protocol):
    """
    Protocol for mail transports.

    Implementations raise core.exceptions.ExternalServiceError when the
    message cannot be handed to the mail server, and must be safe to call
    from several worker threads at once.

    Example:
        class RecordingSender:
            def __init__(self):
                self.sent = []

            def send(self, to, subject, body_text=None, body_html=None, **kwargs):
                self.sent.append((to, subject))
                return 1
    """

    def send(
        self,
        to: str,
        subject: str,
        body_text: str | None = None,
        body_html: str | None = None,
        **kwargs: Any,
    ) -> int:
        """
        Send one email.

        Returns:
            Number of messages accepted
        """
        ...


@runtime_checkable
class NotificationPublisher(Protocol):
    """
    Protocol for publishing outbound notifications.

    Business handlers call publish() inside or after their own transaction;
    implementations guarantee dispatch only happens once that transaction
    has committed and that no dispatch error reaches the caller.
    """

    def publish(
        self,
        event_code: str,
        recipients: Iterable[Recipient],
        data_fn: Callable[[Recipient], dict[str, Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Queue a notification for every recipient.

        Args:
            event_code: Catalog event code
            recipients: Recipients to notify
            data_fn: Builds the template payload for one recipient
            metadata: Extra context stored on log and inbox rows
        """
        ...


@runtime_checkable
class RosterDirectory(Protocol):
    """
    Protocol for recipient lookups owned by the roster subsystem.
    """

    def get_students_in_section(
        self,
        section: str,
        event_code: str | None = None,
    ) -> list[Recipient]:
        """Students of a section, optionally without email opt-outs for event_code."""
        ...

    def get_teacher_by_id(self, teacher_id: int) -> Recipient | None:
        """Teacher with the given id, or None."""
        ...
