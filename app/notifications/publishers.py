"""
Notification publishers.

Business handlers never call the dispatcher directly. They publish through a
NotificationPublisher (toolkit.protocols), which defers dispatch until the
surrounding transaction has committed:

    OnCommitPublisher: runs the dispatcher in-process from transaction.on_commit
    CeleryPublisher: materializes payloads and enqueues notifications.tasks

NOTIFICATIONS["PUBLISHER"] selects the implementation ("on_commit" or "celery").

Usage:
    from notifications.publishers import get_publisher

    get_publisher().publish(
        "GRADE_POSTED",
        [Recipient.from_user(student)],
        lambda r: {"student_name": r.name, ...},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from toolkit.protocols import NotificationPublisher

    from notifications.dispatch import NotificationDispatcher, Recipient

logger = logging.getLogger(__name__)


class OnCommitPublisher:
    """
    Dispatch in-process once the current transaction commits.

    Outside a transaction (autocommit) on_commit runs the callback at once.
    """

    def __init__(self, dispatcher: NotificationDispatcher | None = None):
        self._dispatcher = dispatcher

    @property
    def dispatcher(self) -> NotificationDispatcher:
        if self._dispatcher is not None:
            return self._dispatcher
        from notifications.dispatch import get_dispatcher

        return get_dispatcher()

    def publish(
        self,
        event_code: str,
        recipients: Iterable[Recipient],
        data_fn: Callable[[Recipient], dict[str, Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        recipients = list(recipients)
        if not recipients:
            return

        def dispatch():
            try:
                result = self.dispatcher.notify_batch(event_code, recipients, data_fn, metadata)
            except Exception:
                logger.exception(f"Dispatch of {event_code} failed after commit")
                return
            if not result:
                logger.error(f"Dispatch of {event_code} rejected: {result.error}")

        transaction.on_commit(dispatch)


class CeleryPublisher:
    """
    Hand notifications to a Celery worker once the transaction commits.

    Payloads are built here, on the publishing side, so the task message is
    self-contained JSON.
    """

    def publish(
        self,
        event_code: str,
        recipients: Iterable[Recipient],
        data_fn: Callable[[Recipient], dict[str, Any]],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        from notifications.tasks import dispatch_notification

        items = []
        for recipient in recipients:
            try:
                data = data_fn(recipient)
            except Exception:
                logger.exception(
                    f"Payload builder failed for user {recipient.id} ({event_code}); "
                    f"recipient dropped from task"
                )
                continue
            items.append({"recipient": recipient.to_dict(), "data": data})

        if not items:
            return

        def enqueue():
            try:
                dispatch_notification.delay(str(event_code), items, metadata or {})
            except Exception:
                logger.exception(f"Could not enqueue {event_code} for {len(items)} recipients")

        transaction.on_commit(enqueue)


PUBLISHERS = {
    "on_commit": OnCommitPublisher,
    "celery": CeleryPublisher,
}


def get_publisher() -> NotificationPublisher:
    """Publisher selected by NOTIFICATIONS["PUBLISHER"]."""
    name = settings.NOTIFICATIONS.get("PUBLISHER", "on_commit")
    try:
        publisher_class = PUBLISHERS[name]
    except KeyError:
        raise ValueError(f"Unknown notification publisher: {name!r}") from None
    return publisher_class()
