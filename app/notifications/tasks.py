"""
Celery tasks for notification delivery.

Tasks:
    dispatch_notification: Run a published notification through the dispatcher

Design:
    - The message carries everything the dispatcher needs: the event code,
      serialized recipients with their precomputed payloads, and metadata
    - No autoretry: each channel attempt is already recorded in
      NotificationLog, so a retry would duplicate deliveries
    - Returns the DispatchSummary as a dict for result inspection

Usage:
    # Enqueued by notifications.publishers.CeleryPublisher on commit
    dispatch_notification.delay(
        "GRADE_POSTED",
        [{"recipient": recipient.to_dict(), "data": {...}}],
        {"test_id": 7},
    )
"""

from __future__ import annotations

import logging

from celery import shared_task

from notifications.dispatch import Recipient, get_dispatcher

logger = logging.getLogger(__name__)


@shared_task(ignore_result=False)
def dispatch_notification(event_code: str, items: list[dict], metadata: dict | None = None) -> dict:
    """
    Dispatch one published notification.

    Args:
        event_code: Catalog event code
        items: [{"recipient": Recipient.to_dict(), "data": payload}, ...]
        metadata: Context stored on every log and inbox row

    Returns:
        DispatchSummary as a dict, or {"error", "error_code"} if rejected
    """
    payloads = {}
    recipients = []
    for item in items:
        recipient = Recipient.from_dict(item["recipient"])
        recipients.append(recipient)
        payloads.setdefault(recipient, []).append(item["data"])

    # Duplicate recipients keep their own payloads, consumed in order
    def data_fn(recipient: Recipient) -> dict:
        return payloads[recipient].pop(0)

    logger.info(f"Dispatching {event_code} to {len(recipients)} recipients from queue")

    result = get_dispatcher().notify_batch(event_code, recipients, data_fn, metadata)
    if not result:
        logger.error(f"Queued dispatch of {event_code} rejected: {result.error}")
        return {"error": result.error, "error_code": result.error_code}
    return result.data.to_dict()
