"""
Notification service layer.

This module provides the business logic behind the preferences page and the
delivery log screens.

Services:
    PreferenceService: User notification preference management
    NotificationLogService: Delivery history and daily analytics

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Preference rows are created lazily; absence means the catalog default

Usage:
    from notifications.services import NotificationLogService, PreferenceService

    # Opt out of an email
    result = PreferenceService.set_preference(
        user, "WEEKLY_PROGRESS_SUMMARY", email_enabled=False
    )
    if not result:
        ...  # result.error_code == "UNKNOWN_EVENT"

    # Preferences page
    result = PreferenceService.list_effective_settings(user)

    # Caller's own delivery history
    logs = NotificationLogService.history(user)[:50]

    # Teacher/admin analytics
    rows = NotificationLogService.daily_stats(days=30)
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from django.db.models import Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone

from core.services import BaseService, ServiceResult

from notifications.catalog import EventCatalog
from notifications.models import (
    DeliveryStatus,
    NotificationLog,
    NotificationPreference,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

DEFAULT_STATS_DAYS = 30


class PreferenceService(BaseService):
    """
    Service for user notification preference management.

    Methods:
        set_preference: Upsert the stored settings for one event
        list_effective_settings: Full catalog joined with effective settings
        reset_preferences: Delete stored rows, returning to catalog defaults
    """

    @classmethod
    def set_preference(
        cls,
        user: User,
        event_code: str,
        email_enabled: bool,
        sms_enabled: bool | None = None,
        user_type: str | None = None,
    ) -> ServiceResult[NotificationPreference]:
        """
        Store a user's settings for one event.

        Idempotent: repeating the call with the same values leaves one row
        with those values.

        Args:
            user: Owner of the preference
            event_code: Catalog event code
            email_enabled: Whether email is delivered for this event
            sms_enabled: Stored SMS flag (unchanged when None)
            user_type: Identity type (defaults to user.role)

        Returns:
            ServiceResult with the stored NotificationPreference

        Error codes:
            UNKNOWN_EVENT: event_code is not in the catalog
        """
        if not EventCatalog.exists(event_code):
            cls.get_logger().warning(
                f"User {user.id} tried to set preference for unknown event {event_code}"
            )
            return ServiceResult.failure(
                f"Unknown event code: {event_code}",
                error_code="UNKNOWN_EVENT",
            )

        defaults = {"email_enabled": email_enabled}
        if sms_enabled is not None:
            defaults["sms_enabled"] = sms_enabled

        with cls.atomic():
            pref, created = NotificationPreference.objects.update_or_create(
                user=user,
                user_type=user_type or user.role,
                event_id=event_code,
                defaults=defaults,
            )

        action = "created" if created else "updated"
        cls.get_logger().info(
            f"Preference {action} for user {user.id}: "
            f"event={event_code}, email_enabled={pref.email_enabled}"
        )

        return ServiceResult.success(pref)

    @classmethod
    def list_effective_settings(
        cls,
        user: User,
        user_type: str | None = None,
    ) -> ServiceResult[list[dict]]:
        """
        Every catalog event with the user's effective settings.

        Stored rows win; events without one show the catalog default.

        Returns:
            ServiceResult with a list of dicts:
            [{"event_code", "event_name", "description", "category",
              "recipient_role", "email_enabled", "sms_enabled",
              "is_default"}, ...]
        """
        stored = {
            pref.event_id: pref
            for pref in NotificationPreference.objects.filter(
                user=user,
                user_type=user_type or user.role,
            )
        }

        settings_list = []
        for event in EventCatalog.all():
            pref = stored.get(event.code)
            settings_list.append(
                {
                    "event_code": event.code,
                    "event_name": event.name,
                    "description": event.description,
                    "category": event.category,
                    "recipient_role": event.recipient_role,
                    "email_enabled": pref.email_enabled if pref else event.default_enabled,
                    "sms_enabled": pref.sms_enabled if pref else False,
                    "is_default": pref is None,
                }
            )

        return ServiceResult.success(settings_list)

    @classmethod
    def reset_preferences(cls, user: User) -> ServiceResult[int]:
        """
        Delete every stored preference row for a user.

        Returns:
            ServiceResult with the number of rows deleted
        """
        count, _ = NotificationPreference.objects.filter(user=user).delete()
        cls.get_logger().info(f"Reset {count} preferences for user {user.id}")
        return ServiceResult.success(count)


class NotificationLogService(BaseService):
    """
    Read side of the delivery log.
    """

    @classmethod
    def history(cls, user: User) -> QuerySet[NotificationLog]:
        """The user's own log rows, newest first. Slice to paginate."""
        return (
            NotificationLog.objects.filter(recipient=user)
            .select_related("event")
            .order_by("-created_at", "-id")
        )

    @classmethod
    def daily_stats(cls, days: int = DEFAULT_STATS_DAYS) -> list[dict]:
        """
        Per-day, per-event delivery counts for the last `days` days.

        Returns:
            List of dicts ordered by date descending then event code:
            [{"date", "event_code", "event_name", "category",
              "total_sent", "successful", "failed"}, ...]
        """
        since = timezone.now() - timedelta(days=days)

        rows = (
            NotificationLog.objects.filter(created_at__gte=since)
            .annotate(date=TruncDate("created_at"))
            .values("date", "event_id", "event__name", "event__category")
            .annotate(
                total_sent=Count("id"),
                successful=Count("id", filter=Q(status=DeliveryStatus.SENT)),
                failed=Count("id", filter=Q(status=DeliveryStatus.FAILED)),
            )
            .order_by("-date", "event_id")
        )

        return [
            {
                "date": row["date"],
                "event_code": row["event_id"],
                "event_name": row["event__name"],
                "category": row["event__category"],
                "total_sent": row["total_sent"],
                "successful": row["successful"],
                "failed": row["failed"],
            }
            for row in rows
        ]
