"""
Notification preference resolution.

A user's effective setting for an event is the stored NotificationPreference
row when one exists, otherwise the catalog default:

    email_enabled -> NotificationEvent.default_enabled
    sms_enabled   -> False

Design Decisions:
    - No caching; preference changes take effect on the next dispatch
    - Bulk resolution uses 1 query regardless of recipient count
    - Only the email channel is gated; in-app delivery ignores preferences

Usage:
    from notifications.preferences import PreferenceResolver

    # Single recipient
    prefs = PreferenceResolver.get_effective_preference(user.id, "student", "GRADE_POSTED")
    if prefs.email_enabled:
        ...

    # Whole batch, before handing work to the dispatcher pool
    prefs_map = PreferenceResolver.resolve_bulk(
        [(r.id, r.type) for r in recipients], event
    )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from notifications.models import NotificationEvent, NotificationPreference

    UserKey = tuple[int, str]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectivePreference:
    """
    Resolved channel settings for one user/event combination.

    Attributes:
        email_enabled: Whether email is delivered
        sms_enabled: Stored flag for a future SMS channel
        is_default: True when no stored row exists and catalog defaults apply
    """

    email_enabled: bool
    sms_enabled: bool = False
    is_default: bool = False

    @classmethod
    def from_row(cls, row: NotificationPreference) -> EffectivePreference:
        return cls(email_enabled=row.email_enabled, sms_enabled=row.sms_enabled)

    @classmethod
    def default_for(cls, event: NotificationEvent) -> EffectivePreference:
        return cls(email_enabled=event.default_enabled, sms_enabled=False, is_default=True)


class PreferenceResolver:
    """
    Resolves stored preferences against catalog defaults.
    """

    @classmethod
    def get_effective_preference(
        cls,
        user_id: int,
        user_type: str,
        event_code: str,
    ) -> EffectivePreference | None:
        """
        Resolve preferences for a single user/event combination.

        Args:
            user_id: Recipient identity
            user_type: student, teacher or admin
            event_code: Catalog event code

        Returns:
            EffectivePreference, or None if event_code is not in the catalog
        """
        from notifications.models import NotificationEvent, NotificationPreference

        row = (
            NotificationPreference.objects.filter(
                user_id=user_id,
                user_type=user_type,
                event_id=event_code,
            )
            .only("email_enabled", "sms_enabled")
            .first()
        )
        if row is not None:
            return EffectivePreference.from_row(row)

        event = NotificationEvent.objects.filter(code=event_code).first()
        if event is None:
            logger.debug(f"Preference lookup for unknown event {event_code}")
            return None
        return EffectivePreference.default_for(event)

    @classmethod
    def resolve_bulk(
        cls,
        user_keys: Iterable[UserKey],
        event: NotificationEvent,
    ) -> dict[UserKey, EffectivePreference]:
        """
        Resolve preferences for many recipients of one event.

        Uses 1 query: all stored rows for the event and the given users.

        Args:
            user_keys: (user_id, user_type) pairs
            event: Catalog event

        Returns:
            Dict mapping every (user_id, user_type) key to its EffectivePreference
        """
        from notifications.models import NotificationPreference

        keys = list(dict.fromkeys(user_keys))
        if not keys:
            return {}

        stored = {
            (row.user_id, row.user_type): row
            for row in NotificationPreference.objects.filter(
                event_id=event.code,
                user_id__in={user_id for user_id, _ in keys},
            ).only("user_id", "user_type", "email_enabled", "sms_enabled")
        }

        default = EffectivePreference.default_for(event)
        return {
            key: EffectivePreference.from_row(stored[key]) if key in stored else default
            for key in keys
        }
