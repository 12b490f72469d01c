"""
Serializers for notification API.

This module provides DRF serializers for the notification endpoints.

Serializers:
    InAppNotificationSerializer: Inbox entry
    InboxQuerySerializer: ?limit= validation for the inbox
    UnreadCountSerializer: Response for unread count endpoint
    MarkReadResponseSerializer: Response for mark read endpoint
    MarkAllReadResponseSerializer: Response for mark all read endpoint
    EffectivePreferenceSerializer: One row of the preferences page
    PreferenceUpdateSerializer: Body of PUT preferences/{event_code}/
    NotificationLogSerializer: Delivery history row
    DailyStatSerializer: Analytics row
    NotificationEventSerializer: Catalog event with its channels
    DispatchSummarySerializer: Result of a dispatch

Usage:
    from notifications.serializers import InAppNotificationSerializer

    serializer = InAppNotificationSerializer(notifications, many=True)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.channels import DEFAULT_INBOX_LIMIT
from notifications.models import InAppNotification, NotificationEvent, NotificationLog
from notifications.registry import default_registry

MAX_INBOX_LIMIT = 100


class InAppNotificationSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for inbox entries.

    event_code is the stored FK value, so no join is needed.
    """

    event_code = serializers.CharField(source="event_id", read_only=True)

    class Meta:
        model = InAppNotification
        fields = [
            "id",
            "event_code",
            "title",
            "message",
            "link",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class InboxQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(
        min_value=1,
        max_value=MAX_INBOX_LIMIT,
        default=DEFAULT_INBOX_LIMIT,
    )


class UnreadCountSerializer(serializers.Serializer):
    """Response for unread count endpoint."""

    count = serializers.IntegerField()


class MarkReadResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    """Response for mark all read endpoint."""

    success = serializers.BooleanField()
    marked_count = serializers.IntegerField()


class PreferenceResetResponseSerializer(serializers.Serializer):
    """Response for preference reset: data is the number of rows removed."""

    success = serializers.BooleanField()
    data = serializers.IntegerField()


class EffectivePreferenceSerializer(serializers.Serializer):
    """
    One catalog event joined with the user's effective settings.

    is_default is true when no stored row exists and the catalog default
    applies.
    """

    event_code = serializers.CharField()
    event_name = serializers.CharField()
    description = serializers.CharField()
    category = serializers.CharField()
    recipient_role = serializers.CharField()
    email_enabled = serializers.BooleanField()
    sms_enabled = serializers.BooleanField()
    is_default = serializers.BooleanField()


class PreferenceUpdateSerializer(serializers.Serializer):
    """
    Body of PUT preferences/{event_code}/.

    sms_enabled is stored but no channel uses it yet.
    """

    email_enabled = serializers.BooleanField(required=True)
    sms_enabled = serializers.BooleanField(required=False)


class NotificationLogSerializer(serializers.ModelSerializer):
    event_code = serializers.CharField(source="event_id", read_only=True)
    event_name = serializers.CharField(source="event.name", read_only=True)

    class Meta:
        model = NotificationLog
        fields = [
            "id",
            "event_code",
            "event_name",
            "channel",
            "status",
            "recipient_email",
            "subject",
            "error_message",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class DailyStatSerializer(serializers.Serializer):
    date = serializers.DateField()
    event_code = serializers.CharField()
    event_name = serializers.CharField()
    category = serializers.CharField()
    total_sent = serializers.IntegerField()
    successful = serializers.IntegerField()
    failed = serializers.IntegerField()


class NotificationEventSerializer(serializers.ModelSerializer):
    """
    Catalog event.

    channels lists the channels that have a registered renderer.
    """

    channels = serializers.SerializerMethodField()

    class Meta:
        model = NotificationEvent
        fields = [
            "code",
            "name",
            "recipient_role",
            "category",
            "default_enabled",
            "description",
            "channels",
        ]
        read_only_fields = fields

    def get_channels(self, obj: NotificationEvent) -> list[str]:
        return [str(channel) for channel in default_registry.channels_for(obj.code)]


class DispatchErrorSerializer(serializers.Serializer):
    recipient_id = serializers.IntegerField()
    channel = serializers.CharField()
    error = serializers.CharField()


class DispatchSummarySerializer(serializers.Serializer):
    attempted = serializers.IntegerField()
    sent = serializers.IntegerField()
    failed = serializers.IntegerField()
    skipped = serializers.IntegerField()
    errors = DispatchErrorSerializer(many=True)
