"""
Django admin configuration for notification models.

Registers all notification models with the admin site:
- NotificationEvent (read-only catalog)
- NotificationPreference
- NotificationLog (read-only audit trail)
- InAppNotification
"""

from django.contrib import admin

from notifications.models import (
    InAppNotification,
    NotificationEvent,
    NotificationLog,
    NotificationPreference,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    """Rows are written by migrations or the dispatcher, never by hand."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(NotificationEvent)
class NotificationEventAdmin(ReadOnlyAdmin):
    """
    Admin configuration for NotificationEvent.

    The catalog is seeded by migration and immutable at runtime.
    """

    list_display = ["code", "name", "recipient_role", "category", "default_enabled"]
    list_filter = ["category", "recipient_role", "default_enabled"]
    search_fields = ["code", "name"]
    ordering = ["category", "code"]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(NotificationPreference)
class NotificationPreferenceAdmin(admin.ModelAdmin):
    list_display = ["user", "user_type", "event", "email_enabled", "sms_enabled", "updated_at"]
    list_filter = ["user_type", "email_enabled", "event"]
    search_fields = ["user__email", "event__code"]
    raw_id_fields = ["user"]


@admin.register(NotificationLog)
class NotificationLogAdmin(ReadOnlyAdmin):
    """
    Admin configuration for NotificationLog.

    Read-only view of delivery attempts for debugging and support.
    """

    list_display = [
        "id",
        "event",
        "recipient",
        "channel",
        "status",
        "recipient_email",
        "created_at",
    ]
    list_filter = ["status", "channel", "event", "created_at"]
    search_fields = ["recipient__email", "recipient_email", "subject", "error_message"]
    ordering = ["-created_at"]
    raw_id_fields = ["recipient"]


@admin.register(InAppNotification)
class InAppNotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "recipient", "title", "is_read", "created_at"]
    list_filter = ["is_read", "event", "created_at"]
    search_fields = ["title", "recipient__email"]
    ordering = ["-created_at"]
    readonly_fields = [
        "recipient",
        "recipient_type",
        "event",
        "title",
        "message",
        "link",
        "metadata",
        "read_at",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["recipient"]
