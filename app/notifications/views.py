"""
Views for notification API.

This module provides the ViewSets for the notification bell, the
preferences page, delivery history and analytics.

ViewSets:
    NotificationViewSet: Inbox actions and the debug self-test
    PreferenceViewSet: Effective settings and per-event upsert
    NotificationHistoryViewSet: Caller's own delivery log
    NotificationStatsViewSet: Daily delivery stats (teachers and admins)
    NotificationEventViewSet: Event catalog

Endpoints:
    Inbox:
        GET /api/v1/notifications/inbox/?limit=20 - Newest inbox entries
        GET /api/v1/notifications/unread-count/ - Unread badge count
        POST|PATCH /api/v1/notifications/{id}/read/ - Mark one as read
        POST|PATCH /api/v1/notifications/read-all/ - Mark all as read
        POST /api/v1/notifications/test/ - Self-test email (DEBUG only)

    Preferences:
        GET /api/v1/notifications/preferences/ - Catalog with effective settings
        PUT /api/v1/notifications/preferences/{event_code}/ - Upsert one event
        POST /api/v1/notifications/preferences/reset/ - Back to catalog defaults

    Log:
        GET /api/v1/notifications/history/?limit=50&offset=0 - Own delivery log
        GET /api/v1/notifications/stats/ - Last 30 days (teacher/admin)

    Catalog:
        GET /api/v1/notifications/events/ - Event catalog
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter,
    OpenApiResponse,
)

from notifications.catalog import EventCatalog, EventCode
from notifications.channels import InAppChannel
from notifications.dispatch import Recipient, get_dispatcher
from notifications.permissions import IsTeacherOrAdmin
from notifications.serializers import (
    DailyStatSerializer,
    DispatchSummarySerializer,
    EffectivePreferenceSerializer,
    InAppNotificationSerializer,
    InboxQuerySerializer,
    MarkAllReadResponseSerializer,
    MarkReadResponseSerializer,
    NotificationEventSerializer,
    NotificationLogSerializer,
    PreferenceResetResponseSerializer,
    PreferenceUpdateSerializer,
    UnreadCountSerializer,
)
from notifications.services import NotificationLogService, PreferenceService

NOT_FOUND = {"detail": "Not found."}


class NotificationViewSet(viewsets.GenericViewSet):
    """
    ViewSet for the notification bell.

    Provides:
    - inbox: GET /inbox/ - Newest entries, bounded by ?limit
    - unread_count: GET /unread-count/ - Badge count (live, never cached)
    - read: POST|PATCH /{id}/read/ - Mark single as read
    - read_all: POST|PATCH /read-all/ - Mark all as read
    - send_test: POST /test/ - Debug-only self-test

    Permissions:
    - All endpoints require authentication
    - Entries of other users behave as missing (404)
    """

    permission_classes = [IsAuthenticated]
    serializer_class = InAppNotificationSerializer
    lookup_value_regex = r"\d+"

    @extend_schema(
        operation_id="list_inbox",
        summary="List inbox",
        description="Newest in-app notifications of the authenticated user.",
        parameters=[
            OpenApiParameter(
                name="limit",
                type=int,
                location=OpenApiParameter.QUERY,
                description="Maximum entries to return (1-100, default 20)",
                required=False,
            ),
        ],
        responses={200: InAppNotificationSerializer(many=True)},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["get"])
    def inbox(self, request):
        query = InboxQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        notifications = InAppChannel.list_inbox(request.user, query.validated_data["limit"])
        serializer = self.get_serializer(notifications, many=True)
        return Response(serializer.data)

    @extend_schema(
        operation_id="get_unread_notification_count",
        summary="Get unread notification count",
        description="Count of unread in-app notifications for badge display.",
        responses={200: UnreadCountSerializer},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        """
        Get count of unread notifications.

        Returns:
            {"count": <int>}
        """
        count = InAppChannel.unread_count(request.user)
        serializer = UnreadCountSerializer({"count": count})
        return Response(serializer.data)

    @extend_schema(
        operation_id="mark_notification_read",
        summary="Mark notification as read",
        description=(
            "Mark a single notification as read. "
            "This operation is idempotent - already-read notifications return success."
        ),
        request=None,
        responses={
            200: MarkReadResponseSerializer,
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications - Inbox"],
    )
    @action(detail=True, methods=["post", "patch"])
    def read(self, request, pk=None):
        """
        Mark single notification as read.

        Returns 404 if notification doesn't exist or belongs to another user.
        """
        result = InAppChannel.mark_read(int(pk), request.user)
        if not result:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response(MarkReadResponseSerializer({"success": True}).data)

    @extend_schema(
        operation_id="mark_all_notifications_read",
        summary="Mark all notifications as read",
        description="Mark all unread notifications for the authenticated user as read.",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["post", "patch"], url_path="read-all")
    def read_all(self, request):
        """
        Mark all user's notifications as read.

        Returns:
            {"success": true, "marked_count": <int>}
        """
        result = InAppChannel.mark_all_read(request.user)
        serializer = MarkAllReadResponseSerializer(
            {"success": True, "marked_count": result.data}
        )
        return Response(serializer.data)

    @extend_schema(
        operation_id="send_test_notification",
        summary="Send a test notification",
        description=(
            "Sends the welcome email to the caller, flagged as a test. "
            "Only available when DEBUG is on; test emails are never sent in production."
        ),
        request=None,
        responses={
            200: DispatchSummarySerializer,
            404: OpenApiResponse(description="Not available outside DEBUG"),
        },
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["post"], url_path="test", url_name="send-test")
    def send_test(self, request):
        if not settings.DEBUG:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        user = request.user
        recipient = Recipient.from_user(user)
        result = get_dispatcher().notify(
            EventCode.ACCOUNT_CREATED,
            recipient,
            {
                "name": recipient.name,
                "role": recipient.type,
                "email": recipient.email,
                "reg_no": recipient.reg_no or None,
                "section": recipient.section or None,
            },
            metadata={"test": True, "user_id": user.id},
        )
        if not result:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        return Response(DispatchSummarySerializer(result.data.to_dict()).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_preferences",
        summary="List notification preferences",
        description=(
            "Every catalog event with the current user's effective settings. "
            "Events without a stored preference show the catalog default."
        ),
        responses={200: EffectivePreferenceSerializer(many=True)},
        tags=["Notifications - Preferences"],
    ),
    update=extend_schema(
        operation_id="update_notification_preference",
        summary="Update notification preference",
        description="Store the user's settings for one event. Idempotent.",
        request=PreferenceUpdateSerializer,
        responses={
            200: EffectivePreferenceSerializer,
            400: OpenApiResponse(description="Unknown event code or invalid body"),
        },
        tags=["Notifications - Preferences"],
    ),
)
class PreferenceViewSet(viewsets.ViewSet):
    """
    ViewSet for managing user notification preferences.

    Provides:
    - list: GET / - Catalog joined with effective settings
    - update: PUT /{event_code}/ - Upsert settings for one event
    - reset: POST /reset/ - Delete stored settings

    Permissions:
    - All endpoints require authentication
    - Users can only manage their own preferences
    """

    permission_classes = [IsAuthenticated]
    lookup_field = "event_code"
    lookup_value_regex = r"[A-Za-z0-9_]+"

    def list(self, request):
        result = PreferenceService.list_effective_settings(request.user)
        serializer = EffectivePreferenceSerializer(result.data, many=True)
        return Response(serializer.data)

    def update(self, request, event_code=None):
        serializer = PreferenceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PreferenceService.set_preference(
            user=request.user,
            event_code=event_code,
            email_enabled=serializer.validated_data["email_enabled"],
            sms_enabled=serializer.validated_data.get("sms_enabled"),
        )
        if not result:
            return Response(
                {"detail": result.error, "error_code": result.error_code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        pref = result.data
        event = pref.event
        return Response(
            EffectivePreferenceSerializer(
                {
                    "event_code": event.code,
                    "event_name": event.name,
                    "description": event.description,
                    "category": event.category,
                    "recipient_role": event.recipient_role,
                    "email_enabled": pref.email_enabled,
                    "sms_enabled": pref.sms_enabled,
                    "is_default": False,
                }
            ).data
        )

    @extend_schema(
        operation_id="reset_notification_preferences",
        summary="Reset notification preferences",
        description="Delete every stored preference so all events fall back to catalog defaults.",
        request=None,
        responses={200: PreferenceResetResponseSerializer},
        tags=["Notifications - Preferences"],
    )
    @action(detail=False, methods=["post"])
    def reset(self, request):
        result = PreferenceService.reset_preferences(request.user)
        return Response(result.to_response())


class HistoryPagination(LimitOffsetPagination):
    default_limit = 50
    max_limit = 200


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_history",
        summary="List delivery history",
        description="The authenticated user's own delivery log, newest first.",
        tags=["Notifications - Log"],
    ),
)
class NotificationHistoryViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    The caller's own NotificationLog rows.

    Paginated with ?limit and ?offset (default 50).
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationLogSerializer
    pagination_class = HistoryPagination

    def get_queryset(self):
        return NotificationLogService.history(self.request.user)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_stats",
        summary="Daily delivery stats",
        description="Per-day, per-event delivery counts for the last 30 days.",
        responses={
            200: DailyStatSerializer(many=True),
            403: OpenApiResponse(description="Teachers and admins only"),
        },
        tags=["Notifications - Log"],
    ),
)
class NotificationStatsViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsTeacherOrAdmin]

    def list(self, request):
        rows = NotificationLogService.daily_stats()
        return Response(DailyStatSerializer(rows, many=True).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_events",
        summary="List notification events",
        description="The event catalog with the channels each event is delivered on.",
        tags=["Notifications - Catalog"],
    ),
)
class NotificationEventViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationEventSerializer
    pagination_class = None
    def get_queryset(self):
        return EventCatalog.all()
