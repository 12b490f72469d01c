"""
URL configuration for notifications API.

Routes:
    Inbox:
        /inbox/               - Newest inbox entries (GET)
        /unread-count/        - Get unread count (GET)
        /{id}/read/           - Mark single as read (POST, PATCH)
        /read-all/            - Mark all as read (POST, PATCH)
        /test/                - Self-test email, DEBUG only (POST)

    Preferences:
        /preferences/               - Effective settings (GET)
        /preferences/{event_code}/  - Upsert one event (PUT)
        /preferences/reset/        - Back to catalog defaults (POST)

    Log:
        /history/             - Own delivery log (GET)
        /stats/               - Daily stats, teacher/admin (GET)

    Catalog:
        /events/              - Event catalog (GET)
"""

from rest_framework.routers import DefaultRouter

from notifications.views import (
    NotificationEventViewSet,
    NotificationHistoryViewSet,
    NotificationStatsViewSet,
    NotificationViewSet,
    PreferenceViewSet,
)

router = DefaultRouter()
router.register(r"preferences", PreferenceViewSet, basename="preference")
router.register(r"history", NotificationHistoryViewSet, basename="history")
router.register(r"stats", NotificationStatsViewSet, basename="stats")
router.register(r"events", NotificationEventViewSet, basename="event")
# Empty prefix last so named prefixes match first
router.register(r"", NotificationViewSet, basename="notification")

app_name = "notifications"
urlpatterns = router.urls
