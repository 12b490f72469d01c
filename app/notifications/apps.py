"""Django app configuration for notifications."""

from django.apps import AppConfig
from django.conf import settings
from django.db.models.signals import post_save


class NotificationsConfig(AppConfig):
    """
    Configuration for the notifications app.

    ready() registers the renderers, builds the dispatcher around a mail
    transport constructed from settings, and connects signal receivers.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Notifications"

    def ready(self):
        from toolkit.services.email import EmailService

        from notifications import handlers, renderers  # noqa: F401
        from notifications.dispatch import NotificationDispatcher, configure_dispatcher

        configure_dispatcher(NotificationDispatcher.from_settings(EmailService.from_settings()))

        post_save.connect(
            handlers.account_created,
            sender=settings.AUTH_USER_MODEL,
            dispatch_uid="notifications.account_created",
        )
