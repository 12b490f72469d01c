# Generated manually for the notification engine schema

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="NotificationEvent",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "code",
                    models.CharField(
                        help_text="Stable event identifier (e.g., 'MODULE_PUBLISHED')",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "name",
                    models.CharField(help_text="Human-readable event name", max_length=200),
                ),
                (
                    "recipient_role",
                    models.CharField(
                        choices=[
                            ("student", "Student"),
                            ("teacher", "Teacher"),
                            ("both", "Both"),
                        ],
                        help_text="Audience of this event",
                        max_length=10,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("system", "System"),
                            ("module", "Module"),
                            ("test", "Test"),
                            ("submission", "Submission"),
                            ("grade", "Grade"),
                            ("performance", "Performance"),
                        ],
                        db_index=True,
                        help_text="Category for grouping",
                        max_length=20,
                    ),
                ),
                (
                    "default_enabled",
                    models.BooleanField(
                        default=True,
                        help_text="Email enablement when the user has no stored preference",
                    ),
                ),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Explanation shown on the preferences page",
                        max_length=500,
                    ),
                ),
            ],
            options={
                "verbose_name": "notification event",
                "verbose_name_plural": "notification events",
                "db_table": "notifications_event",
                "ordering": ["category", "code"],
            },
        ),
        migrations.CreateModel(
            name="NotificationPreference",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "user_type",
                    models.CharField(
                        choices=[
                            ("student", "Student"),
                            ("teacher", "Teacher"),
                            ("admin", "Admin"),
                        ],
                        help_text="Identity type the preference belongs to",
                        max_length=10,
                    ),
                ),
                (
                    "email_enabled",
                    models.BooleanField(default=True, help_text="Deliver this event by email"),
                ),
                (
                    "sms_enabled",
                    models.BooleanField(
                        default=False, help_text="Reserved for a future SMS channel"
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        db_column="event_code",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="preferences",
                        to="notifications.notificationevent",
                        to_field="code",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notification_preferences",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "notification preference",
                "verbose_name_plural": "notification preferences",
                "db_table": "notifications_preference",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "user_type", "event"),
                        name="unique_user_type_event_pref",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "recipient_type",
                    models.CharField(
                        choices=[
                            ("student", "Student"),
                            ("teacher", "Teacher"),
                            ("admin", "Admin"),
                        ],
                        max_length=10,
                    ),
                ),
                (
                    "recipient_email",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Address the email was sent to (blank for in-app)",
                        max_length=254,
                    ),
                ),
                (
                    "channel",
                    models.CharField(
                        choices=[("email", "Email"), ("inapp", "In-App")],
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("sent", "Sent"), ("failed", "Failed")],
                        db_index=True,
                        max_length=10,
                    ),
                ),
                ("subject", models.CharField(blank=True, default="", max_length=500)),
                ("message", models.TextField(blank=True, default="")),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "error_message",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Failure reason (truncated)",
                        max_length=500,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        db_column="event_code",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="logs",
                        to="notifications.notificationevent",
                        to_field="code",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notification_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "notification log",
                "verbose_name_plural": "notification logs",
                "db_table": "notifications_log",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["recipient", "-created_at"],
                        name="notif_log_recipient_idx",
                    ),
                    models.Index(
                        fields=["created_at", "event"],
                        name="notif_log_stats_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InAppNotification",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "recipient_type",
                    models.CharField(
                        choices=[
                            ("student", "Student"),
                            ("teacher", "Teacher"),
                            ("admin", "Admin"),
                        ],
                        max_length=10,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("link", models.CharField(blank=True, default="", max_length=500)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("is_read", models.BooleanField(db_index=True, default=False)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        db_column="event_code",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inapp_notifications",
                        to="notifications.notificationevent",
                        to_field="code",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inapp_notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "in-app notification",
                "verbose_name_plural": "in-app notifications",
                "db_table": "notifications_inapp",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["recipient", "is_read", "-created_at"],
                        name="notif_inapp_unread_idx",
                    )
                ],
            },
        ),
    ]
