"""
Celery configuration for the Django application.

Celery runs notification fan-out outside the web process when
NOTIFICATIONS["PUBLISHER"] is "celery": the publisher enqueues
notifications.tasks.dispatch_notification after the business transaction
commits and a worker runs the dispatcher.

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    # Start a worker (from app/):
    celery -A config worker -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up notifications/tasks.py
app.autodiscover_tasks()
