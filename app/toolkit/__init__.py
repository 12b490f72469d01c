"""
Toolkit - Domain-Specific Utilities & Services.

Key components:
    - services/email.py: EmailService, the configuration-driven mail transport
    - helpers.py: PII masking for log output
    - protocols.py: Service interfaces (mail transport, notification publisher,
      roster directory)

Usage:
    from toolkit.services.email import EmailService
    from toolkit.helpers import mask_email
    from toolkit.protocols import EmailSender, NotificationPublisher

Note:
    This app has no models.
"""
