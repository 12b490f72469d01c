"""
Notification engine exceptions.

Taxonomy:
    ValidationError - unknown or unregistered event code, malformed payload;
        raised before any delivery attempt, so no log rows exist
    ChannelError - transport or template failure for one channel attempt;
        always caught by the dispatcher and recorded as a failed log row
    NotFoundError - in-app notification missing or owned by someone else

Usage:
    from notifications.exceptions import ChannelError

    try:
        content = registry.render(event_code, Channel.EMAIL, data)
    except ChannelError as e:
        record_failure(str(e))
"""

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError

__all__ = ["ChannelError", "NotFoundError", "ValidationError"]


class ChannelError(BaseApplicationError):
    """Raised when one channel attempt fails (render or transport)."""

    default_error_code: str = "CHANNEL_ERROR"
