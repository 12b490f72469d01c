"""
Domain-aware helper functions.

Usage:
    from toolkit.helpers import mask_email

    logger.info(f"Email sent to {mask_email(address)}")
"""

from __future__ import annotations


def mask_email(email: str) -> str:
    """
    Mask email for log output.

    Keeps first character and domain visible.

    Args:
        email: Email address to mask

    Returns:
        Masked email (e.g., "j***@example.com")
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)

    if len(local) > 1:
        masked_local = local[0] + "***"
    else:
        masked_local = "***"

    return f"{masked_local}@{domain}"


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
