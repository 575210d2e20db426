"""
Notification Service Layer

This package sends formatted text to the discovered chat target.
"""

from app.services.notifications.service import (
    say,
    render_message,
    truncate_message,
    format_webhook_message,
    TELEGRAM_MESSAGE_LIMIT,
)

from app.services.notifications.exceptions import (
    NotificationServiceError,
    NotificationFormatError,
)

__all__ = [
    "say",
    "render_message",
    "truncate_message",
    "format_webhook_message",
    "TELEGRAM_MESSAGE_LIMIT",
    "NotificationServiceError",
    "NotificationFormatError",
]
