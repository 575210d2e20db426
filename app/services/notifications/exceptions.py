"""
Notification Service Domain Exceptions

Delivery failures are never raised (they are logged and dropped); only
programming errors in message templates surface here.
"""


class NotificationServiceError(Exception):
    """Base exception for notification service errors"""
    pass


class NotificationFormatError(NotificationServiceError):
    """Raised when a message template does not match its arguments"""
    pass
