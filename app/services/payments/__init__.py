"""
Payment Service Layer

This package authenticates and decodes Selly payment webhooks.
"""

from app.services.payments.service import (
    verify_webhook_secret,
    parse_webhook_payload,
)

from app.services.payments.exceptions import (
    PaymentServiceError,
    InvalidWebhookPayloadError,
)

__all__ = [
    "verify_webhook_secret",
    "parse_webhook_payload",
    "PaymentServiceError",
    "InvalidWebhookPayloadError",
]
