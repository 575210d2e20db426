"""
Payment Service Domain Exceptions

All exceptions raised while authenticating and decoding Selly webhooks.
"""


class PaymentServiceError(Exception):
    """Base exception for payment service errors"""
    pass


class InvalidWebhookPayloadError(PaymentServiceError):
    """Raised when the webhook body is not a JSON object of the Selly shape"""
    pass
