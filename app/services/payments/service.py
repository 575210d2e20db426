"""
Payment Service Layer

Authentication and decoding of inbound Selly webhooks.

All functions are pure business logic - no aiohttp or aiogram types.
- Secret check is constant-time
- Decoding fails loudly (InvalidWebhookPayloadError) on malformed JSON,
  non-object bodies and mistyped fields
- A JSON object with missing fields decodes to zero values and is accepted
"""

import hmac
import json
from typing import Optional

from pydantic import ValidationError

from app.services.payments.exceptions import InvalidWebhookPayloadError
from payments.selly import SellyWebhook


def verify_webhook_secret(provided: Optional[str], expected: str) -> bool:
    """
    Compare the ?secret= query value with the configured secret.

    An empty configured secret never matches.
    """
    if not expected or provided is None:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def parse_webhook_payload(body: bytes) -> SellyWebhook:
    """
    Decode a webhook request body.

    Args:
        body: Raw request body

    Returns:
        SellyWebhook (missing fields zero-valued)

    Raises:
        InvalidWebhookPayloadError: body is not a JSON object of the expected shape
    """
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidWebhookPayloadError(f"Body is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidWebhookPayloadError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return SellyWebhook.model_validate(data)
    except ValidationError as e:
        raise InvalidWebhookPayloadError(f"Unexpected webhook shape: {e.error_count()} invalid field(s)") from e
