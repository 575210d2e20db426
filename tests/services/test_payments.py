"""
Unit tests for payment service layer.

Tests focus on business logic:
- Webhook secret verification
- Webhook payload decoding
- Edge cases (empty object, wrong types, non-object bodies)
"""
import json

import pytest

from app.services.payments.service import (
    parse_webhook_payload,
    verify_webhook_secret,
)
from app.services.payments.exceptions import InvalidWebhookPayloadError


class TestVerifyWebhookSecret:
    """Tests for verify_webhook_secret function"""

    def test_matching_secret(self):
        """Exact match is accepted"""
        assert verify_webhook_secret("s3cret", "s3cret") is True

    def test_wrong_secret(self):
        """Any difference is rejected"""
        assert verify_webhook_secret("s3cret ", "s3cret") is False
        assert verify_webhook_secret("S3CRET", "s3cret") is False

    def test_missing_secret(self):
        """No ?secret= parameter is rejected"""
        assert verify_webhook_secret(None, "s3cret") is False
        assert verify_webhook_secret("", "s3cret") is False

    def test_empty_configured_secret_never_matches(self):
        """An empty configured secret must not accept an empty parameter"""
        assert verify_webhook_secret("", "") is False

    def test_non_ascii_secret(self):
        """Unicode secrets are compared as UTF-8"""
        assert verify_webhook_secret("пароль", "пароль") is True


class TestParseWebhookPayload:
    """Tests for parse_webhook_payload function"""

    def test_full_payload(self, webhook_payload):
        """All fields decoded"""
        webhook = parse_webhook_payload(json.dumps(webhook_payload).encode())

        assert webhook.id == webhook_payload["id"]
        assert webhook.email == "buyer@example.com"
        assert webhook.value == "9.99"
        assert webhook.status == 100
        assert webhook.webhook_type == 1
        assert webhook.created_at == "2018-03-02T10:00:00.000+00:00"

    def test_empty_object_gives_zero_values(self):
        """Missing fields are zero-valued, not an error"""
        webhook = parse_webhook_payload(b"{}")

        assert webhook.id == ""
        assert webhook.risk_level == 0
        assert webhook.crypto_value is None

    def test_null_fields_give_zero_values(self):
        """JSON null behaves like an absent field"""
        webhook = parse_webhook_payload(b'{"email": null, "status": null}')

        assert webhook.email == ""
        assert webhook.status == 0

    def test_unknown_fields_ignored(self):
        """Fields Selly may add later are ignored"""
        webhook = parse_webhook_payload(b'{"id": "o-1", "new_field": [1, 2]}')
        assert webhook.id == "o-1"

    def test_malformed_json(self):
        """Truncated JSON is rejected"""
        with pytest.raises(InvalidWebhookPayloadError):
            parse_webhook_payload(b'{"id": "o-1"')

    def test_invalid_utf8(self):
        """Non-UTF-8 body is rejected"""
        with pytest.raises(InvalidWebhookPayloadError):
            parse_webhook_payload(b"\xff\xfe{}")

    def test_non_object_body(self):
        """A JSON array or scalar is not a webhook"""
        with pytest.raises(InvalidWebhookPayloadError):
            parse_webhook_payload(b"[]")
        with pytest.raises(InvalidWebhookPayloadError):
            parse_webhook_payload(b"42")

    def test_mistyped_field(self):
        """A field of the wrong type is rejected"""
        with pytest.raises(InvalidWebhookPayloadError):
            parse_webhook_payload(b'{"risk_level": "high"}')
