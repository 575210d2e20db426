"""
Pytest configuration and shared fixtures.
"""
import pytest
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

from config import Settings
from app.core.runtime_context import BotContext

TEST_SECRET = "s3cret"
TEST_TOKEN = "123456:ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghi"


@pytest.fixture
def settings():
    """Settings with no TELECHAN and a short discovery timeout"""
    return Settings(
        bind_address=":8080",
        telegram_token=TEST_TOKEN,
        secret=TEST_SECRET,
        discovery_timeout=5.0,
        denylist_max_size=100,
    )


@pytest.fixture
def mock_bot():
    """Mock aiogram Bot"""
    bot = MagicMock()
    me = SimpleNamespace(id=1, username="selly_notify_bot")
    bot.get_me = AsyncMock(return_value=me)
    bot.me = AsyncMock(return_value=me)
    bot.delete_webhook = AsyncMock(return_value=True)
    bot.send_message = AsyncMock()
    bot.get_chat = AsyncMock()
    bot.get_updates = AsyncMock(return_value=[])
    bot.delete_message = AsyncMock(return_value=True)
    bot.session = MagicMock()
    bot.session.close = AsyncMock()
    return bot


@pytest.fixture
def ctx(settings, mock_bot):
    """Runtime context without a chat target"""
    return BotContext.from_settings(settings, mock_bot)


@pytest.fixture
def webhook_payload():
    """Selly webhook body as posted on a completed order"""
    return {
        "id": "2d5a1f0e-7c2b-4e2a-9b55-0d8b7cbd1a10",
        "product_id": "a1b2c3d4",
        "email": "buyer@example.com",
        "ip_address": "198.51.100.23",
        "country_code": "US",
        "user_agent": "Mozilla/5.0",
        "value": "9.99",
        "currency": "USD",
        "gateway": "PayPal",
        "risk_level": 0,
        "status": 100,
        "delivered": "KEY-1234-5678",
        "crypto_value": None,
        "crypto_address": None,
        "referral": None,
        "webhook_type": 1,
        "created_at": "2018-03-02T10:00:00.000+00:00",
        "updated_at": "2018-03-02T10:05:00.000+00:00",
    }


def _make_update(
    update_id: int,
    text: Optional[str] = None,
    chat_id: int = -100500,
    message_id: int = 7,
    chat_type: str = "supergroup",
):
    message = None
    if text is not None:
        message = SimpleNamespace(
            text=text,
            message_id=message_id,
            chat=SimpleNamespace(id=chat_id, type=chat_type),
        )
    return SimpleNamespace(update_id=update_id, message=message)


@pytest.fixture
def make_update():
    """Factory for minimal aiogram Update stand-ins; text=None means no message"""
    return _make_update
