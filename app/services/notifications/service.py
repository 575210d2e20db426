"""
Notification Service Layer

Sends text to the chat target held on the BotContext.

Delivery contract:
- Telegram/network failures are logged and swallowed, never retried
- Callers (the webhook handler, channel discovery) never see a send error
- Returns True when Telegram accepted the message, False otherwise
"""

import asyncio
import logging
from typing import Any

from aiogram.exceptions import TelegramAPIError

from app.core.runtime_context import BotContext
from app.services.notifications.exceptions import NotificationFormatError
from payments.selly import SellyWebhook

logger = logging.getLogger(__name__)

# Telegram rejects longer message texts
TELEGRAM_MESSAGE_LIMIT = 4096

_WEBHOOK_LABELS = (
    ("product_id", "Product"),
    ("email", "Email"),
    ("ip_address", "IP"),
    ("country_code", "Country"),
    ("user_agent", "User agent"),
    ("value", "Value"),
    ("currency", "Currency"),
    ("gateway", "Gateway"),
    ("risk_level", "Risk level"),
    ("status", "Status"),
    ("delivered", "Delivered"),
    ("crypto_value", "Crypto value"),
    ("crypto_address", "Crypto address"),
    ("referral", "Referral"),
    ("webhook_type", "Webhook type"),
    ("created_at", "Created"),
    ("updated_at", "Updated"),
)


def render_message(message: str, *args: Any) -> str:
    """
    Apply printf-style args. Without args the text is used verbatim, so
    payload text containing "%" is never treated as a template.
    """
    if not args:
        return message
    try:
        return message % args
    except (TypeError, ValueError) as e:
        raise NotificationFormatError(f"Cannot format {message!r} with {len(args)} args: {e}") from e


def truncate_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def format_webhook_message(webhook: SellyWebhook) -> str:
    """Render a webhook payload as a multi-line chat message."""
    lines = [f"Selly order {webhook.id or '(no id)'}"]
    for field_name, label in _WEBHOOK_LABELS:
        value = getattr(webhook, field_name)
        if value is None or value == "":
            value = "-"
        lines.append(f"{label}: {value}")
    return "\n".join(lines)


async def say(
    ctx: BotContext,
    message: str,
    *args: Any,
    notification_type: str = "custom",
) -> bool:
    """
    Format and send a message to the chat target.

    Args:
        ctx: Runtime context (bot and chat target)
        message: Text or printf-style template
        *args: Template arguments
        notification_type: Label for logs ("webhook", "greeting", ...)

    Returns:
        bool: True if Telegram accepted the message

    Raises:
        NotificationFormatError: template and args don't match (programming error)
    """
    text = truncate_message(render_message(message, *args))

    if ctx.chat_id is None:
        logger.warning(f"NOTIFICATION_SKIPPED [type={notification_type}, reason=chat_target_not_set]")
        return False

    try:
        await ctx.bot.send_message(ctx.chat_id, text)
    except (TelegramAPIError, asyncio.TimeoutError) as e:
        logger.error(
            f"NOTIFICATION_FAILED [type={notification_type}, chat_id={ctx.chat_id}, "
            f"error={type(e).__name__}: {str(e)[:100]}]"
        )
        return False

    logger.info(f"NOTIFICATION_SENT [type={notification_type}, chat_id={ctx.chat_id}]")
    return True
