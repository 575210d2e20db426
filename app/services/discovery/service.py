"""
Channel Discovery Service

Runs once at startup to decide which chat receives notifications:

1. TELECHAN is a number      → use it as the chat id
2. TELECHAN is a username    → resolve it with getChat (fatal on failure)
3. TELECHAN unset            → drop any registered webhook, then long-poll
                               getUpdates until someone sends "/here" (or
                               "/here@<this bot>") in a group or supergroup;
                               delete that message and use its chat id
4. Greet the chat with its id so the operator sees the bot is wired up

Private chats and channels never become the chat target. The long-poll phase
is bounded by settings.discovery_timeout and is cancelled with its task at
shutdown.
"""

import asyncio
import logging
import re
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramConflictError,
    TelegramRetryAfter,
    TelegramUnauthorizedError,
)
from aiogram.types import Message
from aiogram.utils.token import TokenValidationError

from app.core.runtime_context import BotContext
from app.services import notifications
from app.services.discovery.exceptions import (
    BotInitError,
    ChannelResolutionError,
    DiscoveryTimeoutError,
)

logger = logging.getLogger(__name__)

ARRIVAL_COMMAND = "/here"
GREETING = "Hi guys: %s"
# Chat types allowed to become the chat target
ARRIVAL_CHAT_TYPES = ("group", "supergroup")

# getUpdates long-poll duration (seconds) held open by Telegram
LONG_POLL_TIMEOUT = 60
# Pause before polling again after a failed getUpdates
POLL_RETRY_DELAY = 3.0

_CHAT_ID_RE = re.compile(r"[+-]?\d+")


async def init_bot(token: str) -> Bot:
    """
    Create the bot and verify the token with getMe.

    Raises:
        BotInitError: token malformed, rejected, or Telegram unreachable
    """
    try:
        bot = Bot(token=token)
    except TokenValidationError as e:
        raise BotInitError(f"Malformed bot token: {e}") from e

    try:
        # Bot.me() caches the getMe result for the mention check during discovery
        me = await bot.me()
    except (TelegramAPIError, asyncio.TimeoutError) as e:
        await bot.session.close()
        raise BotInitError(f"getMe failed: {type(e).__name__}: {e}") from e

    logger.info(f"BOT_AUTHORIZED [username=@{me.username}, id={me.id}]")
    return bot


def parse_chat_id(channel: str) -> Optional[int]:
    """Return the numeric chat id in ``channel``, or None if it is a username."""
    if _CHAT_ID_RE.fullmatch(channel):
        return int(channel)
    return None


def is_arrival_command(text: Optional[str], bot_username: Optional[str] = None) -> bool:
    """
    Match "/here" and the group form "/here@<bot_username>".

    A command addressed to another bot is not an arrival. Without a known
    bot_username only the bare form matches.
    """
    if not text or not text.strip():
        return False
    command, _, mention = text.split()[0].partition("@")
    if command != ARRIVAL_COMMAND:
        return False
    if not mention:
        return True
    return bool(bot_username) and mention.lower() == bot_username.lstrip("@").lower()


def is_arrival_chat(chat_type: Optional[str]) -> bool:
    return chat_type in ARRIVAL_CHAT_TYPES


async def resolve_configured_chat(bot: Bot, channel: str) -> Optional[int]:
    """
    Turn TELECHAN into a chat id.

    Returns:
        The chat id, or None when nothing is configured

    Raises:
        ChannelResolutionError: getChat failed for a username
    """
    if not channel:
        return None

    chat_id = parse_chat_id(channel)
    if chat_id is not None:
        if chat_id == 0:
            logger.warning("TELECHAN=0 is not a chat id, falling back to /here discovery")
            return None
        logger.info(f"CHANNEL_CONFIGURED [chat_id={chat_id}]")
        return chat_id

    username = channel if channel.startswith("@") else "@" + channel
    try:
        chat = await bot.get_chat(chat_id=username)
    except (TelegramAPIError, asyncio.TimeoutError) as e:
        raise ChannelResolutionError(f"Cannot resolve {username}: {type(e).__name__}: {e}") from e

    logger.info(f"CHANNEL_RESOLVED [username={username}, chat_id={chat.id}]")
    return chat.id


async def _delete_arrival_message(bot: Bot, message: Message) -> None:
    try:
        await bot.delete_message(chat_id=message.chat.id, message_id=message.message_id)
    except (TelegramAPIError, asyncio.TimeoutError) as e:
        # Bot may lack delete rights; discovery still succeeds
        logger.warning(
            f"ARRIVAL_DELETE_FAILED [chat_id={message.chat.id}, message_id={message.message_id}, "
            f"error={type(e).__name__}: {e}]"
        )


async def _delete_webhook(bot: Bot) -> None:
    """getUpdates answers 409 while a webhook is set; pending updates are kept."""
    try:
        await bot.delete_webhook(drop_pending_updates=False)
        logger.info("Webhook deleted before discovery polling")
    except TelegramUnauthorizedError as e:
        raise BotInitError(f"Bot token rejected: {e}") from e
    except (TelegramAPIError, asyncio.TimeoutError) as e:
        logger.warning(f"WEBHOOK_DELETE_FAILED [error={type(e).__name__}: {e}]")


async def wait_for_arrival(
    bot: Bot,
    bot_username: Optional[str] = None,
    poll_timeout: int = LONG_POLL_TIMEOUT,
) -> int:
    """
    Long-poll getUpdates until an arrival command shows up in a group.

    Returns:
        Chat id of the message that carried the command

    Raises:
        BotInitError: token revoked, or another consumer holds the update stream
    """
    await _delete_webhook(bot)

    offset: Optional[int] = None
    while True:
        try:
            updates = await bot.get_updates(
                offset=offset,
                timeout=poll_timeout,
                request_timeout=poll_timeout + 10,
            )
        except TelegramUnauthorizedError as e:
            raise BotInitError(f"Bot token rejected while polling: {e}") from e
        except TelegramConflictError as e:
            # Webhook already deleted, so another getUpdates consumer is running
            raise BotInitError(f"getUpdates conflict, another consumer is active: {e}") from e
        except TelegramRetryAfter as e:
            logger.warning(f"DISCOVERY_POLL_THROTTLED [retry_after={e.retry_after}s]")
            await asyncio.sleep(e.retry_after)
            continue
        except (TelegramAPIError, asyncio.TimeoutError) as e:
            logger.warning(
                f"DISCOVERY_POLL_FAILED [error={type(e).__name__}: {e}] - retrying in {POLL_RETRY_DELAY}s"
            )
            await asyncio.sleep(POLL_RETRY_DELAY)
            continue

        for update in updates:
            offset = update.update_id + 1
            message = update.message
            logger.debug(f"DISCOVERY_UPDATE [update_id={update.update_id}, has_message={message is not None}]")
            if message is None or not is_arrival_command(message.text, bot_username):
                continue
            if not is_arrival_chat(message.chat.type):
                logger.warning(
                    f"ARRIVAL_IGNORED [chat_id={message.chat.id}, chat_type={message.chat.type}, "
                    f"reason=not_a_group]"
                )
                continue

            await _delete_arrival_message(bot, message)
            logger.info(f"CHANNEL_DISCOVERED [chat_id={message.chat.id}, chat_type={message.chat.type}]")
            return message.chat.id


async def discover_channel(ctx: BotContext) -> int:
    """
    Resolve the chat target, store it on ``ctx`` and send the greeting.

    Raises:
        ChannelResolutionError: configured channel cannot be resolved (fatal)
        BotInitError: token revoked or getUpdates conflict while polling (fatal)
        DiscoveryTimeoutError: no arrival command within settings.discovery_timeout
    """
    chat_id = await resolve_configured_chat(ctx.bot, ctx.settings.channel)

    if chat_id is None:
        timeout = ctx.settings.discovery_timeout
        logger.info(
            f"CHANNEL_DISCOVERY_WAITING [command={ARRIVAL_COMMAND}, "
            f"timeout={'none' if timeout is None else f'{timeout:g}s'}]"
        )
        me = await ctx.bot.me()
        try:
            chat_id = await asyncio.wait_for(wait_for_arrival(ctx.bot, me.username), timeout)
        except asyncio.TimeoutError as e:
            raise DiscoveryTimeoutError(
                f"No {ARRIVAL_COMMAND} message received within {timeout:g}s"
            ) from e

    ctx.chat_id = chat_id
    await notifications.say(ctx, GREETING, chat_id, notification_type="greeting")
    return chat_id
