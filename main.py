import asyncio
import logging
import sys
from typing import Optional

# Configure logging FIRST (before any other imports that may log)
# Routes INFO/WARNING → stdout, ERROR/CRITICAL → stderr for correct container classification
from app.core.logging_config import setup_logging
setup_logging()

import config
import webhook_server
from app.core.runtime_context import BotContext
from app.services.discovery import (
    BotInitError,
    ChannelResolutionError,
    DiscoveryTimeoutError,
    discover_channel,
    init_bot,
)

# ====================================================================================
# STARTUP ORDER
# ====================================================================================
# 1. Settings       : config.load_settings() exits on missing TOKENTELE / SECRET
# 2. Bot            : getMe must succeed, otherwise exit 1 before serving HTTP
# 3. Webhook server : POST /webhook, GET /health
# 4. Discovery task : resolves the chat target (TELECHAN or "/here"), greets it
#
# Fatal: bot init failure, TELECHAN that cannot be resolved.
# Non-fatal: discovery timeout (server keeps running, notifications skipped).
# ====================================================================================

logger = logging.getLogger(__name__)


async def _serve_forever() -> None:
    await asyncio.Event().wait()


async def main(settings: Optional[config.Settings] = None) -> int:
    """
    Run the notifier until cancelled.

    Returns:
        Process exit code
    """
    if settings is None:
        settings = config.load_settings()

    try:
        bot = await init_bot(settings.telegram_token)
    except BotInitError as e:
        logger.critical(f"BOT_INIT_FAILED: {e}")
        return 1

    ctx = BotContext.from_settings(settings, bot)
    runner = None
    discovery_task: Optional[asyncio.Task] = None
    try:
        runner = await webhook_server.start_webhook_server(ctx)

        discovery_task = asyncio.create_task(discover_channel(ctx), name="channel-discovery")
        logger.info("Channel discovery task started")
        try:
            await discovery_task
        except (ChannelResolutionError, BotInitError) as e:
            logger.critical(f"CHANNEL_DISCOVERY_FAILED: {e}")
            return 1
        except DiscoveryTimeoutError as e:
            logger.error(f"CHANNEL_DISCOVERY_TIMEOUT: {e} - serving without a chat target")

        await _serve_forever()
        return 0
    finally:
        if discovery_task is not None and not discovery_task.done():
            discovery_task.cancel()
            try:
                await discovery_task
            except asyncio.CancelledError:
                logger.info("Channel discovery task cancelled")
        if runner is not None:
            await webhook_server.stop_webhook_server(runner)
        await bot.session.close()
        logger.info("Shutdown complete")


def cli() -> None:
    settings = config.load_settings()
    try:
        exit_code = asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
