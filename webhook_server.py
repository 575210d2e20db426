"""
HTTP Webhook Server

Serves POST /webhook (Selly notifications) and GET /health.
/health does not call Telegram - it only reads the runtime context.
"""
import logging
from typing import Any, Dict

from aiohttp import web

from app.api.selly_webhook import register_webhook_route
from app.core.runtime_context import BotContext

logger = logging.getLogger(__name__)


def _health_handler(ctx: BotContext):
    async def health_handler(request: web.Request) -> web.Response:
        """
        Response format:
            {
                "status": "ok",
                "chat_target_set": true | false,
                "denylisted": 3,
                "started_at": "2024-01-01T12:00:00+00:00"
            }
        """
        response_data: Dict[str, Any] = {
            "status": "ok",
            "chat_target_set": ctx.has_chat_target,
            "denylisted": len(ctx.denylist),
            "started_at": ctx.started_at.isoformat(),
        }
        return web.json_response(response_data, status=200)

    return health_handler


def create_webhook_app(ctx: BotContext) -> web.Application:
    """Build the aiohttp application with the webhook and health routes."""
    app = web.Application()
    app.router.add_get("/health", _health_handler(ctx))
    register_webhook_route(app, ctx)
    return app


async def start_webhook_server(ctx: BotContext) -> web.AppRunner:
    """
    Start listening on settings.bind_address.

    Returns:
        AppRunner; call cleanup() to stop the server
    """
    app = create_webhook_app(ctx)
    runner = web.AppRunner(app)
    await runner.setup()

    host, port = ctx.settings.host, ctx.settings.port
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Webhook server started on http://{host}:{port}")
    return runner


async def stop_webhook_server(runner: web.AppRunner) -> None:
    try:
        await runner.cleanup()
        logger.info("Webhook server stopped")
    except (OSError, RuntimeError) as e:
        logger.error(f"Error stopping webhook server: {e}")
