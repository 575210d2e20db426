"""
Selly Webhook API

POST /webhook?secret=<SECRET>: order notifications from Selly.

Responsibilities:
1. Identify the caller by IP; unknown address → 400.
2. Drop requests from denylisted IPs without writing a body.
3. Check the shared secret; mismatch → 403 and the IP is denylisted.
4. Decode the payload; malformed → 400.
5. Relay the formatted order to the chat target, respond 200 "200".

Registration: webhook_server.create_webhook_app() calls register_webhook_route().
"""

import logging

from aiohttp import web

from app.core.runtime_context import BotContext
from app.services import notifications
from app.services.payments import (
    InvalidWebhookPayloadError,
    parse_webhook_payload,
    verify_webhook_secret,
)

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhook"


async def handle_webhook(request: web.Request, ctx: BotContext) -> web.Response:
    """
    Handle a Selly webhook.

    Responses:
        200 "200"                 accepted and relayed
        403 "Invalid secret"      wrong or missing ?secret=
        400 "Invalid payload"     body is not a Selly webhook object
        400 "Bad remote address"  caller address unavailable
        200 with empty body       caller is denylisted (nothing written)
    """
    ip = request.remote
    if not ip:
        logger.error("WEBHOOK_REJECTED [reason=no_remote_address]")
        return web.Response(status=400, text="Bad remote address")

    if ip in ctx.denylist:
        logger.debug(f"WEBHOOK_DROPPED [ip={ip}, reason=denylisted]")
        return web.Response()

    if not verify_webhook_secret(request.query.get("secret"), ctx.settings.secret):
        ctx.denylist.add(ip)
        logger.warning(f"WEBHOOK_INVALID_SECRET [ip={ip}, host={request.host}] - ip denylisted")
        return web.Response(status=403, text="Invalid secret")

    body = await request.read()
    try:
        webhook = parse_webhook_payload(body)
    except InvalidWebhookPayloadError as e:
        logger.warning(f"WEBHOOK_INVALID_PAYLOAD [ip={ip}, error={e}]")
        return web.Response(status=400, text="Invalid payload")

    logger.info(
        f"WEBHOOK_ACCEPTED [order_id={webhook.id or '-'}, product_id={webhook.product_id or '-'}, "
        f"status={webhook.status}, webhook_type={webhook.webhook_type}]"
    )
    await notifications.say(
        ctx,
        notifications.format_webhook_message(webhook),
        notification_type="webhook",
    )
    return web.Response(text="200")


def register_webhook_route(app: web.Application, ctx: BotContext) -> None:
    """Register POST /webhook bound to ``ctx``."""
    async def webhook_handler(request: web.Request) -> web.Response:
        return await handle_webhook(request, ctx)

    app.router.add_post(WEBHOOK_PATH, webhook_handler)
    logger.info(f"Selly webhook registered: POST {WEBHOOK_PATH}")
