"""
Channel Discovery Service

This package resolves the Telegram chat that receives notifications.
"""

from app.services.discovery.service import (
    init_bot,
    parse_chat_id,
    is_arrival_command,
    is_arrival_chat,
    resolve_configured_chat,
    wait_for_arrival,
    discover_channel,
    ARRIVAL_COMMAND,
    GREETING,
)

from app.services.discovery.exceptions import (
    DiscoveryError,
    BotInitError,
    ChannelResolutionError,
    DiscoveryTimeoutError,
)

__all__ = [
    "init_bot",
    "parse_chat_id",
    "is_arrival_command",
    "is_arrival_chat",
    "resolve_configured_chat",
    "wait_for_arrival",
    "discover_channel",
    "ARRIVAL_COMMAND",
    "GREETING",
    "DiscoveryError",
    "BotInitError",
    "ChannelResolutionError",
    "DiscoveryTimeoutError",
]
