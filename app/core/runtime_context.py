"""
Application runtime context.

One BotContext is built in main() and handed to the webhook server and the
channel discovery task. It replaces module-level globals: the shared mutable
state (chat target, denylist) lives here.
Must not import handlers or routers.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from aiogram import Bot

from config import Settings
from app.core.denylist import Denylist


@dataclass
class BotContext:
    settings: Settings
    bot: Bot
    denylist: Denylist
    # Destination chat for notifications; set once by channel discovery
    chat_id: Optional[int] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, settings: Settings, bot: Bot) -> "BotContext":
        return cls(
            settings=settings,
            bot=bot,
            denylist=Denylist(
                max_size=settings.denylist_max_size,
                ttl_seconds=settings.denylist_ttl,
            ),
        )

    @property
    def has_chat_target(self) -> bool:
        return self.chat_id is not None
