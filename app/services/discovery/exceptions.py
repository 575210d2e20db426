"""
Channel Discovery Domain Exceptions

BotInitError and ChannelResolutionError are fatal: the process cannot notify
anyone without them. DiscoveryTimeoutError is not; the server keeps running
without a chat target.
"""


class DiscoveryError(Exception):
    """Base exception for channel discovery errors"""
    pass


class BotInitError(DiscoveryError):
    """Raised when the bot token is malformed or rejected by Telegram"""
    pass


class ChannelResolutionError(DiscoveryError):
    """Raised when TELECHAN names a chat Telegram cannot find"""
    pass


class DiscoveryTimeoutError(DiscoveryError):
    """Raised when no arrival command was seen within the discovery timeout"""
    pass
