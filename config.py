import math
import os
import re
import sys
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

# ====================================================================================
# ENVIRONMENT CONFIGURATION
# ====================================================================================
# Recognized variables:
#   PORT        bind address; "3000" → ":3000", ":9090" kept, unset → ":8080"
#   TOKENTELE   Telegram bot token (REQUIRED)
#   SECRET      shared secret expected in ?secret= on /webhook (REQUIRED)
#   TELECHAN    target chat: numeric id or channel/supergroup username (optional)
#   TOKENSELLY  Selly API token
#   EMAIL       Selly account email
#
# Tuning (optional):
#   DISCOVERY_TIMEOUT   seconds to wait for "/here" (0 = wait forever)
#   DENYLIST_MAX_SIZE   max remembered offending IPs
#   DENYLIST_TTL        seconds an IP stays denied (0 = forever)
#   SELLY_USER_AGENT    User-Agent sent to the Selly API
#   SELLY_PROXY         proxy URL for Selly API calls (socks5://127.0.0.1:1080)
#
# Secrets are validated at startup and never printed.
# ====================================================================================

DEFAULT_BIND_ADDRESS = ":8080"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_DISCOVERY_TIMEOUT = 3600.0
DEFAULT_DENYLIST_MAX_SIZE = 10000

_NUMERIC_RE = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class Settings:
    """Process-lifetime settings, read once at startup."""
    bind_address: str
    telegram_token: str
    secret: str
    channel: str = ""
    selly_token: str = ""
    selly_email: str = ""
    selly_user_agent: str = ""
    selly_proxy: Optional[str] = None
    discovery_timeout: Optional[float] = DEFAULT_DISCOVERY_TIMEOUT
    denylist_max_size: int = DEFAULT_DENYLIST_MAX_SIZE
    denylist_ttl: Optional[float] = None

    @property
    def host(self) -> str:
        return split_bind_address(self.bind_address)[0]

    @property
    def port(self) -> int:
        return split_bind_address(self.bind_address)[1]


def normalize_bind_address(value: Optional[str]) -> str:
    """
    Normalize the PORT variable into a "host:port" bind address.

    Example:
        normalize_bind_address("3000") -> ":3000"
        normalize_bind_address(":9090") -> ":9090"
        normalize_bind_address(None) -> ":8080"
    """
    if not value:
        return DEFAULT_BIND_ADDRESS
    if _NUMERIC_RE.fullmatch(value):
        return ":" + value
    return value


def split_bind_address(address: str) -> Tuple[str, int]:
    """
    Split "host:port" into (host, port). An empty host means all interfaces.

    Raises:
        ValueError: port is missing or not a valid TCP port
    """
    host, sep, port_str = address.rpartition(":")
    if not sep:
        raise ValueError(f"Bind address must be host:port, got: {address}")
    port = int(port_str)
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range: {port}")
    host = host.strip("[]") or DEFAULT_HOST
    return host, port


def _fatal(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)
    sys.exit(1)


def _float_or_none(environ: Mapping[str, str], key: str, default: Optional[float]) -> Optional[float]:
    raw = environ.get(key, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        _fatal(f"{key} must be a number of seconds, got: {raw}")
    if not math.isfinite(value) or value < 0:
        _fatal(f"{key} must be 0 or a positive number of seconds, got: {raw}")
    # 0 disables the limit
    return value if value > 0 else None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read settings from the environment.

    Exits the process with status 1 when a required variable is missing or a
    value cannot be parsed.
    """
    if environ is None:
        environ = os.environ

    bind_address = normalize_bind_address(environ.get("PORT"))
    try:
        split_bind_address(bind_address)
    except ValueError as e:
        _fatal(f"Invalid PORT={environ.get('PORT')}: {e}")

    telegram_token = environ.get("TOKENTELE", "")
    if not telegram_token:
        _fatal("TOKENTELE environment variable is not set!")

    secret = environ.get("SECRET", "")
    if not secret:
        _fatal("SECRET environment variable is not set! Refusing to accept unauthenticated webhooks")

    denylist_max_size_str = environ.get("DENYLIST_MAX_SIZE", "")
    denylist_max_size = DEFAULT_DENYLIST_MAX_SIZE
    if denylist_max_size_str:
        try:
            denylist_max_size = int(denylist_max_size_str)
        except ValueError:
            _fatal(f"DENYLIST_MAX_SIZE must be an integer, got: {denylist_max_size_str}")
        if denylist_max_size < 1:
            _fatal(f"DENYLIST_MAX_SIZE must be positive, got: {denylist_max_size}")

    selly_token = environ.get("TOKENSELLY", "")
    selly_email = environ.get("EMAIL", "")
    if not (selly_token and selly_email):
        print("INFO: TOKENSELLY/EMAIL not set - Selly API client unavailable", flush=True)

    settings = Settings(
        bind_address=bind_address,
        telegram_token=telegram_token,
        secret=secret,
        channel=environ.get("TELECHAN", "").strip(),
        selly_token=selly_token,
        selly_email=selly_email,
        selly_user_agent=environ.get("SELLY_USER_AGENT", ""),
        selly_proxy=environ.get("SELLY_PROXY") or None,
        discovery_timeout=_float_or_none(environ, "DISCOVERY_TIMEOUT", DEFAULT_DISCOVERY_TIMEOUT),
        denylist_max_size=denylist_max_size,
        denylist_ttl=_float_or_none(environ, "DENYLIST_TTL", None),
    )

    print(f"INFO: Config loaded, bind address {settings.bind_address}", flush=True)
    if settings.channel:
        print(f"INFO: Target chat configured via TELECHAN={settings.channel}", flush=True)
    else:
        print("INFO: TELECHAN not set - send /here in the target group to register it", flush=True)
    return settings
