"""Application configuration — environment variables and derived constants.

Loads ``BOT_TOKEN`` and the polling / transport settings from the
environment via ``python-dotenv``.  All values are resolved at import time
so other modules can ``from config import …`` without repeated lookups.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import BotLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

# ── Logger (used for startup diagnostics at the bottom of this module) ───────
logger = BotLogger.get_logger()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_bool(raw: str | None, default: bool) -> bool:
    """Interpret ``1/true/yes/on`` and ``0/false/no/off`` (any case)."""
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning("Invalid boolean in environment, using default", extra={"value": raw, "default": default})
    return default


def _parse_int(name: str, default: int, minimum: int = 0) -> int:
    """Read integer variable *name*; fall back to *default* when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer in environment, using default", extra={"variable": name, "default": default})
        return default
    if value < minimum:
        logger.warning("Value below minimum, using default", extra={"variable": name, "default": default})
        return default
    return value


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN")
API_URL: str = os.environ.get("API_URL", "https://api.telegram.org").rstrip("/")
REQUEST_TIMEOUT: int = _parse_int("REQUEST_TIMEOUT", 10, minimum=1)
AUTO_RECONNECT: bool = _parse_bool(os.environ.get("AUTO_RECONNECT"), True)
UPDATES_LIMIT: int = _parse_int("UPDATES_LIMIT", 100, minimum=1)
UPDATES_TIMEOUT: int = _parse_int("UPDATES_TIMEOUT", 60)
ROUTER_CASE_SENSITIVE: bool = _parse_bool(os.environ.get("ROUTER_CASE_SENSITIVE"), False)
SKIP_PENDING_UPDATES: bool = _parse_bool(os.environ.get("SKIP_PENDING_UPDATES"), False)


# ── Startup diagnostics ─────────────────────────────────────────────────────

if BOT_TOKEN:
    logger.info("Config loaded — BOT_TOKEN is set", extra={"api_url": API_URL})
else:
    logger.warning("Config loaded — BOT_TOKEN is NOT set")

logger.info(
    "Polling settings resolved",
    extra={
        "auto_reconnect": AUTO_RECONNECT,
        "updates_limit": UPDATES_LIMIT,
        "updates_timeout": UPDATES_TIMEOUT,
        "request_timeout": REQUEST_TIMEOUT,
    },
)
