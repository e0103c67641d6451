"""Core utilities — logging and bot-identity addressing.

This package is framework-agnostic. It must NEVER import from ``bot/`` or ``sdk/``.
"""

from core.identity import addressed_to, extract_command, normalize_bot_name
from core.logger import BotLogger, install_redaction, redact, register_secret

__all__ = [
    "addressed_to",
    "extract_command",
    "normalize_bot_name",
    "BotLogger",
    "install_redaction",
    "redact",
    "register_secret",
]
