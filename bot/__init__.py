"""Telegram bot application layer — router, handlers and polling loop.

This package may import from ``core/``, ``sdk/`` and ``config`` only.
"""

from bot.context import Context
from bot.dispatcher import process_update, run
from bot.handlers import install_defaults
from bot.router import Command, ContentType, RouteEntry, Router, Slash
from bot.scanner import Arguments, Cursor

__all__ = [
    # Routing
    "Router",
    "RouteEntry",
    "Command",
    "ContentType",
    "Slash",
    "Context",
    "Arguments",
    "Cursor",
    # Dispatcher
    "run",
    "process_update",
    # Stock handlers
    "install_defaults",
]
