"""Stock handlers: fallback replies plus ``/start`` and ``/help``.

:func:`install_defaults` wires them into a :class:`~bot.router.Router`.
Replies go out with :meth:`~bot.context.Context.respond_async`, so handlers
never block the loop that runs the router.
"""

from bot.context import Context
from bot.router import Router
from core.logger import BotLogger

logger = BotLogger.get_logger()


def reply_partial_match(context: Context) -> bool:
    """Tell the user part of their input was not understood."""
    leftover = context.args.scan_rest_of_string()
    logger.info("Ignored trailing input", extra={"chat_id": context.chat_id, "command": context.command})
    context.respond_async(f"❗ Part of your input was ignored: {leftover}")
    return True


def reply_unknown_command(context: Context) -> bool:
    """Reply to a command no route recognised."""
    logger.info("Unrecognized command", extra={"chat_id": context.chat_id, "command": context.command})
    context.respond_async(f"Unrecognized command: {context.command}. Type /help for help.")
    return True


def reply_unsupported_content(context: Context) -> bool:
    logger.info("Unsupported content type", extra={"chat_id": context.chat_id})
    context.respond_async("Unsupported content type.")
    return True


def install_defaults(router: Router) -> Router:
    """Register ``/start`` and ``/help`` and the three fallback replies.

    Call this *after* registering the bot's own routes so they take
    priority.
    """

    @router.command("start", description="Start talking to the bot")
    def handle_start(context: Context) -> None:
        user = context.from_user
        name = user.first_name if user else "there"
        logger.info("User invoked /start", extra={"chat_id": context.chat_id, "command": "start"})
        context.respond_async(f"👋 Hello, {name}! Type /help to see what I can do.")

    @router.command("help", description="Show available commands")
    def handle_help(context: Context) -> None:
        lines = [
            f"/{name} — {description}" if description else f"/{name}"
            for name, description in router.commands().items()
        ]
        context.respond_async("📖 Available commands:\n" + "\n".join(lines))

    router.partial_match = reply_partial_match
    router.unknown_command = reply_unknown_command
    router.unsupported_content_type = reply_unsupported_content
    return router
