"""Bot-identity addressing helpers.

Works on plain strings so it can be used with raw update dicts as well as
with :class:`sdk.models.Message`.  A message is *addressed* to a bot unless
it carries a ``/command@other_bot`` suffix naming a different bot.
"""

from core.logger import BotLogger

logger = BotLogger.get_logger()


def normalize_bot_name(name: str) -> str:
    """Canonical form of a bot username used for comparisons.

    Leading ``@`` and the mandatory ``bot`` suffix are dropped and the result
    is lower-cased, so ``@Weather_Bot``, ``weather_bot`` and ``WEATHER_BOT``
    all compare equal.
    """
    name = name.strip().lstrip("@").lower()
    if name.endswith("bot"):
        name = name[: -len("bot")]
    return name


def same_bot(a: str, b: str) -> bool:
    return normalize_bot_name(a) == normalize_bot_name(b)


def extract_command(text: str | None, bot_name: str | None) -> str | None:
    """Return *text* ready for command matching, or ``None``.

    - ``/cmd@this_bot args`` becomes ``/cmd args``;
    - ``/cmd@other_bot args`` yields ``None`` (not addressed to us);
    - a leading ``@this_bot`` mention is stripped;
    - anything else is returned unchanged.

    When *bot_name* is unknown every ``@suffix`` is accepted and stripped.
    """
    if text is None:
        return None

    if text.startswith("/"):
        word = text.split(maxsplit=1)[0] if text.strip() else text
        if "@" not in word:
            return text
        command, _, target = word.partition("@")
        if bot_name is not None and not same_bot(target, bot_name):
            logger.debug("Command addressed to another bot", extra={"command": command, "target": target})
            return None
        return command + text[len(word):]

    if text.startswith("@") and bot_name is not None:
        parts = text.split(maxsplit=1)
        if same_bot(parts[0], bot_name):
            return parts[1] if len(parts) > 1 else ""

    return text


def addressed_to(text: str | None, bot_name: str | None) -> bool:
    """True unless *text* is a command explicitly addressed to another bot."""
    return text is None or extract_command(text, bot_name) is not None
