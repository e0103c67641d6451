"""Match cursor over a message's command text.

:class:`Cursor` is an immutable snapshot: every scan returns a new cursor
(or ``None`` and leaves the caller's cursor untouched), so backtracking is a
matter of keeping the old one.  :class:`Arguments` is the mutable facade
handed to handlers for parsing whatever follows the command.
"""

from __future__ import annotations

import dataclasses
from typing import Optional

WHITESPACE_AND_NEWLINES = frozenset(chr(c) for c in range(0x3001) if chr(c).isspace())


@dataclasses.dataclass(frozen=True)
class Cursor:
    text: str
    position: int = 0
    case_sensitive: bool = False
    skip_chars: frozenset[str] = WHITESPACE_AND_NEWLINES

    def skipped(self) -> "Cursor":
        """Cursor advanced past any skip characters."""
        pos = self.position
        while pos < len(self.text) and self.text[pos] in self.skip_chars:
            pos += 1
        return self if pos == self.position else dataclasses.replace(self, position=pos)

    @property
    def at_end(self) -> bool:
        """True if only skip characters remain."""
        return self.skipped().position >= len(self.text)

    @property
    def remainder(self) -> str:
        return self.text[self.skipped().position:]

    def same(self, a: str, b: str) -> bool:
        return a == b if self.case_sensitive else a.casefold() == b.casefold()

    def scan_word(self) -> tuple[Optional[str], "Cursor"]:
        """Scan up to the next skip character.

        Returns ``(None, self)`` when nothing but skip characters is left.
        """
        start = self.skipped().position
        end = start
        while end < len(self.text) and self.text[end] not in self.skip_chars:
            end += 1
        if end == start:
            return None, self
        return self.text[start:end], dataclasses.replace(self, position=end)

    def scan_literal(self, expected: str) -> Optional["Cursor"]:
        """Consume *expected* (honouring case sensitivity), or return ``None``."""
        start = self.skipped().position
        candidate = self.text[start:start + len(expected)]
        if len(candidate) == len(expected) and self.same(candidate, expected):
            return dataclasses.replace(self, position=start + len(expected))
        return None

    def scan_rest(self) -> tuple[str, "Cursor"]:
        """Everything left, without leading and trailing skip characters."""
        rest = self.remainder
        end = len(rest)
        while end > 0 and rest[end - 1] in self.skip_chars:
            end -= 1
        return rest[:end], dataclasses.replace(self, position=len(self.text))


class Arguments:
    """Mutable view of a :class:`Cursor`, positioned after the matched command.

    Handlers consume their arguments through it; whatever they leave behind
    is what the router reports as a partial match.
    """

    def __init__(self, cursor: Cursor) -> None:
        self.cursor = cursor

    @property
    def is_at_end(self) -> bool:
        return self.cursor.at_end

    def scan_word(self) -> Optional[str]:
        word, self.cursor = self.cursor.scan_word()
        return word

    def scan_words(self) -> list[str]:
        words = []
        while (word := self.scan_word()) is not None:
            words.append(word)
        return words

    def scan_int(self) -> Optional[int]:
        """Consume the next word if it is an integer; otherwise consume nothing."""
        word, after = self.cursor.scan_word()
        if word is None:
            return None
        try:
            value = int(word)
        except ValueError:
            return None
        self.cursor = after
        return value

    def scan_literal(self, expected: str) -> bool:
        after = self.cursor.scan_literal(expected)
        if after is None:
            return False
        self.cursor = after
        return True

    def scan_rest_of_string(self) -> str:
        rest, self.cursor = self.cursor.scan_rest()
        return rest

    def peek_rest(self) -> str:
        """The remaining text, without consuming it."""
        return self.cursor.scan_rest()[0]
