"""Reply sinks: where excerpts go when a batch streams them to a chat."""

from __future__ import annotations

import textwrap
from enum import Enum
from typing import List, Optional, Protocol

from rich.console import Console

from leadpar.core.config import DEFAULT_REPLY_MAX_LENGTH

ELLIPSIS = "..."


class TruncateMode(str, Enum):
    """How an overlong reply is shaped to fit one chat line."""

    TRUNCATE = "truncate"
    SPLIT = "split"
    NONE = "none"


class ReplySink(Protocol):
    def reply(self, text: str, truncate: TruncateMode) -> None: ...


def fit_reply(text: str, mode: TruncateMode, max_length: int = DEFAULT_REPLY_MAX_LENGTH) -> List[str]:
    """Return the line(s) to send for *text* under *mode*."""
    mode = TruncateMode(mode)
    if mode is TruncateMode.NONE or len(text) <= max_length:
        return [text]
    if mode is TruncateMode.TRUNCATE:
        keep = max(0, max_length - len(ELLIPSIS))
        return [(text[:keep].rstrip() + ELLIPSIS)[: max(0, max_length)]]
    return textwrap.wrap(text, width=max(1, max_length), break_long_words=True, break_on_hyphens=False)


class ListReplySink:
    """Collects shaped replies in memory."""

    def __init__(self, max_length: int = DEFAULT_REPLY_MAX_LENGTH) -> None:
        self.max_length = max_length
        self.lines: List[str] = []

    def reply(self, text: str, truncate: TruncateMode = TruncateMode.TRUNCATE) -> None:
        self.lines.extend(fit_reply(text, truncate, self.max_length))


class ConsoleReplySink:
    """Prints replies to the terminal through :class:`rich.console.Console`."""

    def __init__(
        self, console: Optional[Console] = None, max_length: int = DEFAULT_REPLY_MAX_LENGTH
    ) -> None:
        self.console = console or Console()
        self.max_length = max_length

    def reply(self, text: str, truncate: TruncateMode = TruncateMode.TRUNCATE) -> None:
        for line in fit_reply(text, truncate, self.max_length):
            # page text must not be read as rich markup
            self.console.print(line, markup=False, highlight=False, soft_wrap=True)


__all__ = ["TruncateMode", "ReplySink", "fit_reply", "ListReplySink", "ConsoleReplySink"]
