from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

DEFAULT_MIN_SPACES = 8

StripSpec = Union[str, re.Pattern[str], None]


@dataclass(frozen=True)
class ExtractOptions:
    """Options for :func:`leadpar.scrape.paragraph.first_paragraph`.

    ``strip`` is either a literal removed from the start of each rendered
    candidate, or a compiled regex whose first match is removed.
    """

    strip: StripSpec = None
    min_spaces: int = DEFAULT_MIN_SPACES

    def __post_init__(self) -> None:
        if self.min_spaces < 0:
            object.__setattr__(self, "min_spaces", 0)

    @property
    def strip_pattern(self) -> Optional[re.Pattern[str]]:
        if self.strip is None or self.strip == "":
            return None
        if isinstance(self.strip, str):
            return re.compile("^" + re.escape(self.strip))
        return self.strip

    @classmethod
    def from_config(cls, conf: Any) -> "ExtractOptions":
        """Build options from an :class:`~leadpar.core.config.AppConfig`."""
        strip: StripSpec = conf.strip
        if strip and conf.strip_regex:
            strip = re.compile(strip)
        return cls(strip=strip, min_spaces=conf.min_spaces)


@dataclass(frozen=True)
class Candidate:
    """One matched block: raw fragment, rendered text, and where scanning resumes."""

    tier: str
    fragment: str
    text: str
    end: int

    @property
    def spaces(self) -> int:
        return self.text.count(" ")


@dataclass
class ExcerptEntry:
    url: str
    excerpt: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.excerpt is not None


@dataclass
class BatchResult:
    entries: List[ExcerptEntry] = field(default_factory=list)
    remaining: List[str] = field(default_factory=list)

    @property
    def excerpts(self) -> List[Optional[str]]:
        return [e.excerpt for e in self.entries]

    @property
    def success(self) -> int:
        return sum(1 for e in self.entries if e.ok)

    @property
    def failed(self) -> int:
        return len(self.entries) - self.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": len(self.entries),
            "success": self.success,
            "failed": self.failed,
            "entries": [{"url": e.url, "excerpt": e.excerpt} for e in self.entries],
            "remaining": list(self.remaining),
        }
