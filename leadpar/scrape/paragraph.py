"""First-paragraph extraction from raw, possibly broken, HTML.

No DOM is built. Candidate blocks are located with regular expressions in
four tiers of decreasing precision:

1. ``heading``    -- ``<p>`` blocks after the first ``<h1>``..``<h6>``
2. ``paragraph``  -- ``<p>`` blocks anywhere in the document
3. ``class_hint`` -- elements whose attributes mention body/message/text
4. ``line_break`` -- text between two ``<br>`` tags

A ``<p>`` is considered closed by the next opening or closing p, div, html,
body, table, td or tr tag, since real pages rarely close it properly.

Each candidate is rendered to text and accepted once it holds at least
``min_spaces`` spaces. When a whole pass over the four tiers accepts
nothing, ``min_spaces`` is halved and the pass is repeated; the pass at 0
returns whatever the last candidate was.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional, Tuple

from leadpar.core.models import Candidate, ExtractOptions
from leadpar.infra.logging import get_unified_logger
from leadpar.text.render import Renderer, render_html

_FLAGS = re.IGNORECASE | re.DOTALL

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_SCRIPT_RE = re.compile(r"<script(?:\s+[^>]*)?>.*?</script>", _FLAGS)
_STYLE_RE = re.compile(r"<style(?:\s+[^>]*)?>.*?</style>", _FLAGS)

_CLOSERS = r"</?(?:p|div|html|body|table|td|tr)(?:\s+[^>]*)?>"

HEADING_RE = re.compile(r"<h(\d)(?:\s+[^>]*)?>(.*?)</h\1>", _FLAGS)
PARAGRAPH_RE = re.compile(r"<p(?:\s+[^>]*)?>.*?" + _CLOSERS, _FLAGS)
# blog and forum engines mark the real text with body/message/text classes
CLASS_HINT_RE = re.compile(r"<\w+\s+[^>]*(?:body|message|text)[^>]*>.*?" + _CLOSERS, _FLAGS)
LINE_BREAK_RE = re.compile(
    r"<br(?:\s+[^>]*)?/?>.*?</?(?:br|p|div|html|body|table|td|tr)(?:\s+[^>]*)?/?>", _FLAGS
)

TIERS = ("heading", "paragraph", "class_hint", "line_break")

_TIER_PATTERNS = {
    "heading": PARAGRAPH_RE,
    "paragraph": PARAGRAPH_RE,
    "class_hint": CLASS_HINT_RE,
    "line_break": LINE_BREAK_RE,
}


def clean_document(document: str) -> str:
    """Drop comments, scripts and styles; they never hold visible text."""
    xml = _COMMENT_RE.sub("", document or "")
    xml = _SCRIPT_RE.sub("", xml)
    return _STYLE_RE.sub("", xml)


def _tier_start(xml: str, tier: str) -> Optional[int]:
    if tier != "heading":
        return 0
    heading = HEADING_RE.search(xml)
    return heading.end() if heading else None


def iter_candidates(xml: str, tier: str) -> Iterator[Tuple[str, int]]:
    """Yield ``(fragment, end)`` for every block *tier* finds in a cleaned document.

    ``end`` is the offset the next search resumes from.
    """
    if tier not in _TIER_PATTERNS:
        raise ValueError(f"unknown tier {tier!r}; expected one of {TIERS}")
    pos = _tier_start(xml, tier)
    if pos is None:
        return
    pattern = _TIER_PATTERNS[tier]
    while True:
        m = pattern.search(xml, pos)
        if m is None:
            return
        yield m.group(0), m.end()
        pos = m.end()


def _render_candidates(
    xml: str, tier: str, render: Renderer, strip: Optional[re.Pattern[str]]
) -> Iterator[Candidate]:
    logger = get_unified_logger("scrape", "paragraph")
    for fragment, end in iter_candidates(xml, tier):
        try:
            text = render(fragment)
        except Exception as e:  # a broken renderer only disqualifies this block
            logger.debug("(%s) renderer failed at offset %d: %s", tier, end, e)
            continue
        if strip is not None:
            text = strip.sub("", text, count=1).strip()
        candidate = Candidate(tier=tier, fragment=fragment, text=text, end=end)
        logger.trace("(%s) %r has %d spaces", tier, text, candidate.spaces)  # type: ignore[attr-defined]
        yield candidate


def first_paragraph(
    document: str,
    options: Optional[ExtractOptions] = None,
    *,
    render: Optional[Renderer] = None,
) -> str:
    """Return the first paragraph-like text of *document*, or ``""``.

    ``options.strip`` is removed from the front of each rendered candidate
    before it is measured; ``options.min_spaces`` is the initial number of
    spaces a candidate must contain to be accepted.
    """
    opts = options or ExtractOptions()
    render = render or render_html
    strip = opts.strip_pattern
    logger = get_unified_logger("scrape", "paragraph")

    xml = clean_document(document)
    min_spaces = opts.min_spaces
    while True:
        logger.debug("minimum number of spaces: %d", min_spaces)
        last = ""
        for tier in TIERS:
            for candidate in _render_candidates(xml, tier, render, strip):
                last = candidate.text
                if last and candidate.spaces >= min_spaces:
                    logger.debug("accepted %s candidate with %d spaces", tier, candidate.spaces)
                    return last
        if min_spaces <= 0:
            logger.debug("last candidate %r has %d spaces", last, last.count(" "))
            return last
        min_spaces //= 2


__all__ = [
    "TIERS",
    "HEADING_RE",
    "PARAGRAPH_RE",
    "CLASS_HINT_RE",
    "LINE_BREAK_RE",
    "clean_document",
    "iter_candidates",
    "first_paragraph",
]
