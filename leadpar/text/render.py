"""Markup to one-line plain text."""

from __future__ import annotations

import re
from typing import Callable, Optional

from bs4 import BeautifulSoup

from leadpar.infra.logging import get_unified_logger
from leadpar.text.entities import EntityDecoder, decode_entities

Renderer = Callable[[str], str]

# Elements that separate words when rendered on one line
_BLOCK_TAGS = [
    "p", "div", "br", "li", "td", "th", "tr", "table", "h1", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "section", "article", "header", "footer", "dd", "dt",
]
_TAG_RE = re.compile(r"<[^>]*>")


def squeeze(text: str) -> str:
    """Collapse every whitespace run (including NBSP) to a single space."""
    return " ".join(text.split())


def _strip_tags_fallback(fragment: str) -> str:
    return _TAG_RE.sub(" ", fragment)


def render_html(fragment: str, decoder: Optional[EntityDecoder] = None) -> str:
    """Render an HTML fragment as a single line of text.

    Character references are left untouched by the parser and resolved by
    :func:`~leadpar.text.entities.decode_entities`, so unknown references
    show up as ``*``.
    """
    if not fragment:
        return ""
    try:
        soup = BeautifulSoup(fragment.replace("&", "&amp;"), "html.parser")
        for tag in soup.find_all(_BLOCK_TAGS):
            if tag.name == "br":
                tag.replace_with(" ")
            else:
                tag.insert_before(" ")
                tag.insert_after(" ")
        text = soup.get_text()
    except Exception as e:  # parser bugs on hostile input must not escape
        get_unified_logger("text", "render").debug(
            "bs4 could not render fragment, falling back to tag strip: %s", e
        )
        text = _strip_tags_fallback(fragment)
    return squeeze(decode_entities(text, decoder))


def make_renderer(decoder: Optional[EntityDecoder] = None) -> Renderer:
    """Bind a decoder so the result fits the ``render(fragment) -> str`` shape."""

    def _render(fragment: str) -> str:
        return render_html(fragment, decoder)

    return _render


__all__ = ["Renderer", "render_html", "make_renderer", "squeeze"]
