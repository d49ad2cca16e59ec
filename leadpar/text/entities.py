"""HTML character reference decoding.

Two strategies are available:

- ``reference``: the full HTML5 reference table shipped with the interpreter
  (``html.entities``), plus decimal and hexadecimal numeric references.
- ``builtin``: a compact table of the references most often met in page text,
  falling back to reading numeric references as code points.

Both turn any reference they cannot resolve into ``*`` and never raise.
"""

from __future__ import annotations

import html
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from html.entities import html5, name2codepoint
from typing import Any, Dict, Optional

PLACEHOLDER = "*"

STRATEGIES = ("reference", "builtin")

UNESCAPE_TABLE: Dict[str, str] = {
    "laquo": "<<",
    "raquo": ">>",
    "quot": '"',
    "apos": "'",
    "micro": "u",
    "copy": "(c)",
    "trade": "(tm)",
    "reg": "(R)",
    "#174": "(R)",
    "#8220": '"',
    "#8221": '"',
    "#8212": "--",
    "#39": "'",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "hellip": "…",
    "nbsp": " ",
}

_REFERENCE_RE = re.compile(r"&(#[xX][0-9a-fA-F]+|#[0-9]+|[A-Za-z][A-Za-z0-9]*);")
_BUILTIN_RE = re.compile(r"&(#?[A-Za-z0-9]+);")


def _codepoint(digits: str) -> str:
    try:
        cp = int(digits)
        # lone UTF-16 halves cannot be encoded
        if 0xD800 <= cp <= 0xDFFF:
            return PLACEHOLDER
        return chr(cp)
    except (ValueError, OverflowError):
        return PLACEHOLDER


def _reference_sub(m: re.Match[str]) -> str:
    token = m.group(0)
    name = m.group(1)
    if name.startswith("#"):
        # html.unescape maps invalid and C1-range code points the way browsers do
        return html.unescape(token)
    if name + ";" in html5 or name in name2codepoint:
        return html.unescape(token)
    return PLACEHOLDER


def _builtin_sub(m: re.Match[str]) -> str:
    symbol = m.group(1)
    digits = ""
    if symbol.startswith("#"):
        digits = symbol[1:]
        if digits.isdigit():
            symbol = "#" + str(int(digits))
            digits = symbol[1:]
        else:
            digits = ""
    hit = UNESCAPE_TABLE.get(symbol)
    if hit is not None:
        return hit
    if digits:
        return _codepoint(digits)
    return PLACEHOLDER


@dataclass(frozen=True)
class EntityDecoder:
    """Immutable handle on the decoding strategy chosen at startup."""

    strategy: str = "reference"

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"unknown entity decoder {self.strategy!r}; expected one of {STRATEGIES}"
            )

    @classmethod
    def from_config(cls, conf: Any) -> "EntityDecoder":
        return cls(strategy=conf.entity_decoder)

    def decode(self, text: str) -> str:
        if not text or "&" not in text:
            return text
        if self.strategy == "builtin":
            return _BUILTIN_RE.sub(_builtin_sub, text)
        return _REFERENCE_RE.sub(_reference_sub, text)


@lru_cache(maxsize=1)
def default_decoder() -> EntityDecoder:
    """Decoder selected by ``LP_ENTITY_DECODER``, resolved once per process."""
    name = os.getenv("LP_ENTITY_DECODER", "reference").strip().lower() or "reference"
    if name not in STRATEGIES:
        name = "reference"
    return EntityDecoder(name)


def decode_entities(text: str, decoder: Optional[EntityDecoder] = None) -> str:
    """Replace every HTML character reference in *text*; unknown ones become ``*``."""
    return (decoder or default_decoder()).decode(text)


__all__ = ["PLACEHOLDER", "UNESCAPE_TABLE", "EntityDecoder", "default_decoder", "decode_entities"]
