from __future__ import annotations

import pytest

from leadpar.text.entities import PLACEHOLDER, EntityDecoder, decode_entities

BUILTIN = EntityDecoder("builtin")
REFERENCE = EntityDecoder("reference")


@pytest.mark.parametrize("decoder", [REFERENCE, BUILTIN], ids=["reference", "builtin"])
def test_common_references(decoder):
    assert decode_entities("&amp;", decoder) == "&"
    assert decode_entities("&#65;", decoder) == "A"
    assert decode_entities("&unknownxyz;", decoder) == PLACEHOLDER
    assert decode_entities("a &lt;b&gt; c", decoder) == "a <b> c"


@pytest.mark.parametrize("decoder", [REFERENCE, BUILTIN], ids=["reference", "builtin"])
def test_text_without_references_is_unchanged(decoder):
    s = "Fish & chips; salt & vinegar"
    assert decode_entities(s, decoder) == s
    assert decode_entities("", decoder) == ""


def test_builtin_table_and_codepoints():
    assert decode_entities("&#039;", BUILTIN) == "'"
    assert decode_entities("&hellip;", BUILTIN) == "…"
    assert decode_entities("&copy; 2024 &trade;", BUILTIN) == "(c) 2024 (tm)"
    assert decode_entities("&#8212;", BUILTIN) == "--"
    assert decode_entities("&nbsp;", BUILTIN) == " "
    # not in the table: read as a code point
    assert decode_entities("&#8364;", BUILTIN) == "€"
    assert decode_entities("&#0065;", BUILTIN) == "A"


def test_builtin_unresolvable_numbers_become_placeholder():
    assert decode_entities("&#99999999999;", BUILTIN) == PLACEHOLDER
    assert decode_entities("&eacute;", BUILTIN) == PLACEHOLDER


def test_surrogate_code_points_become_placeholder():
    # halves of a broken UTF-16 pair, as some pages emit for emoji
    assert decode_entities("&#55357;&#56832;", BUILTIN) == PLACEHOLDER * 2
    assert decode_entities("&#56320;", BUILTIN) == PLACEHOLDER
    out = decode_entities("broken &#55357; emoji", BUILTIN)
    assert out == "broken * emoji"
    out.encode("utf-8")


def test_reference_full_table():
    assert decode_entities("&copy;", REFERENCE) == "©"
    assert decode_entities("&eacute;t&eacute;", REFERENCE) == "été"
    assert decode_entities("&#x41;&#X42;", REFERENCE) == "AB"
    assert decode_entities("&nbsp;", REFERENCE) == "\xa0"
    assert decode_entities("x &bogus; y", REFERENCE) == "x * y"


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        EntityDecoder("fancy")


def test_default_decoder_resolved_from_env_once(monkeypatch, fresh_default_decoder):
    monkeypatch.setenv("LP_ENTITY_DECODER", "builtin")
    assert fresh_default_decoder().strategy == "builtin"
    assert decode_entities("&copy;") == "(c)"

    # cached: later env changes do not switch strategy mid-process
    monkeypatch.setenv("LP_ENTITY_DECODER", "reference")
    assert fresh_default_decoder().strategy == "builtin"


def test_default_decoder_ignores_bad_env(monkeypatch, fresh_default_decoder):
    monkeypatch.setenv("LP_ENTITY_DECODER", "nope")
    assert fresh_default_decoder().strategy == "reference"
