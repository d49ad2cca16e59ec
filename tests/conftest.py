# -*- coding: utf-8 -*-
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart(session) -> None:
    # Ensure project root is importable for tests
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))


@pytest.fixture
def fresh_default_decoder():
    from leadpar.text.entities import default_decoder

    default_decoder.cache_clear()
    yield default_decoder
    default_decoder.cache_clear()
