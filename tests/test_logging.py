from __future__ import annotations

import json
import logging

from leadpar.infra.logging import (
    TRACE_LEVEL,
    JSONFormatter,
    MDCFilter,
    build_logging_config,
    get_unified_logger,
    level_from_name,
    mdc_put,
    mdc_remove,
)


def test_level_names():
    assert level_from_name("WARN") == logging.WARNING
    assert level_from_name("fatal") == logging.CRITICAL
    assert level_from_name("TRACE") == TRACE_LEVEL
    assert level_from_name("bogus") == logging.INFO
    assert level_from_name(None, logging.DEBUG) == logging.DEBUG


def test_unified_logger_names_are_hierarchical():
    logger = get_unified_logger("scrape", "paragraph")
    assert logger.name == "leadpar.scrape.paragraph"
    assert get_unified_logger("scrape", "paragraph") is logger
    assert hasattr(logger, "trace")


def test_mdc_roundtrip_and_filter():
    mdc_put("url", "http://a")
    record = logging.LogRecord("leadpar.x", logging.INFO, __file__, 1, "hello", None, None)
    MDCFilter().filter(record)
    assert record.mdc_suffix == " | MDC: url=http://a"

    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "hello"
    assert payload["mdc"] == {"url": "http://a"}

    mdc_remove("url")
    cleared = logging.LogRecord("leadpar.x", logging.INFO, __file__, 1, "bye", None, None)
    MDCFilter().filter(cleared)
    assert cleared.mdc == {} and cleared.mdc_suffix == ""


def test_build_logging_config_layouts(monkeypatch):
    monkeypatch.setenv("LP_LOG_JSON", "1")
    conf = build_logging_config("debug")
    assert conf["handlers"]["console"]["formatter"] == "json"
    assert conf["root"]["level"] == logging.DEBUG

    monkeypatch.delenv("LP_LOG_JSON")
    monkeypatch.setenv("LP_LOG_LEVEL", "ERROR")
    conf = build_logging_config()
    assert conf["handlers"]["console"]["formatter"] == "pattern"
    assert conf["root"]["level"] == logging.ERROR


def test_trace_level_method(caplog):
    logger = get_unified_logger("scrape", "paragraph")
    with caplog.at_level(TRACE_LEVEL, logger="leadpar.scrape.paragraph"):
        logger.trace("(%s) %r has %d spaces", "heading", "a b", 1)
    assert caplog.records[-1].levelname == "TRACE"
    assert caplog.records[-1].getMessage() == "(heading) 'a b' has 1 spaces"
