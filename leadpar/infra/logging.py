"""Log4j-aligned logging utilities for LeadPar.

- Hierarchical loggers (e.g. ``leadpar.scrape.paragraph``)
- Console appender on stderr with pattern or JSON layout
- Levels aligned with Log4j, including ``TRACE`` (custom) and ``FATAL`` (alias of CRITICAL)
- MDC (Mapped Diagnostic Context) support via ``contextvars``

Configuration via environment variables (prefix: LP_):
- ``LP_LOG_LEVEL``: TRACE, DEBUG, INFO, WARN, ERROR, FATAL (default: INFO)
- ``LP_LOG_JSON``: 1 to enable JSON layout (default: 0)
"""

from __future__ import annotations

import contextvars
import json
import logging
import logging.config
import os
from typing import Any, Dict, Optional

# ---------------- Levels: add TRACE, FATAL alias ----------------

TRACE_LEVEL = 5
if logging.getLevelName(TRACE_LEVEL) != "TRACE":
    logging.addLevelName(TRACE_LEVEL, "TRACE")


def _trace(self: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, msg, args, **kwargs)


if not hasattr(logging.Logger, "trace"):
    logging.Logger.trace = _trace  # type: ignore[attr-defined]


# ---------------- MDC (Mapped Diagnostic Context) ----------------

_MDC: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("MDC", default={})


def mdc_put(key: str, value: Any) -> None:
    d = dict(_MDC.get())
    d[key] = value
    _MDC.set(d)


def mdc_remove(key: str) -> None:
    d = dict(_MDC.get())
    d.pop(key, None)
    _MDC.set(d)


class MDCFilter(logging.Filter):
    """Inject MDC into LogRecord as dict and compact string."""

    def filter(self, record: logging.LogRecord) -> bool:  # always True
        d = _MDC.get()
        setattr(record, "mdc", d)
        if d:
            mdc_str = " ".join(f"{k}={v}" for k, v in d.items())
            setattr(record, "mdc_str", mdc_str)
            setattr(record, "mdc_suffix", f" | MDC: {mdc_str}")
        else:
            setattr(record, "mdc_str", "")
            setattr(record, "mdc_suffix", "")
        return True


# ---------------- Formatters ----------------


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        mdc = getattr(record, "mdc", None)
        if isinstance(mdc, dict) and mdc:
            payload["mdc"] = mdc
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


# ---------------- Utilities ----------------

_CONFIGURED = False


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def level_from_name(name: Optional[str], default: int = logging.INFO) -> int:
    s = str(name or "").strip().upper()
    if not s:
        return default
    aliases = {"WARN": "WARNING", "FATAL": "CRITICAL"}
    s = aliases.get(s, s)
    if s == "TRACE":
        return TRACE_LEVEL
    value = logging.getLevelName(s)
    return value if isinstance(value, int) else default


def build_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Build a dictConfig resembling Log4j concepts (appenders/layouts)."""
    json_layout = _env_bool("LP_LOG_JSON", False)
    lvl = level_from_name(level or os.getenv("LP_LOG_LEVEL", "INFO"))

    fmt = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s%(mdc_suffix)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    formatters: Dict[str, Any] = {
        "pattern": {
            "()": logging.Formatter,
            "format": fmt,
            "datefmt": datefmt,
        },
        "json": {
            "()": JSONFormatter,
        },
    }

    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": lvl,
            "formatter": "json" if json_layout else "pattern",
            "filters": ["mdc"],
            "stream": "ext://sys.stderr",
        }
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "mdc": {
                "()": MDCFilter,
            }
        },
        "formatters": formatters,
        "handlers": handlers,
        "root": {
            "level": lvl,
            "handlers": ["console"],
        },
    }


def init_logging(force: bool = False, level: Optional[str] = None) -> None:
    """Initialize global logging using dictConfig.

    Safe to call multiple times; no-op if already configured unless ``force``.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    logging.config.dictConfig(build_logging_config(level))
    _CONFIGURED = True


def _ensure_logging() -> None:
    # leave handlers installed by an embedding application alone
    if not _CONFIGURED and not logging.getLogger("").handlers:
        init_logging()


def get_unified_logger(program: str, task_type: str) -> logging.Logger:
    """Return a hierarchical logger like ``leadpar.<program>.<task_type>``.

    Handlers are managed at the root; this function ensures logging is initialized.
    """
    _ensure_logging()
    name = f"leadpar.{program}.{task_type}".strip(".")
    return logging.getLogger(name)


def log_task_start(program: str, task_type: str, details: Optional[Dict[str, Any]] = None) -> None:
    logger = get_unified_logger(program, task_type)
    logger.info("[TASK START] %s", json.dumps(details or {}, ensure_ascii=False))


def log_task_end(
    program: str, task_type: str, success: bool, details: Optional[Dict[str, Any]] = None
) -> None:
    logger = get_unified_logger(program, task_type)
    payload: Dict[str, Any] = {"success": success}
    if details:
        payload.update(details)
    logger.info("[TASK END] %s", json.dumps(payload, ensure_ascii=False))


def log_error(program: str, task_type: str, error: Exception, context: str = "") -> None:
    logger = get_unified_logger(program, task_type)
    if context:
        logger.error("%s | %s", context, error, exc_info=error)
    else:
        logger.error("%s", error, exc_info=error)


def log_batch_processing(
    program: str,
    task_type: str,
    operation: str,
    total_items: int,
    success_count: int,
    failure_count: int,
    duration: float,
    status: str,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    logger = get_unified_logger(program, task_type)
    payload: Dict[str, Any] = {
        "operation": operation,
        "total": total_items,
        "success": success_count,
        "failed": failure_count,
        "duration": duration,
        "status": status,
    }
    if extra:
        payload.update(extra)
    logger.info("[BATCH] %s", json.dumps(payload, ensure_ascii=False))


__all__ = [
    "TRACE_LEVEL",
    "init_logging",
    "build_logging_config",
    "level_from_name",
    "mdc_put",
    "mdc_remove",
    "get_unified_logger",
    "log_task_start",
    "log_task_end",
    "log_error",
    "log_batch_processing",
]
