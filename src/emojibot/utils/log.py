from __future__ import annotations

import logging
import os
import re

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def escape_control_chars(text: str) -> str:
    """Ersätt kontrolltecken med \\xNN så att en loggrad förblir en rad."""
    if not text:
        return text
    return _CONTROL_CHARS.sub(lambda m: f"\\x{ord(m.group(0)):02x}", text)


def _parse_log_level(raw_level: str | None, fallback: int = logging.INFO) -> int:
    if not raw_level:
        return fallback
    # "INFO,DEBUG" -> the last entry wins
    parts = [segment.strip() for segment in raw_level.split(",") if segment.strip()]
    candidate = parts[-1] if parts else raw_level.strip()
    level_value = getattr(logging, candidate.upper(), None)
    if isinstance(level_value, int):
        return level_value
    return fallback


def effective_log_level() -> int:
    return _parse_log_level(os.getenv("EMOJIBOT_LOG_LEVEL") or os.getenv("LOG_LEVEL"))


class ControlCharFilter(logging.Filter):
    """Escape control characters in the formatted message.

    Request paths reach the logs verbatim, so a path containing a newline
    could otherwise forge extra log lines.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        try:
            try:
                formatted = record.getMessage()
            except (TypeError, ValueError):
                formatted = str(record.msg)
            record.msg = escape_control_chars(formatted)
            record.args = ()
        except (TypeError, ValueError, AttributeError) as escape_err:
            logging.getLogger("emojibot.log").debug("escape_error: %s", escape_err)
        return True


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, ControlCharFilter) for f in logger.filters):
        logger.addFilter(ControlCharFilter())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level if level is not None else effective_log_level())
    return logger


def set_level(raw_level: str | None, prefix: str = "emojibot") -> int:
    """Re-apply a log level to every logger already created under ``prefix``."""
    level = _parse_log_level(raw_level, effective_log_level())
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and (name == prefix or name.startswith(prefix + ".")):
            logger.setLevel(level)
    return level
