from __future__ import annotations

import json
import logging
import sys

# Libraries that log every request at INFO; metadata polling makes them noisy.
_CHATTY_LOGGERS = ("httpx", "httpcore", "web3", "urllib3")


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": record.created,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """Configure and return the root skillforge logger.

    Logs go to stderr so they never mix with protocol traffic.  Calling
    this again is a no-op once a handler is installed.
    """
    logger = logging.getLogger("skillforge")

    if logger.handlers:
        return logger

    resolved = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(resolved)
    logger.propagate = False

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        ))
    logger.addHandler(handler)

    if resolved > logging.DEBUG:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger under the skillforge namespace."""
    return logging.getLogger(f"skillforge.{name}")
