import json
import logging
import sys
import time
from typing import Union

PACKAGE_LOGGER = "jwks_rotation"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the message escaped like any other field."""

    converter = time.gmtime

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Install a JSON-lines stdout handler on the package logger.

    Calling it again only updates the level.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.propagate = False

    return logger


__all__ = ["configure_logging", "JsonFormatter", "PACKAGE_LOGGER"]
