"""Logging configuration for the ``diagramflow`` logger tree."""

from __future__ import annotations

import json
import logging

from diagramflow.config.models import DiagramflowConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling it again replaces the handler instead of stacking another one.
    """
    logger = logging.getLogger("diagramflow")
    logger.setLevel(_LEVELS.get(level, logging.INFO))
    for handler in list(logger.handlers):
        if getattr(handler, "_diagramflow", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._diagramflow = True
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger


def configure_logging(config: DiagramflowConfig) -> logging.Logger:
    """``setup_logging`` driven by the ``log_level`` / ``log_format`` settings."""
    return setup_logging(config.log_level, config.log_format)
