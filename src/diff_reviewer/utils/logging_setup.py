"""Process-level logging configuration for the CLI."""

import logging
import logging.config
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"


def build_logging_config(level: str = "INFO", log_file: str | None = None) -> dict[str, Any]:
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "std",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "std",
            "filename": log_file,
            "encoding": "utf-8",
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"std": {"format": LOG_FORMAT}},
        "handlers": handlers,
        "loggers": {
            # SDK transport chatter stays at WARNING unless explicitly raised
            "httpx": {"level": "WARNING"},
            "openai": {"level": "WARNING"},
            "anthropic": {"level": "WARNING"},
        },
        "root": {"handlers": list(handlers), "level": level},
    }


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    logging.config.dictConfig(build_logging_config(level, log_file))
