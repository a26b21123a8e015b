"""
Logging setup for the Hooktail server.

Clients usually poll GET /tail/{hook_id} while a command runs, which would
flood the uvicorn access log. Successful polls are dropped from the access
log unless HOOKTAIL_LOG_TAIL_POLLS=true. Everything else, including failed
polls, is kept.
"""

import logging
import logging.config
import os
from typing import Any, Dict, Optional

TAIL_PATH_PREFIX = "/tail/"


class TailPollFilter(logging.Filter):
    """Drop successful GET /tail/... lines from the uvicorn access log."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True

        # uvicorn passes (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) == 5:
            _, method, path, _, status = args
            return not (
                method == "GET"
                and str(path).startswith(TAIL_PATH_PREFIX)
                and status == 200
            )

        message = record.getMessage()
        return not (f"GET {TAIL_PATH_PREFIX}" in message and " 200" in message)


def get_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the dictConfig used by main() and handed to uvicorn.

    Args:
        level: Level for hooktail loggers (default: LOG_LEVEL or INFO)
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_tail_polls = os.getenv("HOOKTAIL_LOG_TAIL_POLLS", "false").lower() == "true"

    access_handler: Dict[str, Any] = {
        "class": "logging.StreamHandler",
        "formatter": "access",
        "stream": "ext://sys.stdout",
    }
    if not log_tail_polls:
        access_handler["filters"] = ["tail_poll_filter"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "tail_poll_filter": {"()": TailPollFilter},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(asctime)s - access - %(message)s"
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": access_handler,
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "hooktail": {"handlers": ["default"], "level": level, "propagate": False},
        },
        "root": {
            "level": level,
            "handlers": ["default"],
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
