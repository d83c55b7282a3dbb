"""Logging setup shared by the API server and the CLI."""

import logging
import sys

from moodreel.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request, query or keep-alive at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "sse_starlette")


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger.

    `level` defaults to INFO in production and DEBUG elsewhere. The CLI passes
    WARNING so its output is not interleaved with log lines.
    """
    if level is None:
        level = "INFO" if get_settings().is_production else "DEBUG"

    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext(logging.LoggerAdapter):
    """Prefixes every message with `[key=value]` pairs.

    Usage:
        log = LogContext(logger, stream="3f9a1c2e")
        log.info("Upstream stream finished after %d chunks", 42)
    """

    def __init__(self, logger: logging.Logger, **context: str) -> None:
        super().__init__(logger, context)
        self.prefix = " ".join(f"[{key}={value}]" for key, value in context.items())

    def process(self, msg, kwargs):
        return f"{self.prefix} {msg}", kwargs
