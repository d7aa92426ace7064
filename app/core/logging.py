"""
Logging configuration for the application.

Plain stdout logging with one consistent line format, plus a small
adapter that tags messages with entity identifiers.
"""

import logging
import sys
import time
from typing import Any

from starlette.requests import Request


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the entire application.

    Parameters:
    - debug: If True, show DEBUG messages too.
             If False, only INFO level and above.

    Calling this twice does not add a second handler.
    """

    log_level = logging.DEBUG if debug else logging.INFO

    # %(name)s = which part of app logged this (e.g., "app.api.properties")
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(getattr(h, "_app_handler", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        handler._app_handler = True
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")


def with_context(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that injects correlation context like property_id or actor_id.

    Usage:
        log = with_context(logging.getLogger(__name__), property_id="65f...", actor_id="65a...")
        log.info("Updating property")
    """
    class ContextAdapter(logging.LoggerAdapter):
        def process(self, msg, kwargs):
            extra = kwargs.get("extra", {})
            merged = {**context, **extra}
            kwargs["extra"] = merged
            # Prefix message with keys for easy grep
            tags = " ".join(f"{k}={v}" for k, v in merged.items() if v is not None)
            return (f"[{tags}] {msg}" if tags else msg, kwargs)

    return ContextAdapter(logger, {})


async def log_requests(request: Request, call_next):
    """
    HTTP middleware that logs one line per request.

    Example line:
        GET /api/properties -> 200 (12.4 ms)
    """
    logger = logging.getLogger("app.requests")
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response
