"""Structured logging for landingpage, built on structlog."""

import logging
import os
import sys
from typing import Any

import structlog

DEFAULT_LOG_LEVEL = "INFO"


def _resolve_level(verbose: bool) -> str:
    if verbose:
        return "DEBUG"
    level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    if not isinstance(getattr(logging, level, None), int):
        return DEFAULT_LOG_LEVEL
    return level


def setup_logging(verbose: bool = False) -> None:
    """Configure stdlib logging and structlog.

    Args:
        verbose: Force DEBUG level, overriding LOG_LEVEL.
    """
    log_level = _resolve_level(verbose)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level),
        force=True,
    )
    # the kubernetes client logs every request at DEBUG
    logging.getLogger("urllib3").setLevel(max(logging.INFO, getattr(logging, log_level)))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _get_renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    get_logger(__name__).info("Logging configured", log_level=log_level, verbose=verbose)


def _get_renderer() -> Any:
    """JSON when LOG_FORMAT=json, coloured console output otherwise."""
    if os.getenv("LOG_FORMAT", "console").lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger, typically for ``__name__``."""
    return structlog.get_logger(name)


def log_function_entry(logger: structlog.stdlib.BoundLogger, func_name: str, **kwargs: Any) -> None:
    logger.debug("Function entry", function=func_name, **kwargs)


def log_function_exit(logger: structlog.stdlib.BoundLogger, func_name: str, **kwargs: Any) -> None:
    logger.debug("Function exit", function=func_name, **kwargs)


def log_api_request(logger: structlog.stdlib.BoundLogger, method: str, path: str, **kwargs: Any) -> None:
    """Log an incoming HTTP request.

    Args:
        logger: The logger instance
        method: HTTP method
        path: Request path
        **kwargs: Additional request details
    """
    logger.info("API request", method=method, path=path, **kwargs)


def log_api_response(logger: structlog.stdlib.BoundLogger, method: str, path: str, status_code: int, **kwargs: Any) -> None:
    """Log an outgoing HTTP response.

    Args:
        logger: The logger instance
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        **kwargs: Additional response details
    """
    logger.info("API response", method=method, path=path, status_code=status_code, **kwargs)


def log_k8s_operation(logger: structlog.stdlib.BoundLogger, operation: str, cluster: str, **kwargs: Any) -> None:
    logger.debug("Kubernetes operation", operation=operation, cluster=cluster, **kwargs)


def log_refresh_event(logger: structlog.stdlib.BoundLogger, event_type: str, **kwargs: Any) -> None:
    """Log a refresh cycle milestone.

    Args:
        logger: The logger instance
        event_type: cycle_started, cluster_failed, snapshot_published, ...
        **kwargs: Event details
    """
    logger.info("Refresh event", event_type=event_type, **kwargs)
