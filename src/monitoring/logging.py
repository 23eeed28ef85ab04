"""
Structured logging setup using structlog on top of the standard library.

Configures structlog once per process with ISO timestamps, logger name and
level, and either a JSON renderer (production) or a console renderer
(development), selected by ``LOG_FORMAT``. Inside a Flask request every
event is enriched with the request's correlation id.

Usage:
    setup_structured_logging(log_level='INFO', log_format='json')
    logger = structlog.get_logger(__name__)
"""

import logging
import sys
import time
import uuid
from typing import Any, Dict, Optional

import structlog
from flask import Flask, g, has_request_context, request

CORRELATION_HEADER = 'X-Request-ID'


def add_correlation_id(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor adding the current request's correlation id."""
    if has_request_context():
        correlation_id = getattr(g, 'correlation_id', None)
        if correlation_id:
            event_dict.setdefault('correlation_id', correlation_id)
    return event_dict


def setup_structured_logging(
    log_level: str = 'INFO',
    log_format: str = 'json',
) -> structlog.stdlib.BoundLogger:
    """
    Configure structlog and the root stdlib logger.

    Args:
        log_level: Standard logging level name
        log_format: 'json' or 'console'

    Returns:
        Logger for the application
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        add_correlation_id,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == 'console':
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    if not any(getattr(handler, '_structlog_handler', False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(message)s'))
        handler._structlog_handler = True
        root.addHandler(handler)
    root.setLevel(level)

    logger = structlog.get_logger('contact_submission')
    logger.info("Structured logging initialized", log_level=log_level, log_format=log_format)
    return logger


def init_request_logging(app: Flask, logger: Optional[structlog.stdlib.BoundLogger] = None) -> None:
    """
    Register request hooks assigning a correlation id and logging each
    request with its duration.
    """
    logger = logger or structlog.get_logger(__name__)

    @app.before_request
    def assign_correlation_id() -> None:
        g.correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = getattr(g, 'request_started', None)
        duration_ms = (time.perf_counter() - started) * 1000 if started else None
        response.headers[CORRELATION_HEADER] = getattr(g, 'correlation_id', '')
        logger.info(
            "Request completed",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2) if duration_ms is not None else None,
        )
        return response
