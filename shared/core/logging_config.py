"""
Structured logging configuration

Every record is emitted as one JSON object carrying the request id,
correlation id and acting user of the request that produced it, so an
order edit can be followed from the HTTP call down to its audit entry.
"""

import logging
import logging.handlers
import os
import re
import sys
import json
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

class StructuredFormatter(logging.Formatter):
    """JSON formatter: one object per line, ready for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv('SERVICE_NAME', 'shipsheet'),
            "environment": os.getenv('ENVIRONMENT', 'development'),
            "version": os.getenv('SERVICE_VERSION', '1.0.0'),
        }

        trace_context = self._get_trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        if hasattr(record, 'duration_ms'):
            log_obj["performance"] = {"duration_ms": record.duration_ms}

        return json.dumps(log_obj, default=str)

    def _get_trace_context(self) -> Optional[Dict[str, Any]]:
        context = {
            "request_id": request_id_var.get(),
            "correlation_id": correlation_id_var.get(),
            "user_id": user_id_var.get(),
        }
        context = {k: v for k, v in context.items() if v}
        return context or None

class SecurityFilter(logging.Filter):
    """Redact credentials that end up in a log message"""

    SENSITIVE_FIELDS = [
        'password', 'token', 'api_key', 'secret',
        'authorization', 'cookie', 'session'
    ]

    # key=value, key: value and "Authorization: Bearer <value>"
    PATTERN = re.compile(
        r"((?:" + "|".join(SENSITIVE_FIELDS) + r")\b[\"']?\s*[=:]\s*[\"']?)(?:bearer\s+)?[^\s,;&\"']+",
        re.IGNORECASE,
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if not isinstance(record.msg, str):
            return True
        record.msg = self.PATTERN.sub(r"\1***REDACTED***", record.msg)
        return True

def setup_logging(
    service_name: str,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = False,
    log_file: str = None
) -> None:
    """
    Setup structured logging for the service

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable stdout output
        enable_file: Enable rotating file output
        log_file: Path to log file
    """
    os.environ['SERVICE_NAME'] = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    formatter = StructuredFormatter()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(SecurityFilter())
        root_logger.addHandler(console_handler)

    if enable_file and log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SecurityFilter())
        root_logger.addHandler(file_handler)

    logging.getLogger('uvicorn').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={'extra_fields': {'service': service_name, 'level': level}}
    )

class LoggerAdapter(logging.LoggerAdapter):
    """Copies the current request context into each record's extra"""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        for key, var in (
            ('request_id', request_id_var),
            ('correlation_id', correlation_id_var),
            ('user_id', user_id_var),
        ):
            value = var.get()
            if value:
                extra[key] = value
        kwargs['extra'] = extra
        return msg, kwargs

def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})

def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None
) -> None:
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)
    if user_id:
        user_id_var.set(user_id)

def generate_request_id() -> str:
    return str(uuid.uuid4())

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its duration and echo the request id back
    in the X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get('X-Correlation-ID')
        )

        logger = get_logger(__name__)
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                extra={
                    'extra_fields': {
                        'method': request.method,
                        'path': request.url.path,
                        'duration_ms': (time.time() - start_time) * 1000
                    }
                }
            )
            raise

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                'extra_fields': {
                    'method': request.method,
                    'path': request.url.path,
                    'status_code': response.status_code,
                    'duration_ms': (time.time() - start_time) * 1000
                }
            }
        )
        response.headers['X-Request-ID'] = request_id
        return response
