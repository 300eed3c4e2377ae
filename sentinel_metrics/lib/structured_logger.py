"""Structured Logger with JSON Formatting.

Provides JSON log output and a correlation id carried in a context variable,
so every line written while serving a request can be traced back to it.
"""

import contextvars
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

# Async-safe; propagates through awaits and into threadpool workers
correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
  'request_id', default='no-request-id'
)

# Optional LogRecord attributes copied into the JSON payload
CONTEXT_FIELDS = ('app', 'resource', 'record_count', 'duration_ms', 'endpoint', 'method', 'status_code')


def get_correlation_id() -> str:
  """Return the current request's correlation ID or 'no-request-id'."""
  return correlation_id.get()


def set_correlation_id(request_id: str) -> None:
  correlation_id.set(request_id)


def reset_correlation_id() -> None:
  correlation_id.set('no-request-id')


class JSONFormatter(logging.Formatter):
  """JSON formatter for structured logging."""

  def format(self, record: logging.LogRecord) -> str:
    """Format log record as JSON.

    Args:
        record: Log record to format

    Returns:
        JSON-formatted log string
    """
    log_data = {
      'timestamp': datetime.now(timezone.utc).isoformat(),
      'level': record.levelname,
      'logger': record.name,
      'message': record.getMessage(),
      'module': record.module,
      'function': record.funcName,
      'request_id': get_correlation_id(),
    }

    for field in CONTEXT_FIELDS:
      if hasattr(record, field):
        log_data[field] = getattr(record, field)

    if record.exc_info:
      log_data['exception'] = {
        'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
        'message': str(record.exc_info[1]) if record.exc_info[1] else None,
      }

    return json.dumps(log_data, default=str)


def _resolve_level(level: Optional[str]) -> int:
  name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
  return getattr(logging, name, logging.INFO)


def configure_logging(name: str = 'sentinel_metrics', level: Optional[str] = None) -> logging.Logger:
  """Attach a JSON stream handler to a logger hierarchy.

  Module loggers created with ``logging.getLogger(__name__)`` below ``name``
  inherit the handler. Calling this twice does not duplicate handlers.

  Args:
      name: Root logger name of the hierarchy
      level: Log level name (default: LOG_LEVEL environment variable, then INFO)

  Returns:
      The configured logger
  """
  root = logging.getLogger(name)
  root.setLevel(_resolve_level(level))

  if not any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

  return root


class StructuredLogger:
  """Structured logger with JSON formatting.

  Usage:
      logger = StructuredLogger(__name__)
      logger.info('Metrics saved', app='orders', record_count=12)
      logger.error('Store query failed', exc_info=True, app='orders')
  """

  def __init__(self, name: str):
    """Initialize structured logger.

    Args:
        name: Logger name (typically module name)
    """
    self.logger = logging.getLogger(name)

  def info(self, message: str, **extra: Any) -> None:
    self.logger.info(message, extra=extra)

  def error(self, message: str, exc_info: bool = False, **extra: Any) -> None:
    self.logger.error(message, exc_info=exc_info, extra=extra)


def log_request(endpoint: str, method: str, status_code: int, duration_ms: float) -> None:
  """Log API request with its duration.

  Args:
      endpoint: API endpoint path
      method: HTTP method
      status_code: HTTP status code
      duration_ms: Request duration in milliseconds
  """
  StructuredLogger('sentinel_metrics.requests').info(
    f'{method} {endpoint}',
    endpoint=endpoint,
    method=method,
    status_code=status_code,
    duration_ms=round(duration_ms, 3),
  )
