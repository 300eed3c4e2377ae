"""Prometheus-compatible metrics for metric store traffic and API requests."""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

# Store metrics
store_operations_total = Counter(
  'metric_store_operations_total',
  'Total store operations issued by the metric adapters',
  ['operation', 'status'],
)

store_operation_duration_seconds = Histogram(
  'metric_store_operation_duration_seconds',
  'Store operation duration in seconds',
  ['operation'],
  buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

records_written_total = Counter(
  'metric_records_written_total',
  'Total metric records written to the store',
  ['app'],
)

# Request metrics
request_duration_seconds = Histogram(
  'request_duration_seconds',
  'Request duration in seconds',
  ['endpoint', 'method', 'status'],
  buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
)


@contextmanager
def track_store_operation(operation: str) -> Iterator[None]:
  """Time a store operation and count its outcome.

  Exceptions are re-raised unchanged after being counted.

  Args:
      operation: Operation name ('save', 'save_all', 'query_range', 'list_resources')
  """
  start_time = time.perf_counter()
  try:
    yield
  except Exception:
    store_operations_total.labels(operation=operation, status='failure').inc()
    raise
  else:
    store_operations_total.labels(operation=operation, status='success').inc()
  finally:
    store_operation_duration_seconds.labels(operation=operation).observe(
      time.perf_counter() - start_time
    )


def record_written(app: str):
  """Count one record written for an app."""
  records_written_total.labels(app=app).inc()


def record_request_duration(endpoint: str, method: str, status: int, duration_seconds: float):
  """Record overall request duration.

  Args:
      endpoint: API endpoint path
      method: HTTP method (GET, POST, etc.)
      status: HTTP status code
      duration_seconds: Request duration in seconds
  """
  request_duration_seconds.labels(
    endpoint=endpoint,
    method=method,
    status=str(status),
  ).observe(duration_seconds)
