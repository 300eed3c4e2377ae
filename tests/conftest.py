"""Shared test fixtures and utilities for all tests.

Provides an in-memory store that honours the metric store contract, session
factories around it, and ready-made adapters and records.
"""

import sys
from pathlib import Path

# Ensure the project root is first in sys.path so `scripts` resolves here
project_root = str(Path(__file__).parent.parent.absolute())
if project_root not in sys.path:
  sys.path.insert(0, project_root)
elif sys.path[0] != project_root:
  sys.path.remove(project_root)
  sys.path.insert(0, project_root)

import copy
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from sentinel_metrics.lib.store_time import to_epoch_millis
from sentinel_metrics.services.metric_query import MetricQuery
from sentinel_metrics.services.metric_writer import MetricWriter
from sentinel_metrics.services.metrics_repository import MetricsRepository
from tests.factories import NOW_MS, make_record


def _parse_bound(value: str) -> int:
  parsed = datetime.strptime(value, '%Y-%m-%d %H:%M:%S.%f').replace(tzinfo=timezone.utc)
  return to_epoch_millis(parsed)


class FakeMetricStore:
  """In-memory stand-in for the time-series store.

  Filters points with the same bind parameters the adapters send (exact
  app/resource match, inclusive time bounds on the store time axis) and
  returns flat rows in write order.
  """

  def __init__(self):
    self.points: List[Dict[str, Any]] = []
    self.queries: List[tuple] = []
    self.sessions_opened = 0
    self.closed = 0
    self.fail_on_write: Optional[int] = None
    self.write_error: Exception = ConnectionError('store unavailable')
    self.write_attempts = 0

  def write(self, point: Dict[str, Any]) -> None:
    self.write_attempts += 1
    if self.fail_on_write is not None and self.write_attempts == self.fail_on_write:
      raise self.write_error
    self.points.append(copy.deepcopy(point))

  def query(self, database: str, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    self.queries.append((database, query, dict(params)))
    rows = []
    for point in self.points:
      tags = point['tags']
      if tags['app'] != params['app']:
        continue
      if 'resource' in params and tags['resource'] != params['resource']:
        continue
      if point['time'] < _parse_bound(params['startTime']):
        continue
      if 'endTime' in params and point['time'] > _parse_bound(params['endTime']):
        continue
      rows.append({'time': point['time'], **tags, **point['fields']})
    return rows

  def close(self) -> None:
    self.closed += 1


@pytest.fixture
def fake_store():
  """Fresh in-memory store per test."""
  return FakeMetricStore()


@pytest.fixture
def session_factory(fake_store):
  """Session factory yielding the fake store and counting open/close."""

  @contextmanager
  def factory():
    fake_store.sessions_opened += 1
    try:
      yield fake_store
    finally:
      fake_store.close()

  return factory


@pytest.fixture
def clock():
  """Fixed clock returning NOW_MS."""
  return lambda: NOW_MS


@pytest.fixture
def writer(session_factory, clock):
  return MetricWriter(session_factory=session_factory, clock=clock)


@pytest.fixture
def metric_query(session_factory, clock):
  return MetricQuery(session_factory=session_factory, database='sentinel_db', clock=clock)


@pytest.fixture
def repository(writer, metric_query):
  return MetricsRepository(writer=writer, query=metric_query)


@pytest.fixture
def record_factory():
  """Factory fixture for MetricRecord objects."""
  return make_record
