"""Unit tests for the query adapter."""

from contextlib import contextmanager
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from sentinel_metrics.lib.store_time import format_store_time, to_store_time
from sentinel_metrics.services.metric_query import HOT_RESOURCE_WINDOW, MetricQuery
from tests.factories import NOW_MS


def _row(resource='/api/orders', time=NOW_MS, **fields):
  row = {
    'time': to_store_time(time),
    'app': 'order-service',
    'resource': resource,
    'createdAt': NOW_MS,
    'passQps': 1.0,
    'successQps': 1.0,
    'blockQps': 0.0,
    'exceptionQps': 0.0,
    'rt': 5.0,
    'count': 1,
  }
  row.update(fields)
  return row


@pytest.fixture
def mock_store():
  return MagicMock()


@pytest.fixture
def mock_query(mock_store, clock):
  @contextmanager
  def factory():
    try:
      yield mock_store
    finally:
      mock_store.close()

  return MetricQuery(session_factory=factory, database='sentinel_db', clock=clock)


class TestQueryRange:
  """MetricQuery.query_range."""

  @pytest.mark.parametrize('app,resource', [('', 'r'), ('a', ''), ('  ', 'r'), (None, 'r')])
  def test_blank_app_or_resource_skips_the_store(self, mock_query, mock_store, app, resource):
    assert mock_query.query_range(app, resource, 0, NOW_MS) == []
    mock_store.query.assert_not_called()

  def test_sends_parameterized_query_with_shifted_bounds(self, mock_query, mock_store):
    mock_store.query.return_value = []

    mock_query.query_range('order-service', '/api/orders', NOW_MS - 1000, NOW_MS)

    database, query, params = mock_store.query.call_args.args
    assert database == 'sentinel_db'
    assert query == (
      'SELECT * FROM sentinel_metric WHERE app=$app AND resource=$resource'
      ' AND time>=$startTime AND time<=$endTime'
    )
    assert params == {
      'app': 'order-service',
      'resource': '/api/orders',
      'startTime': format_store_time(NOW_MS - 1000),
      'endTime': format_store_time(NOW_MS),
    }
    assert params['endTime'] == '2020-04-18 07:08:00.000'

  def test_caller_input_never_reaches_query_text(self, mock_query, mock_store):
    mock_store.query.return_value = []

    mock_query.query_range("x' OR 1=1", 'r', 0, 1)

    _, query, params = mock_store.query.call_args.args
    assert "OR 1=1" not in query
    assert params['app'] == "x' OR 1=1"

  def test_rows_are_mapped_in_store_order(self, mock_query, mock_store):
    mock_store.query.return_value = [_row(time=NOW_MS), _row(time=NOW_MS - 60000)]

    records = mock_query.query_range('order-service', '/api/orders', 0, NOW_MS)

    assert [r.timestamp for r in records] == [NOW_MS, NOW_MS - 60000]

  def test_empty_result_is_an_empty_list(self, mock_query, mock_store):
    mock_store.query.return_value = []
    assert mock_query.query_range('order-service', '/api/orders', 0, NOW_MS) == []

  def test_store_failure_propagates_and_session_closes(self, mock_query, mock_store):
    mock_store.query.side_effect = TimeoutError('read timed out')

    with pytest.raises(TimeoutError):
      mock_query.query_range('order-service', '/api/orders', 0, NOW_MS)

    mock_store.close.assert_called_once()


class TestListResources:
  """MetricQuery.list_resources."""

  def test_window_is_sixty_seconds(self):
    assert HOT_RESOURCE_WINDOW == timedelta(seconds=60)

  def test_blank_app_skips_the_store(self, mock_query, mock_store):
    assert mock_query.list_resources('') == []
    mock_store.query.assert_not_called()

  def test_queries_the_last_window(self, mock_query, mock_store):
    mock_store.query.return_value = []

    mock_query.list_resources('order-service')

    database, query, params = mock_store.query.call_args.args
    assert database == 'sentinel_db'
    assert query == 'SELECT * FROM sentinel_metric WHERE app=$app AND time>=$startTime'
    assert params == {'app': 'order-service', 'startTime': format_store_time(NOW_MS - 60000)}

  def test_returns_ranked_resource_names(self, mock_query, mock_store):
    mock_store.query.return_value = [
      _row(resource='X', passQps=10.0, blockQps=5.0),
      _row(resource='X', passQps=3.0, blockQps=1.0),
      _row(resource='Y', passQps=1.0, blockQps=20.0),
    ]

    assert mock_query.list_resources('order-service') == ['Y', 'X']

  def test_empty_result(self, mock_query, mock_store):
    mock_store.query.return_value = []
    assert mock_query.list_resources('order-service') == []
