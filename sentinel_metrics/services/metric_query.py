"""Query adapter: reads metric records back from the time-series store.

Queries are templated with named bind parameters; the adapter never
interpolates caller input into the query text.
"""

import logging
from datetime import timedelta
from typing import Callable, ContextManager, List

from sentinel_metrics.lib.metrics import track_store_operation
from sentinel_metrics.lib.store import DEFAULT_DATABASE, MetricStore, store_session
from sentinel_metrics.lib.store_time import current_time_millis, format_store_time
from sentinel_metrics.models.metric_record import METRIC_MEASUREMENT, MetricRecord, is_blank
from sentinel_metrics.services.aggregator import top_resources

logger = logging.getLogger(__name__)

# Lookback of the "hot resources" view
HOT_RESOURCE_WINDOW = timedelta(seconds=60)

RANGE_QUERY = (
  'SELECT * FROM {measurement}'
  ' WHERE app=$app'
  ' AND resource=$resource'
  ' AND time>=$startTime'
  ' AND time<=$endTime'
)

RECENT_QUERY = 'SELECT * FROM {measurement} WHERE app=$app AND time>=$startTime'


class MetricQuery:
  """Range and recent-window queries over stored metric records."""

  def __init__(
    self,
    session_factory: Callable[[], ContextManager[MetricStore]] = store_session,
    database: str = DEFAULT_DATABASE,
    clock: Callable[[], int] = current_time_millis,
    measurement: str = METRIC_MEASUREMENT,
  ):
    """Initialize query adapter.

    Args:
        session_factory: Opens a store session scoped to one call
        database: Database queried
        clock: Returns the current time in epoch milliseconds
        measurement: Measurement name queried
    """
    self.session_factory = session_factory
    self.database = database
    self.clock = clock
    self.measurement = measurement

  def query_range(self, app: str, resource: str, start_time: int, end_time: int) -> List[MetricRecord]:
    """Return records of one app resource with ``start_time <= timestamp <= end_time``.

    Args:
        app: Application name (exact match)
        resource: Resource name (exact match)
        start_time: Inclusive lower bound (epoch ms)
        end_time: Inclusive upper bound (epoch ms)

    Returns:
        Records in store order; empty when app or resource is blank
    """
    if is_blank(app) or is_blank(resource):
      return []

    params = {
      'app': app,
      'resource': resource,
      'startTime': format_store_time(start_time),
      'endTime': format_store_time(end_time),
    }
    with track_store_operation('query_range'):
      rows = self._query(RANGE_QUERY, params)

    return [MetricRecord.from_row(row) for row in rows]

  def list_resources(self, app: str) -> List[str]:
    """Return resource names of ``app`` seen in the last HOT_RESOURCE_WINDOW.

    Names are ranked by merged block rate, then pass rate, both descending.

    Args:
        app: Application name

    Returns:
        Ranked resource names; empty when app is blank or nothing matched
    """
    if is_blank(app):
      return []

    window_ms = int(HOT_RESOURCE_WINDOW.total_seconds() * 1000)
    params = {
      'app': app,
      'startTime': format_store_time(self.clock() - window_ms),
    }
    with track_store_operation('list_resources'):
      rows = self._query(RECENT_QUERY, params)

    if not rows:
      return []

    resources = top_resources(MetricRecord.from_row(row) for row in rows)
    logger.debug(f'Ranked {len(resources)} resources from {len(rows)} rows for app {app}')
    return resources

  def _query(self, template: str, params: dict) -> List[dict]:
    with self.session_factory() as store:
      return store.query(self.database, template.format(measurement=self.measurement), params)
