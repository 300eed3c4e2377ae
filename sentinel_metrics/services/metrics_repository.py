"""Metrics repository: the operations exposed to the dashboard.

Composes the write adapter, the query adapter and the aggregator over one
store session factory.
"""

from functools import partial
from typing import Iterable, List, Optional

from sentinel_metrics.lib.store import StoreSettings, get_store_settings, store_session
from sentinel_metrics.models.metric_record import MetricRecord
from sentinel_metrics.services.metric_query import MetricQuery
from sentinel_metrics.services.metric_writer import MetricWriter


class MetricsRepository:
  """save / save_all / query_range / list_resources over the metric store."""

  def __init__(self, writer: MetricWriter, query: MetricQuery):
    self.writer = writer
    self.query = query

  def save(self, record: Optional[MetricRecord]) -> None:
    self.writer.save(record)

  def save_all(self, records: Optional[Iterable[MetricRecord]]) -> None:
    self.writer.save_all(records)

  def query_range(self, app: str, resource: str, start_time: int, end_time: int) -> List[MetricRecord]:
    return self.query.query_range(app, resource, start_time, end_time)

  def list_resources(self, app: str) -> List[str]:
    return self.query.list_resources(app)


def create_metrics_repository(settings: Optional[StoreSettings] = None) -> MetricsRepository:
  """Build a repository bound to the configured store.

  Args:
      settings: Store settings (read from the environment if None)

  Returns:
      MetricsRepository whose operations each open their own store session

  Raises:
      ValueError: If the store is not configured
  """
  if settings is None:
    settings = get_store_settings()

  session_factory = partial(store_session, settings)
  return MetricsRepository(
    writer=MetricWriter(session_factory=session_factory),
    query=MetricQuery(session_factory=session_factory, database=settings.database),
  )
