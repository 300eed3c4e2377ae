"""Write adapter: persists metric records as store points."""

import logging
from typing import Callable, ContextManager, Iterable, Optional

from sentinel_metrics.lib.metrics import record_written, track_store_operation
from sentinel_metrics.lib.store import MetricStore, store_session
from sentinel_metrics.lib.store_time import current_time_millis
from sentinel_metrics.models.metric_record import METRIC_MEASUREMENT, MetricRecord

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[MetricStore]]


def _is_persistable(record: Optional[MetricRecord]) -> bool:
  return record is not None and record.is_persistable()


class MetricWriter:
  """Writes metric records to the time-series store.

  Records without an app or resource are skipped silently. Writes are
  never verified or retried; store errors reach the caller unchanged.
  """

  def __init__(
    self,
    session_factory: SessionFactory = store_session,
    clock: Callable[[], int] = current_time_millis,
    measurement: str = METRIC_MEASUREMENT,
  ):
    """Initialize writer.

    Args:
        session_factory: Opens a store session scoped to one call
        clock: Returns the current time in epoch milliseconds (used for ids)
        measurement: Measurement name points are written into
    """
    self.session_factory = session_factory
    self.clock = clock
    self.measurement = measurement

  def save(self, record: Optional[MetricRecord]) -> None:
    """Persist a single record.

    Args:
        record: Record to write; None or blank app/resource is a no-op
    """
    if not _is_persistable(record):
      return

    with track_store_operation('save'), self.session_factory() as store:
      self._write(store, record)

  def save_all(self, records: Optional[Iterable[MetricRecord]]) -> None:
    """Persist records one point at a time within one store session.

    There is no atomicity: when a write fails the error propagates, the
    remaining records are not attempted, and earlier ones stay written.

    Args:
        records: Records to write; None or empty is a no-op
    """
    if records is None:
      return

    batch = [record for record in records if _is_persistable(record)]
    if not batch:
      return

    with track_store_operation('save_all'), self.session_factory() as store:
      for record in batch:
        self._write(store, record)

    logger.debug(f'Saved {len(batch)} metric records')

  def _write(self, store: MetricStore, record: MetricRecord) -> None:
    # The id stays on the in-memory record; it is not part of the stored schema
    if record.id is None:
      record.id = self.clock()
    store.write(record.to_point(self.measurement))
    record_written(record.app)
