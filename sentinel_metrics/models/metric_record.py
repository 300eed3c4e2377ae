"""Metric record: one timestamped flow-control sample for an app resource."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sentinel_metrics.lib.store_time import (
  from_epoch_millis,
  from_store_time,
  to_epoch_millis,
  to_store_time,
)

METRIC_MEASUREMENT = 'sentinel_metric'


def _utcnow() -> datetime:
  return datetime.now(timezone.utc)


def is_blank(value: Optional[str]) -> bool:
  """Return True for None, empty or whitespace-only strings."""
  return value is None or not value.strip()


class MetricRecord(BaseModel):
  """Per-bucket telemetry reported by a monitored application.

  Attributes are snake_case in Python and camelCase on the wire
  (``passQps``, ``createdAt``, ...). ``app`` and ``resource`` may be blank
  here; blank records are skipped at write time rather than rejected.
  """

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

  id: Optional[int] = Field(None, description='Opaque identifier, assigned on save when missing')
  app: str = Field('', description='Application name')
  resource: str = Field('', description='Resource name')
  timestamp: int = Field(..., description='Bucket start (epoch milliseconds)')
  pass_qps: float = Field(0.0, ge=0, description='Passed requests per second')
  success_qps: float = Field(0.0, ge=0, description='Successful requests per second')
  block_qps: float = Field(0.0, ge=0, description='Blocked requests per second')
  exception_qps: float = Field(0.0, ge=0, description='Exceptions per second')
  rt: float = Field(0.0, description='Average response time of successful calls')
  count: int = Field(0, ge=0, description='Number of samples in the bucket')
  resource_code: int = Field(0, description='Resource classification code')
  created_at: datetime = Field(default_factory=_utcnow, description='Ingestion wall-clock time')

  def is_persistable(self) -> bool:
    """Whether the record carries both an app and a resource name."""
    return not is_blank(self.app) and not is_blank(self.resource)

  def to_point(self, measurement: str = METRIC_MEASUREMENT) -> Dict[str, Any]:
    """Build the store point for this record.

    ``app`` and ``resource`` become tags, the remaining attributes fields.
    The identifier is not part of the stored schema.

    Args:
        measurement: Measurement name to write into

    Returns:
        Point dictionary with measurement, time (epoch ms), tags and fields
    """
    return {
      'measurement': measurement,
      'time': to_store_time(self.timestamp),
      'tags': {
        'app': self.app,
        'resource': self.resource,
      },
      'fields': {
        'createdAt': to_epoch_millis(self.created_at),
        'passQps': float(self.pass_qps),
        'successQps': float(self.success_qps),
        'blockQps': float(self.block_qps),
        'exceptionQps': float(self.exception_qps),
        'rt': float(self.rt),
        'count': int(self.count),
        'resourceCode': int(self.resource_code),
      },
    }

  @classmethod
  def from_row(cls, row: Dict[str, Any]) -> 'MetricRecord':
    """Map a flat store row back into a record.

    Args:
        row: Row with ``time`` (epoch ms), tag columns and field columns

    Returns:
        MetricRecord with ``timestamp`` restored to the wall clock
    """
    values: Dict[str, Any] = {
      'app': row.get('app') or '',
      'resource': row.get('resource') or '',
      'timestamp': from_store_time(row['time']),
      'pass_qps': row.get('passQps') or 0.0,
      'success_qps': row.get('successQps') or 0.0,
      'block_qps': row.get('blockQps') or 0.0,
      'exception_qps': row.get('exceptionQps') or 0.0,
      'rt': row.get('rt') or 0.0,
      'count': int(row.get('count') or 0),
      'resource_code': int(row.get('resourceCode') or 0),
    }
    if row.get('createdAt') is not None:
      values['created_at'] = from_epoch_millis(row['createdAt'])
    return cls(**values)
