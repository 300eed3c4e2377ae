"""Models package for metric records and their aggregates."""

from sentinel_metrics.models.metric_record import METRIC_MEASUREMENT, MetricRecord
from sentinel_metrics.models.resource_summary import ResourceSummary

__all__ = [
  'METRIC_MEASUREMENT',
  'MetricRecord',
  'ResourceSummary',
]
