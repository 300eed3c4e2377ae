"""Immutable per-resource accumulator used to merge metric records."""

from dataclasses import dataclass

from sentinel_metrics.models.metric_record import MetricRecord


@dataclass(frozen=True)
class ResourceSummary:
  """Running totals for one resource over a set of merged records.

  Every attribute is a plain sum, so ``merge`` is associative and
  commutative. ``rt`` and ``success_qps`` are derived as averages weighted
  by each record's sample ``count``; when no record carries samples they
  fall back to the arithmetic mean over merged records.
  """

  resource: str
  pass_qps: float = 0.0
  block_qps: float = 0.0
  exception_qps: float = 0.0
  count: int = 0
  sample_weight: float = 0.0
  weighted_rt: float = 0.0
  weighted_success_qps: float = 0.0
  rt_total: float = 0.0
  success_qps_total: float = 0.0

  @classmethod
  def of(cls, record: MetricRecord) -> 'ResourceSummary':
    """Snapshot a single record; the record itself is never retained."""
    weight = float(record.count)
    return cls(
      resource=record.resource,
      pass_qps=record.pass_qps,
      block_qps=record.block_qps,
      exception_qps=record.exception_qps,
      count=1,
      sample_weight=weight,
      weighted_rt=record.rt * weight,
      weighted_success_qps=record.success_qps * weight,
      rt_total=record.rt,
      success_qps_total=record.success_qps,
    )

  def merge(self, other: 'ResourceSummary') -> 'ResourceSummary':
    """Return a new summary combining ``self`` and ``other``."""
    return ResourceSummary(
      resource=self.resource,
      pass_qps=self.pass_qps + other.pass_qps,
      block_qps=self.block_qps + other.block_qps,
      exception_qps=self.exception_qps + other.exception_qps,
      count=self.count + other.count,
      sample_weight=self.sample_weight + other.sample_weight,
      weighted_rt=self.weighted_rt + other.weighted_rt,
      weighted_success_qps=self.weighted_success_qps + other.weighted_success_qps,
      rt_total=self.rt_total + other.rt_total,
      success_qps_total=self.success_qps_total + other.success_qps_total,
    )

  @property
  def rt(self) -> float:
    if self.sample_weight > 0:
      return self.weighted_rt / self.sample_weight
    return self.rt_total / self.count if self.count else 0.0

  @property
  def success_qps(self) -> float:
    if self.sample_weight > 0:
      return self.weighted_success_qps / self.sample_weight
    return self.success_qps_total / self.count if self.count else 0.0
