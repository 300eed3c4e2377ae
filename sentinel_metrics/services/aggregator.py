"""Merge raw per-bucket metric records into ranked per-resource summaries.

Pure functions, no I/O. Used by the "hot resources" dashboard view.
"""

from functools import reduce
from typing import Dict, Iterable, List

from sentinel_metrics.models.metric_record import MetricRecord
from sentinel_metrics.models.resource_summary import ResourceSummary


def merge_records(records: Iterable[MetricRecord]) -> Dict[str, ResourceSummary]:
  """Fold records into one summary per resource.

  Records are grouped by ``resource`` in order of first appearance. Each
  group is reduced over independent snapshots, so the input records are
  never mutated.

  Args:
      records: Metric records of a single app

  Returns:
      Mapping of resource name to its merged summary
  """
  groups: Dict[str, List[ResourceSummary]] = {}
  for record in records:
    groups.setdefault(record.resource, []).append(ResourceSummary.of(record))

  return {resource: reduce(ResourceSummary.merge, snapshots) for resource, snapshots in groups.items()}


def _ranking_key(summary: ResourceSummary):
  return (-summary.block_qps, -summary.pass_qps)


def rank_resources(summaries: Dict[str, ResourceSummary]) -> List[str]:
  """Order resource names by block pressure.

  Primary key is ``block_qps`` descending, secondary ``pass_qps``
  descending; remaining ties keep their grouping order (``sorted`` is
  stable).
  """
  ranked = sorted(summaries.items(), key=lambda item: _ranking_key(item[1]))
  return [resource for resource, _ in ranked]


def top_resources(records: Iterable[MetricRecord]) -> List[str]:
  """Merge records and return resource names, most blocked first."""
  return rank_resources(merge_records(records))
