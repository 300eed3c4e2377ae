"""Metrics API endpoints for the operations dashboard.

Ingests batches of metric records, serves range queries for one resource
and the ranked "hot resources" list of an app.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from sentinel_metrics.lib.store import STORE_ERRORS, is_store_configured
from sentinel_metrics.lib.structured_logger import StructuredLogger
from sentinel_metrics.models.metric_record import MetricRecord
from sentinel_metrics.services.metric_query import HOT_RESOURCE_WINDOW
from sentinel_metrics.services.metrics_repository import MetricsRepository, create_metrics_repository

logger = logging.getLogger(__name__)
store_logger = StructuredLogger(__name__)

router = APIRouter(prefix='/api/v1/metrics', tags=['Metrics'])

MAX_BATCH_SIZE = 1000
# Largest signed 64-bit value; dashboards send it as an open upper bound.
MAX_EPOCH_MS = 2**63 - 1


# Pydantic models for request/response validation


class MetricBatchRequest(BaseModel):
  """Batch of metric records reported by a monitoring client."""

  metrics: List[MetricRecord] = Field(
    ..., min_length=1, description='Metric records (max 1000 per batch)'
  )

  @field_validator('metrics')
  @classmethod
  def validate_batch_size(cls, v):
    """Reject oversized batches.

    The message is matched by the app's validation handler and turned into
    a 413 response.
    """
    if len(v) > MAX_BATCH_SIZE:
      raise ValueError(
        f'Batch size exceeds maximum of {MAX_BATCH_SIZE} records (received: {len(v)})'
      )
    return v


class MetricBatchResponse(BaseModel):
  """Response for batch metric submission."""

  message: str = Field(..., description='Status message')
  records_received: int = Field(..., description='Number of records in the batch')
  status: str = Field(..., description='Processing status')


class MetricRangeResponse(BaseModel):
  """Records of one resource within a time range."""

  app: str
  resource: str
  start_time: int = Field(..., description='Inclusive lower bound (epoch ms)')
  end_time: int = Field(..., description='Inclusive upper bound (epoch ms)')
  metrics: List[MetricRecord] = Field(..., description='Records in store order')


class HotResourcesResponse(BaseModel):
  """Resources of an app ranked by block pressure."""

  app: str
  window_seconds: int = Field(..., description='Lookback window of the ranking')
  resources: List[str] = Field(..., description='Resource names, most blocked first')


def get_metrics_repository() -> MetricsRepository:
  """Dependency providing a repository bound to the configured store."""
  if not is_store_configured():
    raise HTTPException(
      status_code=503, detail='Metrics service unavailable: metric store not configured'
    )
  return create_metrics_repository()


def _store_failure(action: str, exc: Exception, **context) -> HTTPException:
  store_logger.error(f'Failed to {action}: {exc}', exc_info=True, **context)
  return HTTPException(status_code=502, detail=f'Metric store error while trying to {action}')


@router.post('', status_code=202, response_model=MetricBatchResponse)
def submit_metrics(
  request: MetricBatchRequest,
  repository: MetricsRepository = Depends(get_metrics_repository),
):
  """Submit a batch of metric records.

  Records without an app or resource are accepted but not stored.

  Args:
      request: Batch of metric records
      repository: Metrics repository

  Returns:
      Confirmation with count of records received
  """
  logger.info(f'Received {len(request.metrics)} metric records')

  try:
    repository.save_all(request.metrics)
  except STORE_ERRORS as e:
    raise _store_failure('save metrics', e, record_count=len(request.metrics))

  return MetricBatchResponse(
    message='Metrics accepted', records_received=len(request.metrics), status='stored'
  )


@router.get('/query', response_model=MetricRangeResponse)
def query_metrics(
  app: str = Query(..., description='Application name'),
  resource: str = Query(..., description='Resource name'),
  start_time: int = Query(
    ..., alias='startTime', ge=0, le=MAX_EPOCH_MS, description='Epoch ms, inclusive'
  ),
  end_time: int = Query(
    ..., alias='endTime', ge=0, le=MAX_EPOCH_MS, description='Epoch ms, inclusive'
  ),
  repository: MetricsRepository = Depends(get_metrics_repository),
):
  """Get metric records of one resource between two timestamps.

  Args:
      app: Application name
      resource: Resource name
      start_time: Range start (epoch ms)
      end_time: Range end (epoch ms)
      repository: Metrics repository

  Returns:
      MetricRangeResponse with records in store order
  """
  if start_time > end_time:
    raise HTTPException(status_code=400, detail='startTime must not be after endTime')

  try:
    records = repository.query_range(app, resource, start_time, end_time)
  except STORE_ERRORS as e:
    raise _store_failure('query metrics', e, app=app, resource=resource)

  return MetricRangeResponse(
    app=app, resource=resource, start_time=start_time, end_time=end_time, metrics=records
  )


@router.get('/resources', response_model=HotResourcesResponse)
def list_hot_resources(
  app: str = Query(..., description='Application name'),
  repository: MetricsRepository = Depends(get_metrics_repository),
):
  """Get the resources of an app, most block-pressured first."""
  try:
    resources = repository.list_resources(app)
  except STORE_ERRORS as e:
    raise _store_failure('list resources', e, app=app)

  return HotResourcesResponse(
    app=app,
    window_seconds=int(HOT_RESOURCE_WINDOW.total_seconds()),
    resources=resources,
  )
