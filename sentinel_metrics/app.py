"""FastAPI application for the Sentinel metrics dashboard backend."""

import re
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from sentinel_metrics.lib.metrics import record_request_duration
from sentinel_metrics.lib.structured_logger import configure_logging, log_request, set_correlation_id
from sentinel_metrics.routers import router
from sentinel_metrics.routers.metrics import MAX_BATCH_SIZE

# Load .env files
load_dotenv('.env')
load_dotenv('.env.local', override=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
  """Manage application lifespan."""
  configure_logging()
  yield


app = FastAPI(
  title='Sentinel Metrics API',
  description='Flow-control metric storage and hot-resource ranking for the operations dashboard',
  version='0.1.0',
  lifespan=lifespan,
)


@app.middleware('http')
async def add_correlation_id(request: Request, call_next):
  """Inject correlation ID into the request context and time the request.

  - Extracts X-Correlation-ID header or generates new UUID
  - Sets correlation ID in context for logging
  - Adds X-Correlation-ID to response headers
  - Records request duration and logs the request
  """
  correlation_id = request.headers.get('X-Correlation-ID', str(uuid4()))
  set_correlation_id(correlation_id)
  request.state.correlation_id = correlation_id

  start_time = time.time()
  response = await call_next(request)
  duration_seconds = time.time() - start_time

  response.headers['X-Correlation-ID'] = correlation_id

  # Skip health and metrics endpoints to reduce noise
  if request.url.path not in ['/health', '/api/health', '/metrics']:
    record_request_duration(
      endpoint=request.url.path,
      method=request.method,
      status=response.status_code,
      duration_seconds=duration_seconds,
    )
    log_request(
      endpoint=request.url.path,
      method=request.method,
      status_code=response.status_code,
      duration_ms=duration_seconds * 1000,
    )

  return response


@app.get('/health')
async def health_root():
  """Health check endpoint at root level (for load balancers)."""
  return {'status': 'healthy'}


@app.get('/api/health')
async def health_api():
  """Health check endpoint under /api prefix."""
  return {'status': 'healthy'}


@app.get('/metrics')
async def metrics_root():
  """Prometheus metrics endpoint."""
  return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request: Request, exc: RequestValidationError):
  """Convert oversized metric batches to 413 Payload Too Large.

  Every other validation error keeps the default 422 response.
  """
  for error in exc.errors():
    error_msg = error.get('msg', '')
    if 'Batch size exceeds maximum' in error_msg:
      match = re.search(r'received: (\d+)', error_msg)
      received_count = int(match.group(1)) if match else None

      return JSONResponse(
        status_code=413,
        content={
          'detail': f'Batch size exceeds maximum of {MAX_BATCH_SIZE} records',
          'max_batch_size': MAX_BATCH_SIZE,
          'received': received_count,
        },
      )

  return JSONResponse(status_code=422, content={'detail': jsonable_encoder(exc.errors())})


app.include_router(router)
