"""Time-series store connection module.

Provides the store contract consumed by the metric adapters, an InfluxDB
implementation of it, environment-driven settings, and a scoped session
helper that opens one client per call and always closes it.
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Protocol

import requests
from influxdb import InfluxDBClient
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError

DEFAULT_DATABASE = 'sentinel_db'

# Failures raised by the store client itself (rejected query, server error,
# unreachable host).
STORE_ERRORS = (
  InfluxDBClientError,
  InfluxDBServerError,
  requests.exceptions.ConnectionError,
  ConnectionError,
)


class MetricStore(Protocol):
  """Contract of the backing time-series store."""

  def write(self, point: Dict[str, Any]) -> None:
    """Write one point (measurement, tags, fields, epoch-ms time)."""

  def query(self, database: str, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Run a templated query with named bind parameters and return flat rows."""

  def close(self) -> None:
    """Release the underlying connection."""


class InfluxDBMetricStore:
  """MetricStore backed by an InfluxDB 1.x client."""

  def __init__(self, client: InfluxDBClient, database: str):
    """Initialize store.

    Args:
        client: Configured InfluxDB client
        database: Database that points are written into
    """
    self.client = client
    self.database = database

  def write(self, point: Dict[str, Any]) -> None:
    self.client.write_points([point], time_precision='ms', database=self.database)

  def query(self, database: str, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    result = self.client.query(query, bind_params=params, database=database, epoch='ms')
    return list(result.get_points())

  def close(self) -> None:
    self.client.close()


@dataclass(frozen=True)
class StoreSettings:
  """Connection settings for the time-series store."""

  host: str
  port: int = 8086
  username: str = ''
  password: str = ''
  database: str = DEFAULT_DATABASE
  ssl: bool = False
  timeout: Optional[float] = None


def is_store_configured() -> bool:
  """Check if the time-series store is configured.

  Returns:
      True if INFLUXDB_HOST is set, False otherwise
  """
  return bool(os.getenv('INFLUXDB_HOST'))


def get_store_settings() -> StoreSettings:
  """Read store settings from the environment.

  Environment variables:
      INFLUXDB_HOST: Store host (required)
      INFLUXDB_PORT: Store port (default: 8086)
      INFLUXDB_USERNAME / INFLUXDB_PASSWORD: Credentials (default: empty)
      INFLUXDB_DATABASE: Database name (default: sentinel_db)
      INFLUXDB_SSL: Use HTTPS when "true" (default: false)
      INFLUXDB_TIMEOUT: Client timeout in seconds (default: none)

  Returns:
      StoreSettings built from the environment

  Raises:
      ValueError: If the store is not configured
  """
  if not is_store_configured():
    raise ValueError(
      'Metric store is not configured. Please set the INFLUXDB_HOST environment variable.'
    )

  timeout = os.getenv('INFLUXDB_TIMEOUT')
  return StoreSettings(
    host=os.environ['INFLUXDB_HOST'],
    port=int(os.getenv('INFLUXDB_PORT', '8086')),
    username=os.getenv('INFLUXDB_USERNAME', ''),
    password=os.getenv('INFLUXDB_PASSWORD', ''),
    database=os.getenv('INFLUXDB_DATABASE', DEFAULT_DATABASE),
    ssl=os.getenv('INFLUXDB_SSL', 'false').lower() == 'true',
    timeout=float(timeout) if timeout else None,
  )


def create_store_client(settings: Optional[StoreSettings] = None) -> InfluxDBMetricStore:
  """Create a store client.

  Args:
      settings: Connection settings (read from the environment if None)

  Returns:
      InfluxDBMetricStore wrapping a fresh InfluxDB client
  """
  if settings is None:
    settings = get_store_settings()

  client = InfluxDBClient(
    host=settings.host,
    port=settings.port,
    username=settings.username,
    password=settings.password,
    database=settings.database,
    ssl=settings.ssl,
    verify_ssl=settings.ssl,
    timeout=settings.timeout,
  )
  return InfluxDBMetricStore(client, settings.database)


@contextmanager
def store_session(settings: Optional[StoreSettings] = None) -> Iterator[MetricStore]:
  """Open a store client scoped to one operation.

  The client is closed on every exit path, including failure.

  Yields:
      MetricStore for the duration of the ``with`` block

  Usage:
      with store_session() as store:
          store.write(point)
  """
  store = create_store_client(settings)
  try:
    yield store
  finally:
    store.close()
