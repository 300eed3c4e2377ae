"""Time conversions at the time-series store boundary.

Every timestamp that crosses into the store (point time on write, range
bounds on read) goes through ``to_store_time``; every time read back from a
row goes through ``from_store_time``. The store is fed wall-clock values
shifted by a fixed offset, so both directions must use the same constant.
"""

import time
from datetime import datetime, timedelta, timezone

# Fixed compensation between the dashboard wall clock and the store time axis.
STORE_TIME_OFFSET = timedelta(hours=8)

_OFFSET_MS = int(STORE_TIME_OFFSET.total_seconds() * 1000)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MIN_MS = (datetime.min.replace(tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
_MAX_MS = (datetime.max.replace(tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


def current_time_millis() -> int:
  """Return the current wall-clock time in epoch milliseconds."""
  return int(time.time() * 1000)


def to_store_time(epoch_ms: int) -> int:
  """Shift a wall-clock epoch-ms value onto the store time axis."""
  return int(epoch_ms) - _OFFSET_MS


def from_store_time(epoch_ms: int) -> int:
  """Shift a store epoch-ms value back onto the wall clock."""
  return int(epoch_ms) + _OFFSET_MS


def format_store_time(epoch_ms: int) -> str:
  """Render a wall-clock bound as a store query literal.

  The value is shifted with ``to_store_time`` and formatted as
  ``YYYY-MM-DD HH:MM:SS.mmm`` in UTC. Bounds past the calendar range
  (e.g. 2**63 - 1 as an open upper bound) clamp to year 1 or year 9999.

  Args:
      epoch_ms: Wall-clock time in epoch milliseconds

  Returns:
      Formatted timestamp string with millisecond precision
  """
  shifted = min(max(to_store_time(epoch_ms), _MIN_MS), _MAX_MS)
  moment = _EPOCH + timedelta(milliseconds=shifted)
  return moment.replace(tzinfo=None).isoformat(sep=' ', timespec='milliseconds')


def to_epoch_millis(value: datetime) -> int:
  """Convert a datetime to epoch milliseconds (naive values are taken as UTC)."""
  if value.tzinfo is None:
    value = value.replace(tzinfo=timezone.utc)
  return (value - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(epoch_ms: int) -> datetime:
  """Convert epoch milliseconds to an aware UTC datetime."""
  return _EPOCH + timedelta(milliseconds=int(epoch_ms))
