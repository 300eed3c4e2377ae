"""Unit tests for the store time boundary."""

from datetime import datetime, timedelta, timezone

from sentinel_metrics.lib.store_time import (
  STORE_TIME_OFFSET,
  format_store_time,
  from_epoch_millis,
  from_store_time,
  to_epoch_millis,
  to_store_time,
)

EIGHT_HOURS_MS = 8 * 60 * 60 * 1000


def test_offset_is_eight_hours():
  assert STORE_TIME_OFFSET == timedelta(hours=8)


def test_to_store_time_subtracts_offset():
  assert to_store_time(1587222480000) == 1587222480000 - EIGHT_HOURS_MS


def test_from_store_time_inverts_to_store_time():
  for value in (0, 1, 1587222480000, 1587222480999):
    assert from_store_time(to_store_time(value)) == value


def test_format_store_time_shifts_and_keeps_milliseconds():
  assert format_store_time(EIGHT_HOURS_MS) == '1970-01-01 00:00:00.000'
  assert format_store_time(EIGHT_HOURS_MS + 1234) == '1970-01-01 00:00:01.234'
  assert format_store_time(1587222480007) == '2020-04-18 07:08:00.007'


def test_epoch_millis_conversions():
  aware = datetime(2020, 4, 18, 15, 8, 0, 250000, tzinfo=timezone.utc)
  assert to_epoch_millis(aware) == 1587222480250
  assert to_epoch_millis(aware.replace(tzinfo=None)) == 1587222480250
  assert from_epoch_millis(1587222480250) == aware


def test_format_store_time_clamps_open_upper_bound():
  assert format_store_time(2**63 - 1) == '9999-12-31 23:59:59.999'


def test_format_store_time_clamps_below_calendar_start():
  assert format_store_time(-(2**63)) == '0001-01-01 00:00:00.000'
