import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from rentledger.models.meter import MeterType
from rentledger.services.consumption import (
	HOT_WATER_ENERGY_FACTOR,
	billing_window,
	calculate_consumption,
	consumption_delta,
	meter_cost,
)

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def update(reading, days_ago):
	return SimpleNamespace(reading=reading, recorded_at=NOW - timedelta(days=days_ago))


def meter(meter_type=MeterType.GAS, updates=(), base_cost=12.50, cost_per_unit=0.48, number="M-1"):
	return SimpleNamespace(
		id=uuid.uuid4(),
		meter_number=number,
		type=meter_type,
		base_cost=base_cost,
		cost_per_unit=cost_per_unit,
		reading_updates=list(updates),
	)


def test_billing_window_is_twelve_months_back():
	start, end = billing_window(NOW)
	assert end == NOW
	assert start == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_billing_window_clamps_leap_day():
	start, _ = billing_window(datetime(2024, 2, 29, tzinfo=timezone.utc))
	assert start == datetime(2023, 2, 28, tzinfo=timezone.utc)


def test_billing_window_treats_naive_now_as_utc():
	start, end = billing_window(datetime(2025, 1, 31, 23, 59))
	assert end == datetime(2025, 1, 31, 23, 59, tzinfo=timezone.utc)
	assert start == datetime(2024, 1, 31, 23, 59, tzinfo=timezone.utc)


def test_delta_is_last_minus_first_by_timestamp():
	start, end = billing_window(NOW)
	# Deliberately out of order
	updates = [update(1500, 100), update(2000, 10), update(1000, 300)]
	assert consumption_delta(updates, start, end) == 1000


def test_delta_none_without_updates_in_window():
	start, end = billing_window(NOW)
	assert consumption_delta([update(1000, 400), update(2000, 380)], start, end) is None
	assert consumption_delta([], start, end) is None


def test_single_update_in_window_has_zero_delta():
	start, end = billing_window(NOW)
	assert consumption_delta([update(1000, 400), update(2000, 30)], start, end) == 0


def test_window_bounds_are_inclusive():
	start, end = billing_window(NOW)
	updates = [
		SimpleNamespace(reading=100, recorded_at=start),
		SimpleNamespace(reading=700, recorded_at=end),
	]
	assert consumption_delta(updates, start, end) == 600


def test_negative_delta_passes_through():
	start, end = billing_window(NOW)
	assert consumption_delta([update(2000, 200), update(1500, 20)], start, end) == -500


def test_naive_timestamps_are_utc():
	start, end = billing_window(NOW)
	updates = [
		SimpleNamespace(reading=10, recorded_at=(NOW - timedelta(days=60)).replace(tzinfo=None)),
		SimpleNamespace(reading=25, recorded_at=(NOW - timedelta(days=5)).replace(tzinfo=None)),
	]
	assert consumption_delta(updates, start, end) == 15


def test_meter_cost_formulas():
	assert meter_cost(MeterType.GAS, 12.50, 0.48, 1000) == pytest.approx(492.50)
	assert meter_cost(MeterType.ELECTRICITY, 5.0, 0.30, 100) == pytest.approx(35.0)
	assert meter_cost(MeterType.HOT_WATER, 12.50, 0.48, 1000) == pytest.approx(
		12.50 + 1000 * HOT_WATER_ENERGY_FACTOR * 0.48
	)
	assert meter_cost(MeterType.HOT_WATER, 12.50, 0.48, 1000) == pytest.approx(27924.50)


def test_calculate_consumption_skips_meters_without_history():
	active = meter(updates=[update(1000, 330), update(2000, 30)], number="GAS-1")
	idle = meter(updates=[update(1000, 500), update(2000, 400)], number="GAS-2")

	result = calculate_consumption([active, idle], NOW)

	assert set(result) == {active.id}
	entry = result[active.id]
	assert entry.difference == 1000
	assert entry.total_cost == pytest.approx(492.50)
	assert entry.meter_type == MeterType.GAS


def test_calculate_consumption_accepts_type_values():
	water = meter(meter_type="hot_water", updates=[update(10, 100), update(12, 1)])
	entry = calculate_consumption([water], NOW)[water.id]
	assert entry.meter_type == MeterType.HOT_WATER
	assert entry.total_cost == pytest.approx(12.50 + 2 * HOT_WATER_ENERGY_FACTOR * 0.48)
