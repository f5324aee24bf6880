"""Utility consumption over the billing window.

Pure functions over a meter's reading history; nothing here touches the
database, so callers pass in already loaded meters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Tuple
from uuid import UUID

from dateutil.relativedelta import relativedelta

from rentledger.models.meter import MeterType

logger = logging.getLogger(__name__)

# Converts hot water cubic meters to the gas equivalent cost basis
HOT_WATER_ENERGY_FACTOR = 58.15
BILLING_WINDOW_MONTHS = 12


@dataclass(frozen=True)
class MeterConsumption:
	meter_id: UUID
	meter_number: str
	meter_type: MeterType
	difference: int
	total_cost: float


def _as_utc(value: datetime) -> datetime:
	"""Treat naive timestamps as UTC."""
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


def billing_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
	"""Inclusive [now - 12 months, now] window."""
	end = _as_utc(now or datetime.now(timezone.utc))
	return end - relativedelta(months=BILLING_WINDOW_MONTHS), end


def consumption_delta(reading_updates: Iterable, start: datetime, end: datetime) -> Optional[int]:
	"""Last minus first reading inside the window, by recorded timestamp.

	Returns None when no update falls inside the window. Negative deltas are
	passed through unchanged.
	"""
	start, end = _as_utc(start), _as_utc(end)
	in_window = sorted(
		(u for u in reading_updates if start <= _as_utc(u.recorded_at) <= end),
		key=lambda u: _as_utc(u.recorded_at),
	)
	if not in_window:
		return None
	return in_window[-1].reading - in_window[0].reading


def meter_cost(meter_type: MeterType, base_cost: float, cost_per_unit: float, difference: int) -> float:
	if meter_type == MeterType.HOT_WATER:
		return base_cost + difference * HOT_WATER_ENERGY_FACTOR * cost_per_unit
	return base_cost + difference * cost_per_unit


def calculate_consumption(meters: Iterable, now: Optional[datetime] = None) -> Dict[UUID, MeterConsumption]:
	"""Consumption and cost per meter id.

	Meters without any reading update inside the window are left out
	entirely: no history means no charge.
	"""
	start, end = billing_window(now)
	result: Dict[UUID, MeterConsumption] = {}

	for meter in meters:
		difference = consumption_delta(meter.reading_updates, start, end)
		if difference is None:
			logger.info(f"Meter {meter.meter_number} has no readings between {start:%Y-%m-%d} and {end:%Y-%m-%d}, skipping")
			continue

		meter_type = MeterType(meter.type)
		result[meter.id] = MeterConsumption(
			meter_id=meter.id,
			meter_number=meter.meter_number,
			meter_type=meter_type,
			difference=difference,
			total_cost=meter_cost(meter_type, meter.base_cost, meter.cost_per_unit, difference),
		)

	return result
