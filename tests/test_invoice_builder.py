import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from rentledger.models.additional_cost import Distribution, Frequency
from rentledger.models.meter import MeterType
from rentledger.services.invoice_service import build_invoice

NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


def scenario(meter_type=MeterType.GAS, reading_ages=(330, 30)):
	"""One building, one flat of 100 m² with 2 residents and 300 cold rent."""
	gas = SimpleNamespace(
		id=uuid.uuid4(),
		meter_number="GAS-001",
		type=meter_type,
		base_cost=12.50,
		cost_per_unit=0.48,
		reading_updates=[
			SimpleNamespace(reading=1000, recorded_at=NOW - timedelta(days=reading_ages[0])),
			SimpleNamespace(reading=2000, recorded_at=NOW - timedelta(days=reading_ages[1])),
		],
	)
	garage = SimpleNamespace(
		id=uuid.uuid4(), name="Garage", amount=40.0, distribution=None, frequency=Frequency.MONTHLY,
	)
	flat = SimpleNamespace(
		id=uuid.uuid4(),
		square_meter=100,
		residents=2,
		cold_rent=300.0,
		meters=[gas],
		addition_costs=[garage],
	)
	cleaning = SimpleNamespace(
		id=uuid.uuid4(), name="Cleaning", amount=25.0, distribution=Distribution.BY_FLAT, frequency=Frequency.MONTHLY,
	)
	building = SimpleNamespace(id=uuid.uuid4(), flats=[flat], operating_costs=[cleaning])
	return building, flat, gas, cleaning


def test_gas_scenario_totals():
	building, flat, gas, cleaning = scenario()

	invoice = build_invoice(building, flat, 5400.0, NOW)

	assert invoice.meter_difference == {gas.id: 1000}
	assert invoice.meter_total_cost[gas.id] == pytest.approx(492.50)
	assert invoice.operating_cost_per_distribution_key == {cleaning.id: pytest.approx(300.0)}
	assert invoice.total_cold_rent == 3600.0
	assert invoice.total_cost == pytest.approx(4392.50)
	assert invoice.total_warm_rent_paid == 5400.0
	assert invoice.total_square_meters == 100
	assert invoice.invoice_for_year == 2024
	assert invoice.paid is False


def test_hot_water_scenario_totals():
	building, flat, water, _ = scenario(MeterType.HOT_WATER)

	invoice = build_invoice(building, flat, 0.0, NOW)

	assert invoice.meter_total_cost[water.id] == pytest.approx(27924.50)
	assert invoice.total_cost == pytest.approx(27924.50 + 300 + 3600)


def test_readings_outside_window_contribute_nothing():
	building, flat, gas, _ = scenario(reading_ages=(500, 400))

	invoice = build_invoice(building, flat, 0.0, NOW)

	assert invoice.meter_difference == {}
	assert invoice.meter_total_cost == {}
	assert invoice.meter_lines == []
	assert invoice.total_cost == pytest.approx(300 + 3600)


def test_flat_addition_costs_stay_off_the_invoice():
	building, flat, _, cleaning = scenario()

	invoice = build_invoice(building, flat, 0.0, NOW)

	assert [line.name for line in invoice.cost_lines] == ["Cleaning"]
	line = invoice.cost_lines[0]
	assert line.additional_cost_id == cleaning.id
	assert line.distribution == Distribution.BY_FLAT
	assert line.frequency == Frequency.MONTHLY


def test_lines_snapshot_meter_and_carry_invoice_id():
	building, flat, gas, _ = scenario()

	invoice = build_invoice(building, flat, 0.0, NOW)

	assert invoice.id is not None
	[line] = invoice.meter_lines
	assert line.invoice_id == invoice.id
	assert line.meter_number == "GAS-001"
	assert line.meter_type == MeterType.GAS
	assert invoice.flat_id == flat.id
	assert invoice.building_id == building.id


def test_total_square_meters_covers_whole_building():
	building, flat, _, _ = scenario()
	neighbour = SimpleNamespace(
		id=uuid.uuid4(), square_meter=60, residents=1, cold_rent=200.0, meters=[], addition_costs=[],
	)
	building.flats.append(neighbour)

	invoice = build_invoice(building, flat, 0.0, NOW)

	assert invoice.total_square_meters == 160
	# Cleaning is now split across two flats
	assert invoice.operating_cost_per_distribution_key[building.operating_costs[0].id] == pytest.approx(150.0)
