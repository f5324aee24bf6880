import uuid
from types import SimpleNamespace

import pytest

from rentledger.models.additional_cost import Distribution, Frequency
from rentledger.services.apportionment import (
	BuildingTotals,
	annualize_flat_additions,
	apportion_operating_cost,
	apportion_operating_costs,
	billable_cost_shares,
)
from rentledger.services.errors import ApportionmentError, ValidationFailedError


def flat(square_meter, residents):
	return SimpleNamespace(id=uuid.uuid4(), square_meter=square_meter, residents=residents)


def cost(amount, distribution, frequency=Frequency.YEARLY, name="Cost"):
	return SimpleNamespace(id=uuid.uuid4(), name=name, amount=amount, distribution=distribution, frequency=frequency)


FLATS = [flat(50, 1), flat(70, 3), flat(80, 0)]


@pytest.mark.parametrize("distribution", [
	Distribution.BY_FLAT,
	Distribution.BY_SQUARE_METERS,
	Distribution.BY_PERSON,
])
@pytest.mark.parametrize("frequency", list(Frequency))
def test_dividing_distributions_conserve_annual_amount(distribution, frequency):
	item = cost(120.0, distribution, frequency)
	totals = BuildingTotals.of(FLATS)
	shares = [apportion_operating_cost(item, f, totals) for f in FLATS]
	assert sum(shares) == pytest.approx(120.0 * frequency.factor)


def test_by_square_meters_share():
	item = cost(1000.0, Distribution.BY_SQUARE_METERS)
	share = apportion_operating_cost(item, FLATS[1], BuildingTotals.of(FLATS))
	assert share == pytest.approx(1000.0 / 200 * 70)


def test_by_person_uses_float_division():
	item = cost(100.0, Distribution.BY_PERSON)
	share = apportion_operating_cost(item, FLATS[0], BuildingTotals.of(FLATS))
	assert share == pytest.approx(25.0)


def test_none_charges_every_flat_in_full():
	item = cost(30.0, Distribution.NONE, Frequency.QUARTERLY)
	totals = BuildingTotals.of(FLATS)
	assert [apportion_operating_cost(item, f, totals) for f in FLATS] == [120.0, 120.0, 120.0]


def test_missing_distribution_is_skipped():
	skipped = cost(99.0, None, name="Unassigned")
	kept = cost(25.0, Distribution.BY_FLAT, Frequency.MONTHLY)
	single = [flat(100, 2)]

	shares = apportion_operating_costs([skipped, kept], single[0], single)

	assert shares == {kept.id: pytest.approx(300.0)}


def test_zero_residents_cannot_be_split():
	empty = [flat(60, 0), flat(40, 0)]
	with pytest.raises(ApportionmentError) as exc_info:
		apportion_operating_costs([cost(50.0, Distribution.BY_PERSON)], empty[0], empty)
	assert isinstance(exc_info.value, ValidationFailedError)
	assert exc_info.value.status_code == 400


def test_no_flats_cannot_be_split_by_flat():
	with pytest.raises(ApportionmentError):
		apportion_operating_cost(cost(50.0, Distribution.BY_FLAT), flat(10, 1), BuildingTotals.of([]))


def test_flat_additions_are_annualized_but_not_billed():
	garage = cost(40.0, None, Frequency.MONTHLY, name="Garage")
	additions = annualize_flat_additions([garage])
	assert additions == {garage.id: 480.0}

	operating = {uuid.uuid4(): 300.0}
	assert billable_cost_shares(operating, additions) == operating
