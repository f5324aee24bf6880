"""Splitting recurring costs across the flats of a building."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence
from uuid import UUID

from rentledger.models.additional_cost import Distribution, Frequency
from rentledger.services.errors import ApportionmentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildingTotals:
	flat_count: int
	square_meters: int
	residents: int

	@classmethod
	def of(cls, flats: Sequence) -> "BuildingTotals":
		return cls(
			flat_count=len(flats),
			square_meters=sum(f.square_meter for f in flats),
			residents=sum(f.residents for f in flats),
		)


def annual_amount(cost) -> float:
	return cost.amount * Frequency(cost.frequency).factor


def apportion_operating_cost(cost, flat, totals: BuildingTotals) -> Optional[float]:
	"""One flat's annual share of a building operating cost.

	Returns None for a cost without distribution key.
	"""
	if cost.distribution is None:
		logger.warning(f"Distribution key for operating cost '{cost.name}' ({cost.id}) is missing, skipping")
		return None

	distribution = Distribution(cost.distribution)
	factor = Frequency(cost.frequency).factor

	if distribution == Distribution.BY_FLAT:
		if totals.flat_count == 0:
			raise ApportionmentError(f"Operating cost '{cost.name}' cannot be split: building has no flats")
		return cost.amount / totals.flat_count * factor

	if distribution == Distribution.BY_SQUARE_METERS:
		if totals.square_meters == 0:
			raise ApportionmentError(f"Operating cost '{cost.name}' cannot be split: building has no floor area")
		return cost.amount / totals.square_meters * flat.square_meter * factor

	if distribution == Distribution.BY_PERSON:
		if totals.residents == 0:
			raise ApportionmentError(f"Operating cost '{cost.name}' cannot be split: building has no residents")
		return cost.amount / float(totals.residents) * flat.residents * factor

	# NONE: not divided, every flat carries the full amount
	return cost.amount * factor


def apportion_operating_costs(operating_costs: Iterable, flat, flats: Sequence) -> Dict[UUID, float]:
	"""Shares of all building operating costs for one flat, keyed by cost id."""
	totals = BuildingTotals.of(flats)
	shares: Dict[UUID, float] = {}
	for cost in operating_costs:
		share = apportion_operating_cost(cost, flat, totals)
		if share is None:
			continue
		logger.info(f"Operating cost '{cost.name}' distributed {Distribution(cost.distribution).value}: {share:.2f}")
		shares[cost.id] = share
	return shares


def annualize_flat_additions(addition_costs: Iterable) -> Dict[UUID, float]:
	"""Flat addition costs are charged to their flat in full."""
	return {cost.id: annual_amount(cost) for cost in addition_costs}


def billable_cost_shares(operating_shares: Dict[UUID, float], flat_additions: Dict[UUID, float]) -> Dict[UUID, float]:
	"""Cost shares that are billed on an invoice.

	Flat addition costs are currently informational only and do not enter
	the invoice total.
	"""
	return dict(operating_shares)
