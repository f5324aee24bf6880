import base64
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.models.additional_cost import Distribution, Frequency
from rentledger.models.building import Building
from rentledger.models.flat import Flat
from rentledger.models.invoice import Invoice, InvoiceMeterLine, InvoiceCostLine
from rentledger.models.person import Person
from rentledger.monitoring.metrics import invoices_created, invoice_render_failures
from rentledger.services.access_control import require_landlord, require_invoice_reader
from rentledger.services.apportionment import (
	apportion_operating_costs,
	annualize_flat_additions,
	billable_cost_shares,
)
from rentledger.services.consumption import calculate_consumption
from rentledger.services.errors import NotFoundError, MissingTenantError, InvoiceRenderingError
from rentledger.services.invoice_renderer import InvoicePdfRenderer

logger = logging.getLogger(__name__)


def build_invoice(building: Building, flat: Flat, total_rent_paid: float, now: Optional[datetime] = None) -> Invoice:
	"""Compute the yearly invoice of one flat without persisting it.

	The returned invoice already carries its id so it can be rendered before
	it is written.
	"""
	now = now or datetime.now(timezone.utc)

	total_square_meters = sum(f.square_meter for f in building.flats)

	operating_shares = apportion_operating_costs(building.operating_costs, flat, building.flats)
	flat_additions = annualize_flat_additions(flat.addition_costs)
	cost_shares = billable_cost_shares(operating_shares, flat_additions)

	consumption = calculate_consumption(flat.meters, now)

	total_cold_rent = flat.cold_rent * 12
	total_cost = (
		sum(c.total_cost for c in consumption.values())
		+ sum(cost_shares.values())
		+ total_cold_rent
	)

	invoice = Invoice(
		id=uuid.uuid4(),
		flat_id=flat.id,
		building_id=building.id,
		paid=False,
		invoice_for_year=now.year - 1,
		total_warm_rent_paid=total_rent_paid,
		total_cold_rent=total_cold_rent,
		total_square_meters=total_square_meters,
		total_cost=total_cost,
	)

	invoice.meter_lines = [
		InvoiceMeterLine(
			invoice_id=invoice.id,
			meter_id=c.meter_id,
			meter_number=c.meter_number,
			meter_type=c.meter_type,
			difference=c.difference,
			total_cost=c.total_cost,
		)
		for c in sorted(consumption.values(), key=lambda c: c.meter_number)
	]

	costs_by_id = {c.id: c for c in list(building.operating_costs) + list(flat.addition_costs)}
	cost_lines = []
	for cost_id, amount in cost_shares.items():
		cost = costs_by_id[cost_id]
		cost_lines.append(InvoiceCostLine(
			invoice_id=invoice.id,
			additional_cost_id=cost_id,
			name=cost.name,
			distribution=Distribution(cost.distribution) if cost.distribution else Distribution.NONE,
			frequency=Frequency(cost.frequency),
			amount=amount,
		))
	invoice.cost_lines = sorted(cost_lines, key=lambda line: line.name)

	return invoice


class InvoiceService:
	def __init__(self, session: AsyncSession, renderer: Optional[InvoicePdfRenderer] = None):
		self.session = session
		self.renderer = renderer

	async def _get_flat(self, flat_id: UUID) -> Flat:
		result = await self.session.execute(select(Flat).where(Flat.id == flat_id))
		flat = result.scalar_one_or_none()
		if not flat:
			logger.warning(f"No flat found for id '{flat_id}'")
			raise NotFoundError("Flat not found")
		return flat

	async def _get_building(self, building_id: UUID) -> Building:
		result = await self.session.execute(select(Building).where(Building.id == building_id))
		building = result.scalar_one_or_none()
		if not building:
			logger.warning(f"No building found for id '{building_id}'")
			raise NotFoundError("Building not found")
		return building

	async def _get_invoice(self, invoice_id: UUID) -> Invoice:
		result = await self.session.execute(select(Invoice).where(Invoice.id == invoice_id))
		invoice = result.scalar_one_or_none()
		if not invoice:
			logger.warning(f"Invoice '{invoice_id}' not found")
			raise NotFoundError("Invoice not found")
		return invoice

	async def create_invoice(self, flat_id: UUID, total_rent_paid: float, acting: Person,
							 now: Optional[datetime] = None) -> Invoice:
		"""Compute, render and persist one invoice in a single transaction."""
		flat = await self._get_flat(flat_id)
		if flat.tenant_id is None:
			logger.warning(f"No tenant found for flat '{flat_id}'")
			raise MissingTenantError("Flat has no tenant")
		building = await self._get_building(flat.building_id)
		require_landlord(acting, building)

		logger.info(f"Creating invoice for flat {flat.id}, tenant {flat.tenant_id}")
		invoice = build_invoice(building, flat, total_rent_paid, now)

		try:
			pdf_bytes = self.renderer.render(invoice, flat, building)
		except InvoiceRenderingError:
			invoice_render_failures.inc()
			raise
		invoice.pdf = base64.b64encode(pdf_bytes).decode("ascii")

		self.session.add(invoice)
		flat.invoices.append(invoice)
		await self.session.commit()

		invoices_created.inc()
		logger.info(f"Invoice {invoice.id} created for flat {flat.id}: total {invoice.total_cost:.2f}")
		return invoice

	async def list_for_landlord(self, person: Person) -> List[Invoice]:
		"""Most recent invoice of every flat in the landlord's buildings."""
		result = await self.session.execute(
			select(Building).where(Building.landlord_id == person.id).order_by(Building.created_at)
		)
		buildings = result.scalars().all()
		if not buildings:
			logger.warning(f"No buildings found for landlord '{person.email}'")
			raise NotFoundError("No buildings found")

		invoices = []
		for building in buildings:
			logger.info(f"Getting invoices for building '{building.id}'")
			for flat in building.flats:
				if flat.invoices:
					invoices.append(max(flat.invoices, key=lambda i: i.created_at))
		return invoices

	async def list_for_tenant(self, person: Person) -> List[Invoice]:
		result = await self.session.execute(select(Flat).where(Flat.tenant_id == person.id))
		flats = result.scalars().all()
		if not flats:
			logger.warning(f"No flat found for tenant '{person.email}'")
			raise NotFoundError("Flat not found")
		return [invoice for flat in flats for invoice in flat.invoices]

	async def toggle_paid(self, invoice_id: UUID, building_id: UUID, acting: Person) -> Invoice:
		building = await self._get_building(building_id)
		require_landlord(acting, building)

		invoice = await self._get_invoice(invoice_id)
		if invoice.flat_id not in {f.id for f in building.flats}:
			logger.warning(f"Invoice {invoice_id} does not belong to building {building_id}")
			raise NotFoundError("Invoice not found in this building")

		invoice.paid = not invoice.paid
		await self.session.commit()
		logger.info(f"Invoice {invoice.id} paid status is now {invoice.paid}")
		return invoice

	async def get_pdf(self, invoice_id: UUID, acting: Person) -> bytes:
		invoice = await self._get_invoice(invoice_id)
		flat = await self._get_flat(invoice.flat_id)
		building = await self._get_building(invoice.building_id)
		require_invoice_reader(acting, building, flat)
		if not invoice.pdf:
			raise NotFoundError("Invoice has no document")
		return base64.b64decode(invoice.pdf)
