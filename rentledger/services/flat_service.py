import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.models.base import utcnow
from rentledger.models.building import Building
from rentledger.models.flat import Flat
from rentledger.models.meter import Meter, MeterType
from rentledger.models.person import Person, Capability
from rentledger.models.reading_update import MeterReadingUpdate
from rentledger.monitoring.metrics import readings_submitted
from rentledger.schemas.flat import AssignTenantRequest
from rentledger.services.access_control import require_landlord, require_tenant, require_flat_party
from rentledger.services.errors import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


class FlatService:
	def __init__(self, session: AsyncSession):
		self.session = session

	async def get_flat(self, flat_id: UUID) -> Flat:
		result = await self.session.execute(
			select(Flat).where(Flat.id == flat_id).execution_options(populate_existing=True)
		)
		flat = result.scalar_one_or_none()
		if not flat:
			logger.warning(f"Flat '{flat_id}' not found")
			raise NotFoundError("Flat not found")
		return flat

	async def _get_building(self, flat: Flat) -> Building:
		result = await self.session.execute(select(Building).where(Building.id == flat.building_id))
		building = result.scalar_one_or_none()
		if not building:
			raise NotFoundError("Building not found")
		return building

	@staticmethod
	def _get_meter(flat: Flat, meter_id: UUID) -> Meter:
		meter = next((m for m in flat.meters if m.id == meter_id), None)
		if meter is None:
			logger.warning(f"Meter '{meter_id}' does not belong to flat '{flat.id}'")
			raise NotFoundError("Meter not found in this flat")
		return meter

	async def assign_tenant(self, flat_id: UUID, data: AssignTenantRequest, acting: Person) -> Flat:
		"""Rent a flat to a registered person (by email) or to a new simple person (by name)."""
		flat = await self.get_flat(flat_id)
		building = await self._get_building(flat)
		require_landlord(acting, building)

		if data.email:
			result = await self.session.execute(select(Person).where(Person.email == data.email))
			tenant = result.scalar_one_or_none()
			if not tenant:
				logger.warning(f"No person registered with email '{data.email}'")
				raise NotFoundError("Person not found")
		else:
			tenant = Person(first_name=data.first_name, last_name=data.last_name, capabilities=[])
			self.session.add(tenant)
			logger.info(f"Created simple tenant '{data.first_name} {data.last_name}'")

		tenant.grant(Capability.TENANT)
		flat.tenant = tenant
		flat.residents = data.residents

		await self.session.commit()
		logger.info(f"Flat {flat.id} rented to person {tenant.id}")
		return await self.get_flat(flat.id)

	async def flats_of_tenant(self, person: Person) -> List[Flat]:
		result = await self.session.execute(
			select(Flat).where(Flat.tenant_id == person.id).order_by(Flat.created_at)
		)
		return list(result.scalars().all())

	async def landlord_of_flat(self, flat_id: UUID, acting: Person) -> Person:
		flat = await self.get_flat(flat_id)
		require_tenant(acting, flat)
		building = await self._get_building(flat)
		return building.landlord

	async def submit_reading(self, flat_id: UUID, meter_id: UUID, reading: int, acting: Person) -> MeterReadingUpdate:
		"""Record a tenant's new meter reading; readings never go backwards."""
		flat = await self.get_flat(flat_id)
		require_tenant(acting, flat)
		meter = self._get_meter(flat, meter_id)

		if reading < meter.reading:
			logger.warning(f"Rejected reading {reading} for meter {meter.meter_number}: current is {meter.reading}")
			raise ValidationFailedError(
				f"New reading {reading} is lower than the current reading {meter.reading}"
			)

		update = MeterReadingUpdate(
			meter_id=meter.id,
			reading=reading,
			recorded_at=utcnow(),
			recorded_by_id=acting.id,
		)
		meter.reading = reading
		meter.reading_updates.append(update)

		await self.session.commit()
		readings_submitted.labels(meter_type=MeterType(meter.type).value).inc()
		logger.info(f"Meter {meter.meter_number} reading {reading} submitted by tenant {acting.id}")
		return update

	async def reading_history(self, flat_id: UUID, meter_id: UUID, acting: Person) -> Tuple[Meter, List[MeterReadingUpdate]]:
		flat = await self.get_flat(flat_id)
		building = await self._get_building(flat)
		require_flat_party(acting, building, flat, "this meter")
		meter = self._get_meter(flat, meter_id)
		return meter, list(meter.reading_updates)
