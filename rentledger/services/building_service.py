import logging
from typing import List, Iterable
from uuid import UUID

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.models.additional_cost import AdditionalCost
from rentledger.models.base import utcnow
from rentledger.models.building import Building, address_key
from rentledger.models.flat import Flat
from rentledger.models.invoice import Invoice, InvoiceMeterLine, InvoiceCostLine
from rentledger.models.meter import Meter
from rentledger.models.person import Person, Capability
from rentledger.models.reading_update import MeterReadingUpdate
from rentledger.schemas.building import BuildingCreate, BuildingUpdate, AdditionalCostCreate, FlatCreate, FlatUpdate
from rentledger.schemas.meter import MeterUpdate
from rentledger.services.access_control import require_landlord
from rentledger.services.errors import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


def new_cost(data: AdditionalCostCreate) -> AdditionalCost:
	return AdditionalCost(
		name=data.name,
		description=data.description,
		amount=data.amount,
		distribution=data.distribution,
		frequency=data.frequency,
	)


def new_meter(meter_number: str, meter_type, reading: int, cost_per_unit: float, base_cost: float) -> Meter:
	"""A meter whose history starts with its initial reading."""
	meter = Meter(
		meter_number=meter_number,
		type=meter_type,
		reading=reading,
		cost_per_unit=cost_per_unit,
		base_cost=base_cost,
	)
	meter.reading_updates = [MeterReadingUpdate(reading=reading, recorded_at=utcnow(), recorded_by_id=None)]
	return meter


def new_flat(data: FlatCreate) -> Flat:
	flat = Flat(
		location=data.location,
		rooms=data.rooms,
		square_meter=data.square_meter,
		residents=data.residents,
		cold_rent=data.cold_rent,
		warm_rent=data.warm_rent,
		tenant=None,
	)
	flat.meters = [
		new_meter(m.meter_number, m.type, m.reading, m.cost_per_unit, m.base_cost)
		for m in data.meters
	]
	flat.addition_costs = [new_cost(c) for c in data.addition_costs]
	flat.invoices = []
	return flat


class BuildingService:
	def __init__(self, session: AsyncSession):
		self.session = session

	async def get_building(self, building_id: UUID) -> Building:
		result = await self.session.execute(
			select(Building)
			.where(Building.id == building_id)
			.execution_options(populate_existing=True)
		)
		building = result.scalar_one_or_none()
		if not building:
			logger.warning(f"Building '{building_id}' not found")
			raise NotFoundError("Building not found")
		return building

	async def _check_address_free(self, key: str, exclude_id: UUID = None):
		stmt = select(Building.id).where(Building.address_key == key)
		if exclude_id is not None:
			stmt = stmt.where(Building.id != exclude_id)
		result = await self.session.execute(stmt)
		if result.first():
			logger.warning(f"Building address '{key}' already registered")
			raise ValidationFailedError("A building with this address already exists")

	async def _check_meter_numbers_free(self, numbers: Iterable[str]):
		numbers = list(numbers)
		duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
		if duplicates:
			raise ValidationFailedError(f"Duplicate meter numbers: {', '.join(duplicates)}")
		if not numbers:
			return
		result = await self.session.execute(select(Meter.meter_number).where(Meter.meter_number.in_(numbers)))
		taken = sorted(result.scalars().all())
		if taken:
			logger.warning(f"Meter numbers already in use: {taken}")
			raise ValidationFailedError(f"Meter numbers already in use: {', '.join(taken)}")

	async def create_building(self, data: BuildingCreate, landlord: Person) -> Building:
		"""Register a building with its flats, meters and costs."""
		key = address_key(data.street, data.zip, data.city, data.state, data.country)
		await self._check_address_free(key)
		await self._check_meter_numbers_free(m.meter_number for f in data.flats for m in f.meters)

		building = Building(landlord_id=landlord.id, landlord=landlord)
		building.set_address(data.street, data.zip, data.city, data.state, data.country)
		building.flats = [new_flat(f) for f in data.flats]
		building.operating_costs = [new_cost(c) for c in data.operating_costs]
		self.session.add(building)

		if landlord.grant(Capability.LANDLORD):
			logger.info(f"Person {landlord.id} is now a landlord")

		await self.session.commit()
		logger.info(f"Building {building.id} created with {len(data.flats)} flat(s)")
		return await self.get_building(building.id)

	async def list_buildings(self) -> List[Building]:
		result = await self.session.execute(select(Building).order_by(Building.created_at))
		return list(result.scalars().all())

	async def list_for_landlord(self, landlord: Person) -> List[Building]:
		result = await self.session.execute(
			select(Building).where(Building.landlord_id == landlord.id).order_by(Building.created_at)
		)
		return list(result.scalars().all())

	def _new_meter_numbers(self, building: Building, data: BuildingUpdate) -> List[str]:
		"""Meter numbers the update would introduce."""
		meters_by_id = {m.id: m for f in building.flats for m in f.meters}
		numbers = []
		for flat_data in data.flats:
			for meter_data in flat_data.meters:
				if meter_data.id is None:
					if not meter_data.meter_number or meter_data.type is None:
						raise ValidationFailedError("New meters need a meter number and a type")
					numbers.append(meter_data.meter_number)
					continue
				meter = meters_by_id.get(meter_data.id)
				if meter and meter_data.meter_number and meter_data.meter_number != meter.meter_number:
					numbers.append(meter_data.meter_number)
		return numbers

	def _apply_meter(self, flat: Flat, data: MeterUpdate, acting: Person):
		if data.id is None:
			flat.meters.append(new_meter(
				data.meter_number,
				data.type,
				data.reading or 0,
				data.cost_per_unit or 0.0,
				data.base_cost or 0.0,
			))
			return

		meter = next((m for m in flat.meters if m.id == data.id), None)
		if meter is None:
			raise NotFoundError(f"Meter {data.id} not found in flat {flat.id}")

		for field in ("meter_number", "type", "cost_per_unit", "base_cost"):
			value = getattr(data, field)
			if value is not None:
				setattr(meter, field, value)

		if data.reading is not None and data.reading != meter.reading:
			meter.reading = data.reading
			meter.reading_updates.append(MeterReadingUpdate(
				meter_id=meter.id,
				reading=data.reading,
				recorded_at=utcnow(),
				recorded_by_id=acting.id,
			))
			logger.info(f"Meter {meter.meter_number} reading set to {data.reading} by landlord {acting.id}")

	def _apply_flat(self, flat: Flat, data: FlatUpdate, acting: Person):
		for field in ("location", "rooms", "square_meter", "residents", "cold_rent", "warm_rent"):
			value = getattr(data, field)
			if value is not None:
				setattr(flat, field, value)

		for meter_data in data.meters:
			self._apply_meter(flat, meter_data, acting)

		existing_names = {c.name for c in flat.addition_costs}
		for cost_data in data.addition_costs:
			if cost_data.name in existing_names:
				continue
			flat.addition_costs.append(new_cost(cost_data))
			existing_names.add(cost_data.name)

	async def update_building(self, building_id: UUID, data: BuildingUpdate, acting: Person) -> Building:
		"""Apply a landlord's changes to a building; validates everything before writing."""
		building = await self.get_building(building_id)
		require_landlord(acting, building)

		address = {
			"street": data.street if data.street is not None else building.street,
			"zip_code": data.zip if data.zip is not None else building.zip,
			"city": data.city if data.city is not None else building.city,
			"state": data.state if data.state is not None else building.state,
			"country": data.country if data.country is not None else building.country,
		}
		key = address_key(**address)
		if key != building.address_key:
			await self._check_address_free(key, exclude_id=building.id)

		flats_by_id = {f.id: f for f in building.flats}
		for flat_data in data.flats:
			if flat_data.id is None:
				if flat_data.square_meter is None:
					raise ValidationFailedError("New flats need their square meters")
			elif flat_data.id not in flats_by_id:
				raise NotFoundError(f"Flat {flat_data.id} not found in this building")

		await self._check_meter_numbers_free(self._new_meter_numbers(building, data))

		if key != building.address_key:
			logger.info(f"Building {building.id} moves to '{key}'")
		building.set_address(**address)

		for flat_data in data.flats:
			if flat_data.id is None:
				building.flats.append(new_flat(FlatCreate(
					location=flat_data.location,
					rooms=flat_data.rooms or 1,
					square_meter=flat_data.square_meter,
					residents=flat_data.residents or 0,
					cold_rent=flat_data.cold_rent or 0.0,
					warm_rent=flat_data.warm_rent or 0.0,
					addition_costs=flat_data.addition_costs,
				)))
				flat = building.flats[-1]
				for meter_data in flat_data.meters:
					self._apply_meter(flat, meter_data, acting)
			else:
				self._apply_flat(flats_by_id[flat_data.id], flat_data, acting)

		if data.operating_costs is not None:
			for cost in list(building.operating_costs):
				await self.session.delete(cost)
			for cost_data in data.operating_costs:
				building.operating_costs.append(new_cost(cost_data))
			logger.info(f"Building {building.id} operating costs replaced ({len(data.operating_costs)})")

		await self.session.commit()
		return await self.get_building(building.id)

	async def delete_building(self, building_id: UUID, acting: Person):
		"""Remove a building and everything that hangs off it, dependents first."""
		building = await self.get_building(building_id)
		require_landlord(acting, building)

		flat_ids = [f.id for f in building.flats]
		meter_ids = [m.id for f in building.flats for m in f.meters]
		invoice_ids = select(Invoice.id).where(Invoice.building_id == building.id)

		statements = [
			delete(MeterReadingUpdate).where(MeterReadingUpdate.meter_id.in_(meter_ids)),
			delete(Meter).where(Meter.id.in_(meter_ids)),
			delete(InvoiceMeterLine).where(InvoiceMeterLine.invoice_id.in_(invoice_ids)),
			delete(InvoiceCostLine).where(InvoiceCostLine.invoice_id.in_(invoice_ids)),
			delete(Invoice).where(Invoice.building_id == building.id),
			delete(AdditionalCost).where(AdditionalCost.flat_id.in_(flat_ids)),
			delete(Flat).where(Flat.building_id == building.id),
			delete(AdditionalCost).where(AdditionalCost.building_id == building.id),
			delete(Building).where(Building.id == building.id),
		]
		for stmt in statements:
			await self.session.execute(stmt.execution_options(synchronize_session=False))

		self.session.expunge_all()
		await self.session.commit()
		logger.info(f"Building {building_id} deleted with {len(flat_ids)} flat(s) and {len(meter_ids)} meter(s)")
