import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.auth.dependencies import get_current_person
from rentledger.database import get_session
from rentledger.models.person import Person
from rentledger.schemas.building import FlatResponse, TenantFlatResponse, PersonContact
from rentledger.schemas.flat import AssignTenantRequest
from rentledger.schemas.reading import ReadingSubmit, ReadingUpdateResponse, ReadingHistoryResponse
from rentledger.services.flat_service import FlatService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/mine", response_model=List[TenantFlatResponse])
async def list_my_flats(
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	"""Flats rented by the current person"""
	return await FlatService(session).flats_of_tenant(current_person)


@router.patch("/{flat_id}/tenant", response_model=FlatResponse)
async def assign_tenant(
		flat_id: UUID,
		request: AssignTenantRequest,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	return await FlatService(session).assign_tenant(flat_id, request, current_person)


@router.get("/{flat_id}/landlord", response_model=PersonContact)
async def get_landlord(
		flat_id: UUID,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	"""Contact details of the landlord, for the flat's tenant"""
	return await FlatService(session).landlord_of_flat(flat_id, current_person)


@router.post(
	"/{flat_id}/meters/{meter_id}/readings",
	response_model=ReadingUpdateResponse,
	status_code=status.HTTP_201_CREATED
)
async def submit_reading(
		flat_id: UUID,
		meter_id: UUID,
		request: ReadingSubmit,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	return await FlatService(session).submit_reading(flat_id, meter_id, request.reading, current_person)


@router.get("/{flat_id}/meters/{meter_id}/readings", response_model=ReadingHistoryResponse)
async def reading_history(
		flat_id: UUID,
		meter_id: UUID,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	meter, updates = await FlatService(session).reading_history(flat_id, meter_id, current_person)
	return ReadingHistoryResponse(
		meter_id=meter.id,
		meter_number=meter.meter_number,
		type=meter.type,
		current_reading=meter.reading,
		updates=[ReadingUpdateResponse.model_validate(u) for u in updates],
	)
