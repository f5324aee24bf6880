import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.auth.dependencies import get_current_person, require_capability
from rentledger.database import get_session
from rentledger.models.person import Person, Capability
from rentledger.schemas.building import BuildingCreate, BuildingUpdate, BuildingResponse, BuildingSummary
from rentledger.services.building_service import BuildingService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=BuildingResponse, status_code=status.HTTP_201_CREATED)
async def create_building(
		request: BuildingCreate,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	"""Register a building; its creator becomes its landlord."""
	return await BuildingService(session).create_building(request, current_person)


@router.get("/", response_model=List[BuildingSummary])
async def list_buildings(
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	return await BuildingService(session).list_buildings()


@router.get("/mine", response_model=List[BuildingResponse])
async def list_my_buildings(
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(require_capability(Capability.LANDLORD))
):
	"""Buildings of the current landlord, with flats, meters and tenant contacts."""
	return await BuildingService(session).list_for_landlord(current_person)


@router.patch("/{building_id}", response_model=BuildingResponse)
async def update_building(
		building_id: UUID,
		request: BuildingUpdate,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	return await BuildingService(session).update_building(building_id, request, current_person)


@router.delete("/{building_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_building(
		building_id: UUID,
		session: AsyncSession = Depends(get_session),
		current_person: Person = Depends(get_current_person)
):
	"""Delete a building with its flats, meters, costs and invoices."""
	await BuildingService(session).delete_building(building_id, current_person)
