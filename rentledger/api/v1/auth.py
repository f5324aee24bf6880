import logging
from uuid import UUID

from fastapi import APIRouter, status, Depends, HTTPException
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.auth.dependencies import get_current_person
from rentledger.auth.jwt import auth_service
from rentledger.database import get_session
from rentledger.models.building import Building
from rentledger.models.flat import Flat
from rentledger.models.person import Person
from rentledger.models.reading_update import MeterReadingUpdate
from rentledger.schemas.auth import (
	PersonResponse, PersonProfileResponse, RegisterRequest, LoginResponse, LoginRequest,
	ChangePasswordRequest, ProfileUpdateRequest, DeleteAccountRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/register", response_model=PersonResponse,
			 status_code=status.HTTP_201_CREATED)
async def register(
		request: RegisterRequest,
		session: AsyncSession = Depends(get_session)
):
	"""Register a new person. Capabilities are granted by owning or renting a flat."""
	result = await session.execute(select(Person).where(Person.email == request.email))
	if result.scalar_one_or_none():
		raise HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail="Email already registered"
		)

	person = Person(
		email=request.email,
		hashed_password=auth_service.hash_password(request.password),
		first_name=request.first_name,
		last_name=request.last_name,
		gender=request.gender,
		phone_number=request.phone_number,
		capabilities=[],
		is_active=True,
	)
	session.add(person)
	await session.commit()

	logger.info(f"New person registered: {person.email}")

	return person

@router.post("/login", response_model=LoginResponse)
async def login(
		request: LoginRequest,
		session: AsyncSession = Depends(get_session)
):
	"""Login and get access token."""
	result = await session.execute(select(Person).where(Person.email == request.email))
	person = result.scalar_one_or_none()

	if not person or not auth_service.verify_password(request.password, person.hashed_password):
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Incorrect email or password",
			headers={"WWW-Authenticate": "Bearer"}
		)
	if not person.is_active:
		raise HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail="Inactive user"
		)

	logger.info(f"Person logged in: {person.email}")

	return LoginResponse(
		**auth_service.issue_tokens(person),
		person=PersonResponse.model_validate(person)
	)

@router.post("/refresh", response_model=LoginResponse)
async def refresh_token(
		refresh_token: str,
		session: AsyncSession = Depends(get_session)
):
	"""Refresh access token"""
	payload = auth_service.decode_token(refresh_token)

	if not payload or payload.get("type") != "refresh":
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Invalid refresh token"
		)

	try:
		person_id = UUID(payload.get("sub") or "")
	except ValueError:
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Invalid refresh token"
		)

	result = await session.execute(select(Person).where(Person.id == person_id))
	person = result.scalar_one_or_none()

	if not person or not person.is_active:
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="User not found or inactive"
		)

	return LoginResponse(
		**auth_service.issue_tokens(person),
		person=PersonResponse.model_validate(person)
	)

@router.get("/me", response_model=PersonProfileResponse)
async def get_current_person_info(current_person: Person = Depends(get_current_person)):
	"""Get current person information"""
	return current_person


def _confirm_password(person: Person, password: str):
	if not auth_service.verify_password(password, person.hashed_password):
		logger.warning(f"Invalid credentials for account change: {person.id}")
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Invalid credentials",
			headers={"WWW-Authenticate": "Bearer"}
		)

@router.post("/change-password")
async def change_password(
		request: ChangePasswordRequest,
		current_person: Person = Depends(get_current_person),
		session: AsyncSession = Depends(get_session)
):
	"""Replace the password after checking the old one"""
	_confirm_password(current_person, request.old_password)

	current_person.hashed_password = auth_service.hash_password(request.new_password)
	await session.commit()

	logger.info(f"Password changed: {current_person.email}")

	return {"detail": "Password changed"}

@router.patch("/me", response_model=PersonProfileResponse)
async def update_profile(
		request: ProfileUpdateRequest,
		current_person: Person = Depends(get_current_person),
		session: AsyncSession = Depends(get_session)
):
	"""Update contact details; the current password confirms the change"""
	_confirm_password(current_person, request.password)

	if request.email is not None and request.email != current_person.email:
		result = await session.execute(select(Person).where(Person.email == request.email))
		if result.scalar_one_or_none():
			raise HTTPException(
				status_code=status.HTTP_400_BAD_REQUEST,
				detail="Email already registered"
			)
		current_person.email = request.email

	for field in ("first_name", "last_name", "gender", "phone_number"):
		value = getattr(request, field)
		if value is not None:
			setattr(current_person, field, value)

	await session.commit()
	await session.refresh(current_person)

	logger.info(f"Profile updated: {current_person.id}")

	return current_person

@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
		request: DeleteAccountRequest,
		current_person: Person = Depends(get_current_person),
		session: AsyncSession = Depends(get_session)
):
	"""Delete the account. Rented flats stay, without a tenant."""
	_confirm_password(current_person, request.password)
	person_id = current_person.id

	owned = await session.scalar(
		select(func.count()).select_from(Building).where(Building.landlord_id == person_id)
	)
	if owned:
		raise HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail="Delete or hand over your buildings before deleting the account"
		)

	await session.execute(
		update(Flat).where(Flat.tenant_id == person_id).values(tenant_id=None),
		execution_options={"synchronize_session": False}
	)
	await session.execute(
		update(MeterReadingUpdate)
		.where(MeterReadingUpdate.recorded_by_id == person_id)
		.values(recorded_by_id=None),
		execution_options={"synchronize_session": False}
	)
	await session.delete(current_person)
	await session.commit()

	logger.info(f"Account deleted: {person_id}")
