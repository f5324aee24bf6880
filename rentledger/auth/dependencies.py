from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.auth.jwt import auth_service
from rentledger.database import get_session
from rentledger.models.person import Person, Capability

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
	return HTTPException(
		status_code=status.HTTP_401_UNAUTHORIZED,
		detail=detail,
		headers={"WWW-Authenticate": "Bearer"}
	)


async def get_current_person(
		credentials: HTTPAuthorizationCredentials = Depends(security),
		session: AsyncSession = Depends(get_session)
) -> Person:
	"""Resolve the acting person from the bearer token"""
	if credentials is None:
		raise _unauthorized("Not authenticated")

	payload = auth_service.decode_token(credentials.credentials)
	if not payload or payload.get("type") != "access":
		raise _unauthorized("Invalid authentication credentials")

	try:
		person_id = UUID(payload.get("sub") or "")
	except ValueError:
		raise _unauthorized("Invalid token payload")

	result = await session.execute(select(Person).where(Person.id == person_id))
	person = result.scalar_one_or_none()

	if not person:
		raise _unauthorized("Person not found")

	if not person.is_active:
		raise HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail="Inactive user"
		)
	return person


def require_capability(capability: Capability):
	"""Capability-based access check"""
	async def capability_checker(current_person: Person = Depends(get_current_person)) -> Person:
		if not current_person.has_capability(capability):
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail=f"Insufficient permissions. Required capability: {capability.value}"
			)
		return current_person
	return capability_checker
