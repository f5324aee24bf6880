import logging

from rentledger.models.building import Building
from rentledger.models.flat import Flat
from rentledger.models.person import Capability, Person
from rentledger.services.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


def is_landlord_of(person: Person, building: Building) -> bool:
	return person.has_capability(Capability.LANDLORD) and building.landlord_id == person.id


def is_tenant_of(person: Person, flat: Flat) -> bool:
	return flat.tenant_id is not None and flat.tenant_id == person.id


def require_landlord(person: Person, building: Building) -> None:
	"""Only the building's landlord may manage it and bill its flats."""
	if not is_landlord_of(person, building):
		logger.warning(f"Person {person.id} is not the landlord of building {building.id}")
		raise PermissionDeniedError("You are not the landlord of this building")


def require_tenant(person: Person, flat: Flat) -> None:
	if not is_tenant_of(person, flat):
		logger.warning(f"Person {person.id} is not the tenant of flat {flat.id}")
		raise PermissionDeniedError("You are not the tenant of this flat")


def require_flat_party(person: Person, building: Building, flat: Flat, what: str = "this flat") -> None:
	"""Landlord of the building or tenant of the flat."""
	if is_landlord_of(person, building) or is_tenant_of(person, flat):
		return
	logger.warning(f"Person {person.id} is neither landlord nor tenant of flat {flat.id}")
	raise PermissionDeniedError(f"You may not view {what}")


def require_invoice_reader(person: Person, building: Building, flat: Flat) -> None:
	require_flat_party(person, building, flat, "this invoice")
