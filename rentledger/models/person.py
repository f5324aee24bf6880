import enum

from sqlalchemy import Column, String, Boolean, JSON, Enum

from rentledger.database import Base
from rentledger.models.base import BaseModel


class Capability(str, enum.Enum):
	LANDLORD = "landlord"
	TENANT = "tenant"


class Gender(str, enum.Enum):
	FEMALE = "female"
	MALE = "male"
	DIVERSE = "diverse"


class Person(Base, BaseModel):
	__tablename__ = "persons"

	first_name = Column(String(255), nullable=False)
	last_name = Column(String(255), nullable=False)
	gender = Column(Enum(Gender), nullable=True)
	phone_number = Column(String(50))
	# Simple tenants registered by name only have neither email nor password
	email = Column(String(255), unique=True, nullable=True, index=True)
	hashed_password = Column(String(255), nullable=True)
	capabilities = Column(JSON, nullable=False, default=list)
	is_active = Column(Boolean, default=True)

	@property
	def capability_set(self) -> set[Capability]:
		return {Capability(value) for value in (self.capabilities or [])}

	def has_capability(self, capability: Capability) -> bool:
		return capability in self.capability_set

	def grant(self, capability: Capability) -> bool:
		"""Add a capability; returns False when it was already held."""
		if self.has_capability(capability):
			return False
		# Reassign so the JSON column registers the change
		self.capabilities = sorted(c.value for c in self.capability_set | {capability})
		return True

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}".strip()
