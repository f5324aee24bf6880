import re

from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from rentledger.database import Base
from rentledger.models.base import BaseModel


def normalize_address_part(value) -> str:
	return re.sub(r"\s+", " ", str(value or "")).strip().casefold()


def address_key(street, zip_code, city, state, country) -> str:
	"""Normalized identity of an address; no two buildings share one."""
	return "|".join(normalize_address_part(part) for part in (street, zip_code, city, state, country))


class Building(Base, BaseModel):
	__tablename__ = "buildings"

	landlord_id = Column(ForeignKey("persons.id"), nullable=False, index=True)
	street = Column(String(255), nullable=False)
	zip = Column(String(20), nullable=False)
	city = Column(String(255), nullable=False)
	state = Column(String(255), nullable=False, default="")
	country = Column(String(255), nullable=False)
	address_key = Column(String(1024), unique=True, nullable=False, index=True)

	# Relationships
	landlord = relationship("Person", lazy="selectin")
	flats = relationship("Flat", back_populates="building", lazy="selectin", order_by="Flat.created_at")
	operating_costs = relationship(
		"AdditionalCost",
		back_populates="building",
		lazy="selectin",
		order_by="AdditionalCost.created_at",
	)

	def set_address(self, street, zip_code, city, state, country):
		self.street = street
		self.zip = str(zip_code)
		self.city = city
		self.state = state or ""
		self.country = country
		self.address_key = address_key(street, zip_code, city, state, country)
