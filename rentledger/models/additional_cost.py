import enum

from sqlalchemy import Column, ForeignKey, String, Text, Float, Enum
from sqlalchemy.orm import relationship

from rentledger.database import Base
from rentledger.models.base import BaseModel


class Distribution(str, enum.Enum):
	BY_FLAT = "by_flat"
	BY_SQUARE_METERS = "by_square_meters"
	BY_PERSON = "by_person"
	NONE = "none"


class Frequency(str, enum.Enum):
	MONTHLY = "monthly"
	QUARTERLY = "quarterly"
	YEARLY = "yearly"

	@property
	def factor(self) -> int:
		"""Annualization multiplier."""
		return {Frequency.MONTHLY: 12, Frequency.QUARTERLY: 4, Frequency.YEARLY: 1}[self]


class AdditionalCost(Base, BaseModel):
	"""A recurring cost line.

	Owned either by a building (operating cost shared across its flats) or by
	a single flat (addition cost charged to that flat only).
	"""

	__tablename__ = "additional_costs"

	building_id = Column(ForeignKey("buildings.id"), nullable=True, index=True)
	flat_id = Column(ForeignKey("flats.id"), nullable=True, index=True)
	name = Column(String(255), nullable=False)
	description = Column(Text)
	amount = Column(Float, nullable=False)
	distribution = Column(Enum(Distribution), nullable=True)
	frequency = Column(Enum(Frequency), nullable=False, default=Frequency.YEARLY)

	# Relationships
	building = relationship("Building", back_populates="operating_costs")
	flat = relationship("Flat", back_populates="addition_costs")

	@property
	def annual_amount(self) -> float:
		return self.amount * Frequency(self.frequency).factor
