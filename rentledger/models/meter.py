import enum

from sqlalchemy import Column, ForeignKey, String, Integer, Float, Enum
from sqlalchemy.orm import relationship

from rentledger.database import Base
from rentledger.models.base import BaseModel


class MeterType(str, enum.Enum):
	ELECTRICITY = "electricity"
	GAS = "gas"
	HOT_WATER = "hot_water"
	SEWAGE = "sewage"
	COLD_WATER = "cold_water"

	@property
	def unit(self) -> str:
		return "kWh" if self in (MeterType.ELECTRICITY, MeterType.GAS) else "m³"


class Meter(Base, BaseModel):
	__tablename__ = "meters"

	flat_id = Column(ForeignKey("flats.id"), nullable=False, index=True)
	meter_number = Column(String(100), unique=True, nullable=False, index=True)
	type = Column(Enum(MeterType), nullable=False)
	# Latest submitted reading; the full history lives in reading_updates
	reading = Column(Integer, nullable=False, default=0)
	cost_per_unit = Column(Float, nullable=False, default=0.0)
	base_cost = Column(Float, nullable=False, default=0.0)

	# Relationships
	flat = relationship("Flat", back_populates="meters")
	reading_updates = relationship(
		"MeterReadingUpdate",
		back_populates="meter",
		lazy="selectin",
		order_by="MeterReadingUpdate.recorded_at",
	)
