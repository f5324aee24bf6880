from sqlalchemy import Column, ForeignKey, Integer, DateTime
from sqlalchemy.orm import relationship

from rentledger.database import Base
from rentledger.models.base import BaseModel, utcnow


class MeterReadingUpdate(Base, BaseModel):
	"""Append-only reading history of a meter, ordered by recorded_at."""

	__tablename__ = "meter_reading_updates"

	meter_id = Column(ForeignKey("meters.id"), nullable=False, index=True)
	reading = Column(Integer, nullable=False)
	recorded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
	# Null for the reading seeded when the meter is created
	recorded_by_id = Column(ForeignKey("persons.id", ondelete="SET NULL"), nullable=True)

	# Relationships
	meter = relationship("Meter", back_populates="reading_updates")
