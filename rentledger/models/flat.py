from sqlalchemy import Column, ForeignKey, String, Integer, Float, CheckConstraint
from sqlalchemy.orm import relationship

from rentledger.database import Base
from rentledger.models.base import BaseModel


class Flat(Base, BaseModel):
	__tablename__ = "flats"

	building_id = Column(ForeignKey("buildings.id"), nullable=False, index=True)
	# Weak reference: people outlive the flats they rent
	tenant_id = Column(ForeignKey("persons.id", ondelete="SET NULL"), nullable=True, index=True)
	location = Column(String(255))
	rooms = Column(Integer, nullable=False, default=1)
	square_meter = Column(Integer, nullable=False)
	residents = Column(Integer, nullable=False, default=0)
	cold_rent = Column(Float, nullable=False, default=0.0)
	warm_rent = Column(Float, nullable=False, default=0.0)

	# Relationships
	building = relationship("Building", back_populates="flats")
	tenant = relationship("Person", lazy="selectin")
	meters = relationship("Meter", back_populates="flat", lazy="selectin", order_by="Meter.meter_number")
	addition_costs = relationship("AdditionalCost", back_populates="flat", lazy="selectin")
	invoices = relationship("Invoice", back_populates="flat", lazy="selectin", order_by="Invoice.created_at")

	__table_args__ = (
		CheckConstraint("square_meter > 0", name="flat_square_meter_positive"),
		CheckConstraint("residents >= 0", name="flat_residents_not_negative"),
	)
