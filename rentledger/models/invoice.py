from sqlalchemy import Column, ForeignKey, String, Integer, Float, Boolean, Text, Enum, Uuid, event, inspect
from sqlalchemy.orm import relationship

from rentledger.database import Base
from rentledger.models.additional_cost import Distribution, Frequency
from rentledger.models.base import BaseModel
from rentledger.models.meter import MeterType
from rentledger.services.errors import InvoiceImmutableError


class Invoice(Base, BaseModel):
	__tablename__ = "invoices"

	flat_id = Column(ForeignKey("flats.id"), nullable=False, index=True)
	building_id = Column(ForeignKey("buildings.id"), nullable=False, index=True)
	paid = Column(Boolean, nullable=False, default=False)
	invoice_for_year = Column(Integer, nullable=False)
	total_warm_rent_paid = Column(Float, nullable=False)
	total_cold_rent = Column(Float, nullable=False)
	total_square_meters = Column(Integer, nullable=False)
	total_cost = Column(Float, nullable=False)
	# Base64 encoded PDF document
	pdf = Column(Text)

	# Relationships
	flat = relationship("Flat", back_populates="invoices")
	meter_lines = relationship("InvoiceMeterLine", lazy="selectin", order_by="InvoiceMeterLine.meter_number")
	cost_lines = relationship("InvoiceCostLine", lazy="selectin", order_by="InvoiceCostLine.name")

	@property
	def meter_difference(self) -> dict:
		return {line.meter_id: line.difference for line in self.meter_lines}

	@property
	def meter_total_cost(self) -> dict:
		return {line.meter_id: line.total_cost for line in self.meter_lines}

	@property
	def operating_cost_per_distribution_key(self) -> dict:
		return {line.additional_cost_id: line.amount for line in self.cost_lines}


class InvoiceMeterLine(Base, BaseModel):
	"""Consumption and cost of one meter, frozen at invoice time."""

	__tablename__ = "invoice_meter_lines"

	invoice_id = Column(ForeignKey("invoices.id"), nullable=False, index=True)
	# No foreign key: the line must outlive later changes to the meter
	meter_id = Column(Uuid(as_uuid=True), nullable=False)
	meter_number = Column(String(100), nullable=False)
	meter_type = Column(Enum(MeterType), nullable=False)
	difference = Column(Integer, nullable=False)
	total_cost = Column(Float, nullable=False)


class InvoiceCostLine(Base, BaseModel):
	"""Apportioned share of one building operating cost, frozen at invoice time."""

	__tablename__ = "invoice_cost_lines"

	invoice_id = Column(ForeignKey("invoices.id"), nullable=False, index=True)
	additional_cost_id = Column(Uuid(as_uuid=True), nullable=False)
	name = Column(String(255), nullable=False)
	distribution = Column(Enum(Distribution), nullable=False)
	frequency = Column(Enum(Frequency), nullable=False)
	amount = Column(Float, nullable=False)


MUTABLE_INVOICE_FIELDS = {"paid", "updated_at"}


@event.listens_for(Invoice, "before_update")
def _guard_invoice_body(mapper, connection, target):
	state = inspect(target)
	changed = {
		attr.key for attr in state.attrs
		if attr.key in mapper.columns.keys() and attr.history.has_changes()
	}
	frozen = changed - MUTABLE_INVOICE_FIELDS
	if frozen:
		raise InvoiceImmutableError(
			f"Invoice {target.id} is immutable; refusing to change {sorted(frozen)}"
		)


@event.listens_for(InvoiceMeterLine, "before_update")
@event.listens_for(InvoiceCostLine, "before_update")
def _guard_invoice_lines(mapper, connection, target):
	raise InvoiceImmutableError(f"Invoice line {target.id} is immutable")
