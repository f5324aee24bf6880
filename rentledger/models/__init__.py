from rentledger.models.person import Person, Capability, Gender
from rentledger.models.building import Building
from rentledger.models.flat import Flat
from rentledger.models.meter import Meter, MeterType
from rentledger.models.reading_update import MeterReadingUpdate
from rentledger.models.additional_cost import AdditionalCost, Distribution, Frequency
from rentledger.models.invoice import Invoice, InvoiceMeterLine, InvoiceCostLine, InvoiceImmutableError

__all__ = [
	"Person",
	"Capability",
	"Gender",
	"Building",
	"Flat",
	"Meter",
	"MeterType",
	"MeterReadingUpdate",
	"AdditionalCost",
	"Distribution",
	"Frequency",
	"Invoice",
	"InvoiceMeterLine",
	"InvoiceCostLine",
	"InvoiceImmutableError",
]
