from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, AliasChoices


class CreateInvoiceRequest(BaseModel):
    total_rent_paid: float = Field(..., ge=0)


class InvoiceSummary(BaseModel):
    invoice_id: UUID = Field(validation_alias=AliasChoices("invoice_id", "id"))
    pdf: Optional[str]
    building_id: UUID
    flat_id: UUID
    paid: bool

    model_config = ConfigDict(from_attributes=True)


class InvoiceBrief(BaseModel):
    """Invoice reference shown on a flat, without the document."""
    invoice_id: UUID = Field(validation_alias=AliasChoices("invoice_id", "id"))
    invoice_for_year: int
    paid: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
