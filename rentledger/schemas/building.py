from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from rentledger.models.additional_cost import Distribution, Frequency
from rentledger.models.person import Gender
from rentledger.schemas.invoice import InvoiceBrief
from rentledger.schemas.meter import MeterCreate, MeterUpdate, MeterResponse


class AdditionalCostCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    amount: float = Field(..., ge=0)
    distribution: Optional[Distribution] = None
    frequency: Frequency = Frequency.YEARLY

class AdditionalCostResponse(AdditionalCostCreate):
    id: UUID
    annual_amount: float

    model_config = ConfigDict(from_attributes=True)


class PersonContact(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    gender: Optional[Gender]
    email: Optional[str]
    phone_number: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class FlatBase(BaseModel):
    location: Optional[str] = Field(None, max_length=255)
    rooms: int = Field(1, ge=1)
    square_meter: int = Field(..., gt=0)
    residents: int = Field(0, ge=0)
    cold_rent: float = Field(0.0, ge=0)
    warm_rent: float = Field(0.0, ge=0)

class FlatCreate(FlatBase):
    meters: List[MeterCreate] = []
    addition_costs: List[AdditionalCostCreate] = []

class FlatUpdate(BaseModel):
    # Without id the entry describes a new flat
    id: Optional[UUID] = None
    location: Optional[str] = Field(None, max_length=255)
    rooms: Optional[int] = Field(None, ge=1)
    square_meter: Optional[int] = Field(None, gt=0)
    residents: Optional[int] = Field(None, ge=0)
    cold_rent: Optional[float] = Field(None, ge=0)
    warm_rent: Optional[float] = Field(None, ge=0)
    meters: List[MeterUpdate] = []
    addition_costs: List[AdditionalCostCreate] = []

class FlatResponse(FlatBase):
    id: UUID
    building_id: UUID
    tenant: Optional[PersonContact]
    meters: List[MeterResponse]
    addition_costs: List[AdditionalCostResponse]

    model_config = ConfigDict(from_attributes=True)


class TenantFlatResponse(FlatBase):
    """A rented flat as its tenant sees it"""
    id: UUID
    building_id: UUID
    meters: List[MeterResponse]
    addition_costs: List[AdditionalCostResponse]
    invoices: List[InvoiceBrief]

    model_config = ConfigDict(from_attributes=True)


class AddressBase(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    zip: str = Field(..., min_length=1, max_length=20)
    city: str = Field(..., min_length=1, max_length=255)
    state: str = Field("", max_length=255)
    country: str = Field(..., min_length=1, max_length=255)

class BuildingCreate(AddressBase):
    flats: List[FlatCreate] = []
    operating_costs: List[AdditionalCostCreate] = []

class BuildingUpdate(BaseModel):
    street: Optional[str] = Field(None, min_length=1, max_length=255)
    zip: Optional[str] = Field(None, min_length=1, max_length=20)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    state: Optional[str] = Field(None, max_length=255)
    country: Optional[str] = Field(None, min_length=1, max_length=255)
    flats: List[FlatUpdate] = []
    # When given, replaces all operating costs of the building
    operating_costs: Optional[List[AdditionalCostCreate]] = None

class BuildingSummary(AddressBase):
    id: UUID
    landlord_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class BuildingResponse(BuildingSummary):
    flats: List[FlatResponse]
    operating_costs: List[AdditionalCostResponse]
