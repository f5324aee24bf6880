from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from rentledger.models.meter import MeterType


class MeterBase(BaseModel):
    meter_number: str = Field(..., min_length=1, max_length=100)
    type: MeterType
    reading: int = Field(0, ge=0)
    cost_per_unit: float = Field(0.0, ge=0)
    base_cost: float = Field(0.0, ge=0)

class MeterCreate(MeterBase):
    pass

class MeterUpdate(BaseModel):
    # Without id the entry describes a new meter
    id: Optional[UUID] = None
    meter_number: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[MeterType] = None
    reading: Optional[int] = Field(None, ge=0)
    cost_per_unit: Optional[float] = Field(None, ge=0)
    base_cost: Optional[float] = Field(None, ge=0)

class MeterResponse(MeterBase):
    id: UUID
    flat_id: UUID
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
