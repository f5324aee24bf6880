from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from rentledger.models.meter import MeterType


class ReadingSubmit(BaseModel):
    reading: int = Field(..., ge=0)


class ReadingUpdateResponse(BaseModel):
    id: UUID
    meter_id: UUID
    reading: int
    recorded_at: datetime
    recorded_by_id: Optional[UUID]

    model_config = ConfigDict(from_attributes=True)


class ReadingHistoryResponse(BaseModel):
    meter_id: UUID
    meter_number: str
    type: MeterType
    current_reading: int
    updates: List[ReadingUpdateResponse]
