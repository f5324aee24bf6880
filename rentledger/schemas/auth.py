from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict

from rentledger.models.person import Gender


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

def validate_new_password(v: str) -> str:
    if not any(char.isdigit() for char in v):
        raise ValueError("Password must contain at least one digit")
    return v

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    gender: Optional[Gender] = None
    phone_number: Optional[str] = Field(None, max_length=50)

    @field_validator("password")
    def validate_password(cls, v):
        return validate_new_password(v)

class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=8)

    @field_validator("new_password")
    def validate_password(cls, v):
        return validate_new_password(v)

class ProfileUpdateRequest(BaseModel):
    """Profile changes; the current password confirms them."""
    password: str
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    gender: Optional[Gender] = None
    phone_number: Optional[str] = Field(None, max_length=50)

class DeleteAccountRequest(BaseModel):
    password: str

class PersonResponse(BaseModel):
    id: UUID
    email: Optional[str]
    first_name: str
    last_name: str
    gender: Optional[Gender]
    phone_number: Optional[str]
    capabilities: List[str]
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PersonProfileResponse(PersonResponse):
    created_at: datetime
    updated_at: datetime

class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    person: PersonResponse
