from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


class AssignTenantRequest(BaseModel):
    """Tenant is found by email, or created from first and last name."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    residents: int = Field(1, ge=0)

    @model_validator(mode="after")
    def check_identity(self):
        if not self.email and not (self.first_name and self.last_name):
            raise ValueError("Either email or first and last name are required")
        return self
