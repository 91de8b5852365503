from typing import Optional
from pydantic import EmailStr, Field, field_validator
from vms.schemas.common import CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class SetupSuperadminRequest(CamelModel):
    setup_key: str
    email: EmailStr
    password: str = Field(..., min_length=8, description="Minimum 8 characters")
    full_name: str = "Super Admin"

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class IdentityResponse(CamelModel):
    id: int
    email: str
    full_name: str
    role: str
    property_id: Optional[int] = None
    unit_number: Optional[str] = None
    phone_number: Optional[str] = None

    class Config:
        from_attributes = True
