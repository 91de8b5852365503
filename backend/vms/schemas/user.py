from datetime import datetime
from typing import List, Literal, Optional
from pydantic import EmailStr, Field, field_validator, model_validator
from vms.schemas.common import CamelModel, blank_to_none, validate_phone


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2)
    role: Literal["resident", "guard"]
    property_id: int
    unit_number: Optional[str] = None
    phone_number: Optional[str] = None
    # Resident profile extras
    alternate_phone: Optional[str] = None
    number_of_members: int = Field(1, ge=1)
    vehicle_numbers: List[str] = []
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relation: Optional[str] = None

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator('phone_number', 'alternate_phone', 'emergency_contact_phone', mode='before')
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator('unit_number', 'emergency_contact_name', 'emergency_contact_relation', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        return blank_to_none(v)

    @field_validator('vehicle_numbers', mode='before')
    @classmethod
    def upper_vehicles(cls, v):
        if v is None:
            return []
        return [str(n).strip().upper() for n in v if str(n).strip()]

    @model_validator(mode='after')
    def resident_fields(self):
        if self.role == "resident" and (not self.unit_number or not self.phone_number):
            raise ValueError("Unit number and phone number are required for residents")
        return self


class UserUpdate(CamelModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    full_name: Optional[str] = None
    unit_number: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        v = blank_to_none(v)
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator('password', 'full_name', 'unit_number', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        return blank_to_none(v)

    @field_validator('phone_number', mode='before')
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class UserResponse(CamelModel):
    id: int
    email: str
    full_name: str
    role: str
    property_id: Optional[int] = None
    unit_number: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool
    created_by: Optional[int] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
