import re
from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field, field_validator
from vms.models.property import Property, PropertyType
from vms.schemas.common import CamelModel, blank_to_none, validate_phone, dump

PINCODE_PATTERN = re.compile(r"^\d{6}$")


class Address(CamelModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str
    country: str = "India"

    @field_validator('pincode', mode='before')
    @classmethod
    def check_pincode(cls, v):
        v = str(v).strip() if v is not None else ""
        if not PINCODE_PATTERN.match(v):
            raise ValueError("Pincode must be 6 digits")
        return v


class ContactPerson(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator('phone', mode='before')
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator('name', 'email', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        return blank_to_none(v)


class PropertyCreate(CamelModel):
    name: str = Field(..., min_length=2)
    type: PropertyType
    address: Address
    contact_person: Optional[ContactPerson] = None
    total_units: int = Field(0, ge=0)
    qr_code: Optional[str] = None


class PropertyResponse(CamelModel):
    id: int
    name: str
    type: str
    address: Address
    contact_person: ContactPerson
    qr_code: Optional[str] = None
    is_active: bool
    total_units: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, prop: Property) -> "PropertyResponse":
        return cls(
            id=prop.id,
            name=prop.name,
            type=prop.type,
            address=Address(
                street=prop.street,
                city=prop.city,
                state=prop.state,
                pincode=prop.pincode,
                country=prop.country,
            ),
            contact_person=ContactPerson(
                name=prop.contact_person_name,
                phone=prop.contact_person_phone,
                email=prop.contact_person_email,
            ),
            qr_code=prop.qr_code,
            is_active=prop.is_active,
            total_units=prop.total_units,
            created_by=prop.created_by,
            created_at=prop.created_at,
        )


def property_payload(prop: Property) -> dict:
    return dump(PropertyResponse.from_model(prop))
