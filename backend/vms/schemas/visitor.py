from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator
from vms.models.visitor import IdCardType
from vms.schemas.common import CamelModel, blank_to_none, validate_phone


class SendOtpRequest(CamelModel):
    phone: str
    visitor_id: Optional[int] = None

    @field_validator('phone', mode='before')
    @classmethod
    def check_phone(cls, v):
        v = validate_phone(v)
        if v is None:
            raise ValueError("Phone number is required")
        return v


class VerifyOtpRequest(CamelModel):
    phone: str
    otp: str = Field(..., min_length=4, max_length=8)

    @field_validator('phone', mode='before')
    @classmethod
    def check_phone(cls, v):
        v = validate_phone(v)
        if v is None:
            raise ValueError("Phone number is required")
        return v

    @field_validator('otp', mode='before')
    @classmethod
    def strip_otp(cls, v):
        return v.strip() if isinstance(v, str) else v


class _VisitorEntryFields(CamelModel):
    name: str = Field(..., min_length=2)
    phone: Optional[str] = None
    id_card_image_url: Optional[str] = None
    photo_url: Optional[str] = None
    purpose: str = Field(..., min_length=3)
    host_resident_id: int
    vehicle_number: Optional[str] = None
    number_of_persons: int = Field(1, ge=1)

    @field_validator('phone', mode='before')
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator('name', 'purpose', mode='before')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('id_card_image_url', 'photo_url', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        return blank_to_none(v)

    @field_validator('vehicle_number', mode='before')
    @classmethod
    def upper_vehicle(cls, v):
        v = blank_to_none(v)
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator('number_of_persons', mode='before')
    @classmethod
    def default_persons(cls, v):
        return 1 if v is None else v


class VisitorRegisterRequest(_VisitorEntryFields):
    property_id: int
    id_card_type: Optional[IdCardType] = None
    id_card_number: Optional[str] = None
    asset_photo_url: Optional[str] = None
    asset_description: Optional[str] = None

    @field_validator('id_card_type', 'id_card_number', 'asset_photo_url', 'asset_description', mode='before')
    @classmethod
    def optional_to_none(cls, v):
        return blank_to_none(v)


class ManualEntryRequest(_VisitorEntryFields):
    pass


class VisitorActionRequest(CamelModel):
    visitor_id: int


class RejectVisitorRequest(VisitorActionRequest):
    reason: Optional[str] = None

    @field_validator('reason', mode='before')
    @classmethod
    def empty_reason(cls, v):
        return blank_to_none(v)


class ForwardVisitorRequest(VisitorActionRequest):
    forward_to_resident_id: int
    note: Optional[str] = None

    @field_validator('note', mode='before')
    @classmethod
    def empty_note(cls, v):
        return blank_to_none(v)


class VisitorResponse(CamelModel):
    id: int
    property_id: int
    name: str
    phone: Optional[str] = None
    phone_verified: bool = False
    id_card_type: Optional[str] = None
    id_card_number: Optional[str] = None
    id_card_image_url: Optional[str] = None
    photo_url: Optional[str] = None
    asset_photo_url: Optional[str] = None
    asset_description: Optional[str] = None
    purpose: str
    host_resident_id: Optional[int] = None
    vehicle_number: Optional[str] = None
    number_of_persons: int = 1
    status: str
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    is_forwarded: bool = False
    forwarded_from: Optional[int] = None
    forwarded_to: Optional[int] = None
    forwarded_at: Optional[datetime] = None
    forwarding_note: Optional[str] = None
    checked_in_by: Optional[int] = None
    actual_check_in_time: Optional[datetime] = None
    marked_exit_by: Optional[int] = None
    marked_exit_at: Optional[datetime] = None
    is_walk_in: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResidentOption(CamelModel):
    """Public resident listing for the gate registration form"""
    id: int
    name: str
    unit_number: str

    class Config:
        from_attributes = True


class ResidentResponse(ResidentOption):
    user_id: int
    property_id: int
    phone_number: str
    alternate_phone: Optional[str] = None
    email: Optional[str] = None
    number_of_members: int = 1
    is_active: bool = True
