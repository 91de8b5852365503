import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from vms.core.database import Base


class VisitorStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"  # Modelled only, no handler sets it


class IdCardType(str, enum.Enum):
    AADHAR = "aadhar"
    PAN = "pan"
    DRIVING_LICENSE = "driving_license"
    VOTER_ID = "voter_id"
    PASSPORT = "passport"
    OTHER = "other"


class Visitor(Base):
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True, index=True)  # 10 digits
    phone_verified = Column(Boolean, default=False, nullable=False)
    otp = Column(String, nullable=True)
    otp_expiry = Column(DateTime, nullable=True)
    otp_verified = Column(Boolean, default=False, nullable=False)

    id_card_type = Column(String, nullable=True)
    id_card_number = Column(String, nullable=True)
    id_card_image_url = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    asset_photo_url = Column(String, nullable=True)
    asset_description = Column(Text, nullable=True)

    purpose = Column(String, nullable=False)
    # Resident profile ids
    host_resident_id = Column(Integer, ForeignKey("residents.id"), nullable=True, index=True)
    vehicle_number = Column(String, nullable=True)  # Upper-cased
    number_of_persons = Column(Integer, default=1, nullable=False)

    status = Column(String, default=VisitorStatus.PENDING.value, nullable=False, index=True)

    approved_by = Column(Integer, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by = Column(Integer, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String, nullable=True)

    is_forwarded = Column(Boolean, default=False, nullable=False)
    forwarded_from = Column(Integer, ForeignKey("residents.id"), nullable=True)
    forwarded_to = Column(Integer, ForeignKey("residents.id"), nullable=True)
    forwarded_at = Column(DateTime, nullable=True)
    forwarding_note = Column(Text, nullable=True)

    checked_in_by = Column(Integer, nullable=True)
    actual_check_in_time = Column(DateTime, nullable=True)
    checked_out_by = Column(Integer, nullable=True)
    actual_check_out_time = Column(DateTime, nullable=True)

    marked_exit_by = Column(Integer, nullable=True)
    marked_exit_at = Column(DateTime, nullable=True)

    is_walk_in = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, onupdate=func.now())
