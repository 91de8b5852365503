import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from vms.core.database import Base


class PropertyType(str, enum.Enum):
    APARTMENT = "apartment"
    WAREHOUSE = "warehouse"
    RWA = "rwa"
    OFFICE = "office"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False, index=True)  # apartment, warehouse, rwa, office
    street = Column(String, nullable=False)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    pincode = Column(String, nullable=False)  # 6 digits
    country = Column(String, default="India", nullable=False)
    contact_person_name = Column(String, nullable=True)
    contact_person_phone = Column(String, nullable=True)
    contact_person_email = Column(String, nullable=True)
    qr_code = Column(String, nullable=True)  # Reference to the gate QR image
    is_active = Column(Boolean, default=True, nullable=False)
    total_units = Column(Integer, default=0, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
