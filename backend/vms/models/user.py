import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from vms.core.database import Base


class UserRole(str, enum.Enum):
    SUPERADMIN = "superadmin"
    RESIDENT = "resident"
    GUARD = "guard"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # Stored lower-cased
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, index=True)  # superadmin, resident, guard
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)  # Required unless superadmin
    unit_number = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)  # 10 digits
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
