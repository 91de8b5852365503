import enum
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, JSON
from sqlalchemy.sql import func
from vms.core.database import Base


class AuditModule(str, enum.Enum):
    AUTH = "auth"
    USER = "user"
    PROPERTY = "property"
    VISITOR = "visitor"
    RESIDENT = "resident"
    GUARD = "guard"
    SYSTEM = "system"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # Performer
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
    action = Column(String, nullable=False, index=True)  # e.g. "VISITOR_APPROVED", "LOGIN"
    module = Column(String, nullable=False, index=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
