from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from vms.core.database import Base


class OtpChallenge(Base):
    """One outstanding phone verification code per phone number"""
    __tablename__ = "otp_challenges"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String, unique=True, nullable=False, index=True)
    code = Column(String, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)
    consumed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
