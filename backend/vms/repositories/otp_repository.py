from datetime import datetime
from sqlalchemy.orm import Session
from vms.models.otp import OtpChallenge
from typing import Optional


class OtpRepository:
    def get_by_phone(self, db: Session, phone: str) -> Optional[OtpChallenge]:
        return db.query(OtpChallenge).filter(OtpChallenge.phone == phone).first()

    def upsert(self, db: Session, phone: str, code: str, expires_at: datetime) -> OtpChallenge:
        """Replace any outstanding challenge for the phone with a fresh one"""
        challenge = self.get_by_phone(db, phone)
        if challenge is None:
            challenge = OtpChallenge(phone=phone, code=code, expires_at=expires_at)
            db.add(challenge)
        else:
            challenge.code = code
            challenge.expires_at = expires_at
            challenge.verified = False
            challenge.verified_at = None
            challenge.consumed = False
        db.commit()
        db.refresh(challenge)
        return challenge

    def mark_verified(self, db: Session, challenge: OtpChallenge, now: datetime) -> OtpChallenge:
        challenge.verified = True
        challenge.verified_at = now
        db.commit()
        db.refresh(challenge)
        return challenge

