from sqlalchemy.orm import Session
from sqlalchemy import or_
from vms.models.resident import Resident
from typing import Optional, List


class ResidentRepository:
    def get_by_id(self, db: Session, resident_id: int) -> Optional[Resident]:
        return db.query(Resident).filter(Resident.id == resident_id).first()

    def get_by_user_id(self, db: Session, user_id: int) -> Optional[Resident]:
        return db.query(Resident).filter(Resident.user_id == user_id).first()

    def get_active_in_property(self, db: Session, resident_id: int, property_id: int) -> Optional[Resident]:
        return db.query(Resident).filter(
            Resident.id == resident_id,
            Resident.property_id == property_id,
            Resident.is_active.is_(True)
        ).first()

    def get_active_by_phone(self, db: Session, phone: str) -> Optional[Resident]:
        return db.query(Resident).filter(
            or_(Resident.phone_number == phone, Resident.alternate_phone == phone),
            Resident.is_active.is_(True)
        ).order_by(Resident.id).first()

    def list_active(
        self,
        db: Session,
        property_id: int,
        search: Optional[str] = None,
        exclude_id: Optional[int] = None,
        limit: int = 100
    ) -> List[Resident]:
        query = db.query(Resident).filter(
            Resident.property_id == property_id,
            Resident.is_active.is_(True)
        )
        if exclude_id is not None:
            query = query.filter(Resident.id != exclude_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Resident.name.ilike(pattern), Resident.unit_number.ilike(pattern)))
        return query.order_by(Resident.unit_number, Resident.name).limit(limit).all()

    def update(self, db: Session, resident: Resident) -> Resident:
        db.commit()
        db.refresh(resident)
        return resident
