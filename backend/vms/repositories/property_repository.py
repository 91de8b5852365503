from sqlalchemy.orm import Session
from vms.models.property import Property
from typing import Optional, List, Tuple


class PropertyRepository:
    def get_by_id(self, db: Session, property_id: int) -> Optional[Property]:
        return db.query(Property).filter(Property.id == property_id).first()

    def create(self, db: Session, prop: Property) -> Property:
        db.add(prop)
        db.commit()
        db.refresh(prop)
        return prop

    def count(self, db: Session, active_only: bool = False) -> int:
        query = db.query(Property)
        if active_only:
            query = query.filter(Property.is_active.is_(True))
        return query.count()

    def list(
        self,
        db: Session,
        property_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        query = db.query(Property)
        if property_type:
            query = query.filter(Property.type == property_type)
        total = query.count()
        items = query.order_by(Property.created_at.desc(), Property.id.desc()).offset(skip).limit(limit).all()
        return items, total
