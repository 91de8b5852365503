from sqlalchemy.orm import Session
from sqlalchemy import func
from vms.models.user import User, UserRole
from typing import Optional, List, Tuple


class UserRepository:
    def get_by_id(self, db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def create(self, db: Session, user: User) -> User:
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def update(self, db: Session, user: User) -> User:
        db.commit()
        db.refresh(user)
        return user

    def delete(self, db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    def count(
        self,
        db: Session,
        role: Optional[str] = None,
        property_id: Optional[int] = None,
        active_only: bool = False
    ) -> int:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        if property_id:
            query = query.filter(User.property_id == property_id)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.count()

    def superadmin_exists(self, db: Session) -> bool:
        return db.query(User).filter(User.role == UserRole.SUPERADMIN.value).first() is not None

    def get_active_guards(self, db: Session, property_id: int) -> List[User]:
        return db.query(User).filter(
            User.role == UserRole.GUARD.value,
            User.property_id == property_id,
            User.is_active.is_(True)
        ).order_by(User.id).all()

    def list(
        self,
        db: Session,
        role: Optional[str] = None,
        property_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        query = db.query(User).filter(User.role != UserRole.SUPERADMIN.value)
        if role:
            query = query.filter(User.role == role)
        if property_id:
            query = query.filter(User.property_id == property_id)
        total = query.count()
        items = query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()
        return items, total
