from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from vms.models.visitor import Visitor, VisitorStatus
from typing import Optional, List, Tuple, Dict, Any


class VisitorRepository:
    def get_by_id(self, db: Session, visitor_id: int) -> Optional[Visitor]:
        return db.query(Visitor).filter(Visitor.id == visitor_id).first()

    def get_in_property(self, db: Session, visitor_id: int, property_id: int) -> Optional[Visitor]:
        return db.query(Visitor).filter(
            Visitor.id == visitor_id,
            Visitor.property_id == property_id
        ).first()

    def create(self, db: Session, visitor: Visitor) -> Visitor:
        db.add(visitor)
        db.commit()
        db.refresh(visitor)
        return visitor

    def transition(
        self,
        db: Session,
        visitor_id: int,
        expected_status: str,
        values: Dict[str, Any],
        host_resident_id: Optional[int] = None
    ) -> bool:
        """
        Conditional update: applies `values` only while the visitor is still in
        `expected_status` (and, when given, still hosted by `host_resident_id`).
        Returns False when another request changed the row first.
        """
        query = db.query(Visitor).filter(
            Visitor.id == visitor_id,
            Visitor.status == expected_status
        )
        if host_resident_id is not None:
            query = query.filter(Visitor.host_resident_id == host_resident_id)
        updated = query.update(values, synchronize_session=False)
        db.commit()
        return updated == 1

    def list_pending_for_host(self, db: Session, resident_id: int) -> List[Visitor]:
        return db.query(Visitor).filter(
            Visitor.host_resident_id == resident_id,
            Visitor.status == VisitorStatus.PENDING.value
        ).order_by(Visitor.created_at.desc(), Visitor.id.desc()).all()

    def latest_pending_for_host(self, db: Session, resident_id: int) -> Optional[Visitor]:
        return db.query(Visitor).filter(
            Visitor.host_resident_id == resident_id,
            Visitor.status == VisitorStatus.PENDING.value
        ).order_by(Visitor.created_at.desc(), Visitor.id.desc()).first()

    def latest_unverified_by_phone(self, db: Session, phone: str) -> Optional[Visitor]:
        return db.query(Visitor).filter(
            Visitor.phone == phone,
            Visitor.phone_verified.is_(False)
        ).order_by(Visitor.created_at.desc(), Visitor.id.desc()).first()

    def list_history_for_resident(
        self,
        db: Session,
        resident_id: int,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Visitor], int]:
        """Visitors the resident hosts now or forwarded to someone else"""
        query = db.query(Visitor).filter(
            or_(Visitor.host_resident_id == resident_id, Visitor.forwarded_from == resident_id)
        )
        if status:
            query = query.filter(Visitor.status == status)
        total = query.count()
        items = query.order_by(Visitor.created_at.desc(), Visitor.id.desc()).offset(skip).limit(limit).all()
        return items, total

    def list_by_status_in_property(
        self,
        db: Session,
        property_id: int,
        status: str,
        order_by=None
    ) -> List[Visitor]:
        query = db.query(Visitor).filter(
            Visitor.property_id == property_id,
            Visitor.status == status
        )
        if order_by is None:
            order_by = (Visitor.created_at.desc(), Visitor.id.desc())
        return query.order_by(*order_by).all()

    def list_for_property(
        self,
        db: Session,
        property_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Visitor], int]:
        query = db.query(Visitor).filter(Visitor.property_id == property_id)
        if start is not None:
            query = query.filter(Visitor.created_at >= start)
        if end is not None:
            query = query.filter(Visitor.created_at < end)
        total = query.count()
        items = query.order_by(Visitor.created_at.desc(), Visitor.id.desc()).offset(skip).limit(limit).all()
        return items, total

    def detach_host(self, db: Session, resident_id: int) -> int:
        """Clear every reference to a resident profile that is about to be removed"""
        count = db.query(Visitor).filter(Visitor.host_resident_id == resident_id).update(
            {Visitor.host_resident_id: None}, synchronize_session=False
        )
        db.query(Visitor).filter(Visitor.forwarded_from == resident_id).update(
            {Visitor.forwarded_from: None}, synchronize_session=False
        )
        db.query(Visitor).filter(Visitor.forwarded_to == resident_id).update(
            {Visitor.forwarded_to: None}, synchronize_session=False
        )
        return count

    def _scoped(self, db: Session, property_id: Optional[int], start: Optional[datetime], end: Optional[datetime]):
        query = db.query(Visitor)
        if property_id:
            query = query.filter(Visitor.property_id == property_id)
        if start is not None:
            query = query.filter(Visitor.created_at >= start)
        if end is not None:
            query = query.filter(Visitor.created_at < end)
        return query

    def count_by_status(
        self,
        db: Session,
        property_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Dict[str, int]:
        rows = (
            self._scoped(db, property_id, start, end)
            .with_entities(Visitor.status, func.count(Visitor.id))
            .group_by(Visitor.status)
            .all()
        )
        counts = {s.value: 0 for s in VisitorStatus}
        for status, count in rows:
            counts[status] = count
        return counts

    def count_created_since(self, db: Session, since: datetime, property_id: Optional[int] = None) -> int:
        return self._scoped(db, property_id, since, None).count()

    def count_walk_ins(
        self,
        db: Session,
        property_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> int:
        return self._scoped(db, property_id, start, end).filter(Visitor.is_walk_in.is_(True)).count()

    def list_recent(
        self,
        db: Session,
        property_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 20
    ) -> List[Visitor]:
        return (
            self._scoped(db, property_id, start, end)
            .order_by(Visitor.created_at.desc(), Visitor.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def day_bounds(day: datetime) -> Tuple[datetime, datetime]:
        start = day.replace(hour=0, minute=0, second=0, microsecond=0)
        return start, start + timedelta(days=1)
