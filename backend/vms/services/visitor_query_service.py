import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from vms.core.errors import Forbidden, ValidationError
from vms.models.resident import Resident
from vms.models.user import User
from vms.models.visitor import Visitor, VisitorStatus
from vms.repositories.resident_repository import ResidentRepository
from vms.repositories.visitor_repository import VisitorRepository
from vms.schemas.common import dump
from vms.schemas.visitor import ResidentOption, ResidentResponse, VisitorResponse

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def paginate(page: int, limit: int):
    page = max(page or 1, 1)
    limit = min(max(limit or 20, 1), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def page_info(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit if limit else 0,
    }


class VisitorQueryService:
    """Read-only listings for the resident and guard dashboards"""

    def __init__(self, db: Session):
        self.db = db
        self.visitor_repo = VisitorRepository()
        self.resident_repo = ResidentRepository()

    def _resident(self, user: User) -> Resident:
        resident = self.resident_repo.get_by_user_id(self.db, user.id)
        if not resident or not resident.is_active:
            raise Forbidden("Resident profile not found")
        return resident

    def _serialize(self, visitors: List[Visitor]) -> List[Dict[str, Any]]:
        """Visitor payloads with the host's name and unit attached"""
        hosts: Dict[int, Optional[Resident]] = {}
        items = []
        for visitor in visitors:
            payload = dump(VisitorResponse.model_validate(visitor))
            host_id = visitor.host_resident_id
            if host_id is not None and host_id not in hosts:
                hosts[host_id] = self.resident_repo.get_by_id(self.db, host_id)
            host = hosts.get(host_id) if host_id is not None else None
            payload["hostName"] = host.name if host else None
            payload["hostUnit"] = host.unit_number if host else None
            items.append(payload)
        return items

    # ---------- RESIDENT ----------
    def resident_pending(self, user: User) -> List[Dict[str, Any]]:
        resident = self._resident(user)
        return self._serialize(self.visitor_repo.list_pending_for_host(self.db, resident.id))

    def resident_history(self, user: User, page: int = 1, limit: int = 20, status: Optional[str] = None) -> Dict[str, Any]:
        resident = self._resident(user)
        if status and status not in {s.value for s in VisitorStatus}:
            raise ValidationError(f"Unknown visitor status: {status}")
        page, limit, skip = paginate(page, limit)
        items, total = self.visitor_repo.list_history_for_resident(self.db, resident.id, status, skip, limit)
        return {"visitors": self._serialize(items), "pagination": page_info(page, limit, total)}

    def forwarding_targets(self, user: User, search: Optional[str] = None) -> List[Dict[str, Any]]:
        resident = self._resident(user)
        residents = self.resident_repo.list_active(self.db, resident.property_id, search, exclude_id=resident.id)
        return [dump(ResidentResponse.model_validate(r)) for r in residents]

    # ---------- GUARD ----------
    def guard_approved(self, guard: User) -> List[Dict[str, Any]]:
        visitors = self.visitor_repo.list_by_status_in_property(
            self.db, guard.property_id, VisitorStatus.APPROVED.value,
            order_by=(Visitor.approved_at.desc(), Visitor.id.desc()),
        )
        return self._serialize(visitors)

    def guard_active(self, guard: User) -> List[Dict[str, Any]]:
        visitors = self.visitor_repo.list_by_status_in_property(
            self.db, guard.property_id, VisitorStatus.CHECKED_IN.value,
            order_by=(Visitor.actual_check_in_time.desc(), Visitor.id.desc()),
        )
        return self._serialize(visitors)

    def guard_history(self, guard: User, page: int = 1, limit: int = 20, day: Optional[date] = None) -> Dict[str, Any]:
        page, limit, skip = paginate(page, limit)
        start = end = None
        if day is not None:
            start, end = self.visitor_repo.day_bounds(datetime(day.year, day.month, day.day))
        items, total = self.visitor_repo.list_for_property(self.db, guard.property_id, start, end, skip, limit)
        return {"visitors": self._serialize(items), "pagination": page_info(page, limit, total)}

    def guard_residents(self, guard: User, search: Optional[str] = None) -> List[Dict[str, Any]]:
        residents = self.resident_repo.list_active(self.db, guard.property_id, search)
        return [dump(ResidentResponse.model_validate(r)) for r in residents]

    # ---------- PUBLIC ----------
    def public_residents(self, property_id: int, search: Optional[str] = None) -> List[Dict[str, Any]]:
        residents = self.resident_repo.list_active(self.db, property_id, search)
        return [dump(ResidentOption.model_validate(r)) for r in residents]
