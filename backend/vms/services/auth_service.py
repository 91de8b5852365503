import logging
import secrets
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from vms.core.audit import AuditService
from vms.core.config import settings
from vms.core.errors import Conflict, Forbidden, Unauthenticated
from vms.core.security import create_user_token, get_password_hash, verify_password
from vms.models.audit_log import AuditModule
from vms.models.user import User, UserRole
from vms.repositories.user_repository import UserRepository
from vms.schemas.auth import LoginRequest, SetupSuperadminRequest

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session, audit_context: Optional[Dict[str, Optional[str]]] = None):
        self.db = db
        self.user_repo = UserRepository()
        self.audit_context = audit_context or {}

    def login(self, login_data: LoginRequest) -> Tuple[User, str]:
        """Returns the user and a fresh session token"""
        user = self.user_repo.get_by_email(self.db, login_data.email)
        if not user:
            logger.info(f"[AUTH] Login failed - user not found: {login_data.email}")
            raise Unauthenticated("Invalid credentials")
        if not user.is_active:
            logger.info(f"[AUTH] Login failed - inactive user: {user.email}")
            raise Unauthenticated("Invalid credentials")
        if not verify_password(login_data.password, user.hashed_password):
            logger.info(f"[AUTH] Login failed - invalid password: {user.email}")
            raise Unauthenticated("Invalid credentials")

        user.last_login_at = datetime.utcnow()
        user = self.user_repo.update(self.db, user)
        logger.info(f"[AUTH] Login successful: {user.email} ({user.role})")

        AuditService.log_action(
            self.db,
            action="LOGIN",
            module=AuditModule.AUTH,
            user_id=user.id,
            property_id=user.property_id,
            details=f"{user.email} logged in",
            **self.audit_context,
        )
        return user, create_user_token(user)

    def setup_superadmin(self, data: SetupSuperadminRequest) -> User:
        """Create the first superadmin, guarded by SETUP_SECRET"""
        if not settings.SETUP_SECRET or not secrets.compare_digest(data.setup_key.encode(), settings.SETUP_SECRET.encode()):
            raise Forbidden("Invalid setup key")
        return self.create_superadmin(data.email, data.password, data.full_name)

    def create_superadmin(self, email: str, password: str, full_name: str = "Super Admin") -> User:
        if self.user_repo.superadmin_exists(self.db):
            raise Conflict("Superadmin already exists")
        if self.user_repo.get_by_email(self.db, email):
            raise Conflict("Email already registered")

        user = User(
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=UserRole.SUPERADMIN.value,
            is_active=True,
        )
        user = self.user_repo.create(self.db, user)
        logger.info(f"[AUTH] Superadmin created: {user.email}")
        AuditService.log_action(
            self.db,
            action="SUPERADMIN_CREATED",
            module=AuditModule.SYSTEM,
            user_id=user.id,
            details=f"Initial superadmin {user.email} created",
            **self.audit_context,
        )
        return user
