import logging
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from vms.core.config import settings
from vms.core.database import get_db
from vms.core.errors import Unauthenticated, Forbidden
from vms.core.security import decode_access_token
from vms.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Browsers authenticate with the session cookie, API clients with a bearer header
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    # An explicit Authorization header takes precedence over the cookie
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise Unauthenticated("Not authenticated")
    return get_current_user_from_token(token, db)


def get_current_user_from_token(token: str, db: Session) -> User:
    payload = decode_access_token(token)
    if not payload:
        raise Unauthenticated("Invalid token")

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise Unauthenticated("Invalid token")

    user = db.query(User).filter(User.id == int(subject)).first()
    if user is None:
        raise Unauthenticated("User not found")
    if not user.is_active:
        raise Forbidden("User is inactive")
    return user


def require_roles(*allowed_roles: str):
    allowed = {getattr(r, "value", r) for r in allowed_roles}

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.info(f"[PERMISSIONS] {current_user.email} ({current_user.role}) denied, requires {sorted(allowed)}")
            raise Forbidden("Insufficient permissions")
        return current_user
    return role_checker


def get_resident_user(current_user: User = Depends(require_roles(UserRole.RESIDENT))) -> User:
    return current_user


def get_guard_user(current_user: User = Depends(require_roles(UserRole.GUARD))) -> User:
    return current_user


def get_super_admin(current_user: User = Depends(require_roles(UserRole.SUPERADMIN))) -> User:
    return current_user
