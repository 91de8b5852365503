import pytest
from unittest.mock import MagicMock, patch

from vms.core.errors import Conflict, Forbidden, Unauthenticated
from vms.core.security import decode_access_token, get_password_hash
from vms.models.user import UserRole
from vms.schemas.auth import LoginRequest, SetupSuperadminRequest
from vms.services.auth_service import AuthService
from tests.mocks.mock_user_repository import MockUserRepository


class TestAuthService:
    @pytest.fixture
    def service(self):
        repo = MockUserRepository()
        repo.add(
            email="resident@example.com",
            hashed_password=get_password_hash("password123"),
            full_name="Resident",
            role=UserRole.RESIDENT.value,
            property_id=1,
        )
        repo.add(
            email="blocked@example.com",
            hashed_password=get_password_hash("password123"),
            full_name="Blocked",
            role=UserRole.GUARD.value,
            property_id=1,
            is_active=False,
        )
        service = AuthService(db=MagicMock())  # DB session mocked
        service.user_repo = repo
        return service

    def test_login_success(self, service):
        user, token = service.login(LoginRequest(email="resident@example.com", password="password123"))
        assert user.last_login_at is not None
        claims = decode_access_token(token)
        assert claims["sub"] == str(user.id)
        assert claims["role"] == "resident"
        assert claims["property_id"] == 1

    @pytest.mark.parametrize("email,password", [
        ("resident@example.com", "wrongpassword"),
        ("missing@example.com", "password123"),
        ("blocked@example.com", "password123"),
    ])
    def test_login_failures(self, service, email, password):
        with pytest.raises(Unauthenticated) as exc:
            service.login(LoginRequest(email=email, password=password))
        assert exc.value.message == "Invalid credentials"

    def test_setup_superadmin(self, service):
        request = SetupSuperadminRequest(setupKey="setup-secret", email="root@example.com", password="rootpassword")
        with patch("vms.services.auth_service.settings.SETUP_SECRET", "setup-secret"):
            user = service.setup_superadmin(request)
            assert user.role == UserRole.SUPERADMIN.value

            with pytest.raises(Conflict):
                service.setup_superadmin(request)

    def test_setup_superadmin_wrong_key(self, service):
        request = SetupSuperadminRequest(setupKey="guess", email="root@example.com", password="rootpassword")
        with patch("vms.services.auth_service.settings.SETUP_SECRET", "setup-secret"):
            with pytest.raises(Forbidden):
                service.setup_superadmin(request)

    def test_setup_disabled_without_secret(self, service):
        request = SetupSuperadminRequest(setupKey="", email="root@example.com", password="rootpassword")
        with patch("vms.services.auth_service.settings.SETUP_SECRET", None):
            with pytest.raises(Forbidden):
                service.setup_superadmin(request)

    def test_create_superadmin_email_taken(self, service):
        with pytest.raises(Conflict):
            service.create_superadmin("resident@example.com", "rootpassword")
