import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from vms.core.errors import InternalError, NotFound, ValidationError
from vms.services.otp_service import OtpService, generate_otp
from tests.mocks.fake_messaging import FakeMessagingService
from tests.mocks.mock_visitor_repositories import MockOtpRepository, MockVisitorRepository


@pytest.fixture
def service():
    service = OtpService(db=MagicMock(), messaging=FakeMessagingService())
    service.otp_repo = MockOtpRepository()
    service.visitor_repo = MockVisitorRepository()
    return service


def test_generate_otp():
    code = generate_otp(6)
    assert len(code) == 6 and code.isdigit()


@pytest.mark.asyncio
async def test_send_and_verify(service):
    challenge = await service.send_otp("9876543210")
    code = service.messaging.otps["9876543210"]
    assert challenge.code == code
    assert challenge.expires_at > datetime.utcnow()

    with pytest.raises(ValidationError):
        service.verify_otp("9876543210", "abcdef")
    assert service.verify_otp("9876543210", code).verified is True


@pytest.mark.asyncio
async def test_verify_marks_pending_visitor(service):
    visitor = service.visitor_repo.add(property_id=1, name="Ravi", phone="9876543210", purpose="Visit", host_resident_id=1)
    await service.send_otp("9876543210", visitor.id)
    assert visitor.otp == service.messaging.otps["9876543210"]

    service.verify_otp("9876543210", visitor.otp)
    assert visitor.phone_verified is True
    assert visitor.otp is None


@pytest.mark.asyncio
async def test_send_for_unknown_visitor(service):
    with pytest.raises(NotFound):
        await service.send_otp("9876543210", 42)


def test_verify_expired(service):
    service.otp_repo.upsert(None, "9876543210", "123456", datetime.utcnow() - timedelta(seconds=1))
    with pytest.raises(ValidationError):
        service.verify_otp("9876543210", "123456")


def test_verify_without_challenge(service):
    with pytest.raises(NotFound):
        service.verify_otp("9876543210", "123456")


@pytest.mark.asyncio
async def test_delivery_failure(service):
    service.messaging.result = False
    with patch("vms.services.otp_service.settings.ENVIRONMENT", "production"):
        with pytest.raises(InternalError):
            await service.send_otp("9876543210")

    # Development falls back to logging the code
    with patch("vms.services.otp_service.settings.ENVIRONMENT", "development"):
        challenge = await service.send_otp("9876543210")
    assert challenge.phone == "9876543210"


def test_consume_verified_once(service):
    challenge = service.otp_repo.upsert(None, "9876543210", "123456", datetime.utcnow() + timedelta(minutes=5))
    assert service.consume_verified("9876543210") is False

    challenge.verified = True
    assert service.consume_verified("9876543210") is True
    assert service.consume_verified("9876543210") is False
