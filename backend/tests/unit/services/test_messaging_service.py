import pytest
from unittest.mock import AsyncMock, patch

from vms.services.messaging_service import (
    MessagingService,
    local_number,
    to_e164,
    to_whatsapp_address,
    twilio_signature,
    valid_twilio_signature,
)
from vms.services.webhook_service import twiml_message


@pytest.mark.parametrize("raw,expected", [
    ("9876543210", "+919876543210"),
    ("919876543210", "+919876543210"),
    ("+1 415 555 0100", "+14155550100"),
    ("whatsapp:+919876543210", "+919876543210"),
])
def test_to_e164(raw, expected):
    assert to_e164(raw) == expected


def test_addresses():
    assert to_whatsapp_address("9876543210") == "whatsapp:+919876543210"
    assert local_number("whatsapp:+919876543210") == "9876543210"
    assert local_number(None) == ""


def test_twiml_escapes_text():
    assert "<Message>A &amp; B</Message>" in twiml_message("A & B")


@pytest.mark.asyncio
async def test_unconfigured_channels_skip():
    service = MessagingService(timeout=1)
    with patch("vms.services.messaging_service.settings.TWILIO_ACCOUNT_SID", None), \
            patch("vms.services.messaging_service.settings.SMS_PROVIDER", "twilio"):
        assert await service.send_sms("9876543210", "hi") is False
        assert await service.send_whatsapp("9876543210", "hi") is False


@pytest.fixture
def configured():
    with patch.multiple(
        "vms.services.messaging_service.settings",
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_PHONE_NUMBER="+15550000000",
        TWILIO_WHATSAPP_NUMBER="whatsapp:+15550000001",
        TWILIO_WHATSAPP_APPROVAL_TEMPLATE_SID="HX123",
        SMS_PROVIDER="twilio",
    ):
        yield


@pytest.mark.asyncio
async def test_approval_request_falls_back_to_text(configured):
    service = MessagingService(timeout=1)
    service._post_twilio = AsyncMock(side_effect=[False, True])

    assert await service.send_approval_request("9876543210", "Ravi", None, "A-101", "Delivery") is True
    template_form, text_form = [call.args[0] for call in service._post_twilio.await_args_list]
    assert template_form["ContentSid"] == "HX123"
    assert template_form["To"] == "whatsapp:+919876543210"
    assert "Reply: APPROVE or REJECT" in text_form["Body"]


@pytest.mark.asyncio
async def test_visitor_approved_either_channel(configured):
    service = MessagingService(timeout=1)
    service._post_twilio = AsyncMock(side_effect=[False, True])
    assert await service.send_visitor_approved("9876543210", "Ravi", "Alice", "A-101") is True

    sms_form = service._post_twilio.await_args_list[0].args[0]
    assert sms_form["From"] == "+15550000000"
    assert sms_form["To"] == "+919876543210"


def test_twilio_signature_validation():
    url = "https://gate.example.com/webhooks/whatsapp"
    params = [("From", "whatsapp:+919000000001"), ("Body", "APPROVE")]
    with patch("vms.services.messaging_service.settings.TWILIO_AUTH_TOKEN", "secret"):
        signature = twilio_signature(url, params, "secret")
        assert valid_twilio_signature(url, list(reversed(params)), signature) is True
        assert valid_twilio_signature(url, [("From", "whatsapp:+919000000001"), ("Body", "REJECT")], signature) is False
        assert valid_twilio_signature(url + "?x=1", params, signature) is False
        assert valid_twilio_signature(url, params, twilio_signature(url, params, "guess")) is False
        assert valid_twilio_signature(url, params, None) is False

    with patch("vms.services.messaging_service.settings.TWILIO_AUTH_TOKEN", None):
        assert valid_twilio_signature(url, params, signature) is False
