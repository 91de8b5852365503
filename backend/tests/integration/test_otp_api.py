from datetime import datetime, timedelta

from vms.models import OtpChallenge, Visitor


def test_send_and_verify(client, db, messaging):
    response = client.post("/visitor/send-otp", json={"phone": "98765 43210"})
    assert response.status_code == 200
    code = messaging.otps["9876543210"]
    assert len(code) == 6 and code.isdigit()

    response = client.post("/visitor/verify-otp", json={"phone": "9876543210", "otp": "000000" if code != "000000" else "111111"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or expired OTP"

    response = client.post("/visitor/verify-otp", json={"phone": "9876543210", "otp": code})
    assert response.status_code == 200
    db.expire_all()
    challenge = db.query(OtpChallenge).filter(OtpChallenge.phone == "9876543210").one()
    assert challenge.verified is True


def test_resend_replaces_challenge(client, db, messaging):
    client.post("/visitor/send-otp", json={"phone": "9876543210"})
    client.post("/visitor/send-otp", json={"phone": "9876543210"})
    db.expire_all()
    assert db.query(OtpChallenge).count() == 1


def test_expired_otp(client, db, messaging):
    client.post("/visitor/send-otp", json={"phone": "9876543210"})
    db.query(OtpChallenge).update({"expires_at": datetime.utcnow() - timedelta(minutes=1)})
    db.commit()
    response = client.post("/visitor/verify-otp", json={"phone": "9876543210", "otp": messaging.otps["9876543210"]})
    assert response.status_code == 400


def test_verify_without_challenge(client, db):
    response = client.post("/visitor/verify-otp", json={"phone": "9876543210", "otp": "123456"})
    assert response.status_code == 404


def test_send_otp_for_visitor(client, db, seed, messaging):
    visitor = Visitor(
        property_id=seed.p1, name="Known Visitor", phone="9876543210", purpose="Visit",
        host_resident_id=seed.r_alice, status="pending",
    )
    db.add(visitor)
    db.commit()
    visitor_id = visitor.id

    assert client.post("/visitor/send-otp", json={"phone": "9876543210", "visitorId": 999}).status_code == 404

    client.post("/visitor/send-otp", json={"phone": "9876543210", "visitorId": visitor_id})
    db.expire_all()
    stored = db.query(Visitor).filter(Visitor.id == visitor_id).one()
    assert stored.otp == messaging.otps["9876543210"]

    client.post("/visitor/verify-otp", json={"phone": "9876543210", "otp": messaging.otps["9876543210"]})
    db.expire_all()
    stored = db.query(Visitor).filter(Visitor.id == visitor_id).one()
    assert stored.phone_verified is True
    assert stored.otp_verified is True
    assert stored.otp is None


def test_send_otp_delivery_failure(client, messaging):
    messaging.result = False
    response = client.post("/visitor/send-otp", json={"phone": "9876543210"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to send OTP"}


def test_send_otp_rejects_short_phone(client):
    response = client.post("/visitor/send-otp", json={"phone": "98765"})
    assert response.status_code == 400
