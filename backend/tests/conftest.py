import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SETUP_SECRET", "setup-secret")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-twilio-token")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vms.main import app
from vms.core.database import Base, get_db
from vms.core.security import create_user_token, get_password_hash
from vms.models import Property, Resident, User, UserRole
from vms.services.messaging_service import get_messaging_service
from tests.mocks.fake_messaging import FakeMessagingService

# 1. Setup In-Memory SQLite Database
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 2. Dependency Override
def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


# 3. Fixtures
@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def messaging():
    fake = FakeMessagingService()
    app.dependency_overrides[get_messaging_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_messaging_service, None)


@pytest.fixture
def client(db, messaging):
    with TestClient(app) as c:
        yield c


def _property(db, name: str) -> Property:
    prop = Property(
        name=name,
        type="apartment",
        street="1 MG Road",
        city="Pune",
        state="Maharashtra",
        pincode="411001",
        country="India",
        total_units=40,
        is_active=True,
    )
    db.add(prop)
    db.flush()
    return prop


def _user(db, email: str, role: UserRole, property_id=None, phone=None, unit=None, active=True, password="password123") -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=email.split("@")[0].title(),
        role=role.value,
        property_id=property_id,
        phone_number=phone,
        unit_number=unit,
        is_active=active,
    )
    db.add(user)
    db.flush()
    return user


def _resident(db, user: User) -> Resident:
    resident = Resident(
        user_id=user.id,
        property_id=user.property_id,
        unit_number=user.unit_number,
        name=user.full_name,
        phone_number=user.phone_number,
        email=user.email,
        vehicle_numbers=[],
        is_active=user.is_active,
    )
    db.add(resident)
    db.flush()
    return resident


@pytest.fixture
def seed(db):
    """
    Two properties. P1 has residents Alice and Bob, guard Gary and an
    inactive guard; P2 has resident Carol and guard Gina.
    """
    p1 = _property(db, "Green Meadows")
    p2 = _property(db, "Blue Towers")

    admin = _user(db, "admin@example.com", UserRole.SUPERADMIN, password="admin12345")
    alice = _user(db, "alice@example.com", UserRole.RESIDENT, p1.id, "9000000001", "A-101")
    bob = _user(db, "bob@example.com", UserRole.RESIDENT, p1.id, "9000000002", "B-202")
    carol = _user(db, "carol@example.com", UserRole.RESIDENT, p2.id, "9000000003", "C-303")
    gary = _user(db, "gary@example.com", UserRole.GUARD, p1.id, "9000000011")
    idle = _user(db, "idle@example.com", UserRole.GUARD, p1.id, "9000000012", active=False)
    gina = _user(db, "gina@example.com", UserRole.GUARD, p2.id, "9000000013")

    r_alice = _resident(db, alice)
    r_bob = _resident(db, bob)
    r_carol = _resident(db, carol)
    db.commit()

    return SimpleNamespace(
        p1=p1.id,
        p2=p2.id,
        admin_id=admin.id,
        alice_id=alice.id,
        bob_id=bob.id,
        carol_id=carol.id,
        gary_id=gary.id,
        idle_id=idle.id,
        gina_id=gina.id,
        r_alice=r_alice.id,
        r_bob=r_bob.id,
        r_carol=r_carol.id,
        admin=auth_headers(admin),
        alice=auth_headers(alice),
        bob=auth_headers(bob),
        carol=auth_headers(carol),
        gary=auth_headers(gary),
        gina=auth_headers(gina),
    )


@pytest.fixture
def verify_phone(client, messaging):
    """Run the OTP round trip so the phone can register"""
    def _verify(phone: str):
        assert client.post("/visitor/send-otp", json={"phone": phone}).status_code == 200
        response = client.post("/visitor/verify-otp", json={"phone": phone, "otp": messaging.otps[phone]})
        assert response.status_code == 200
    return _verify


@pytest.fixture
def register_visitor(client, seed, verify_phone):
    def _register(name="Ravi Kumar", phone="9876543210", host=None, property_id=None, purpose="Delivery", **extra):
        if phone:
            verify_phone(phone)
        body = {
            "propertyId": property_id or seed.p1,
            "name": name,
            "phone": phone,
            "purpose": purpose,
            "hostResidentId": host or seed.r_alice,
            **extra,
        }
        response = client.post("/visitor/register", json=body)
        assert response.status_code == 201, response.json()
        return response.json()["data"]["visitorId"]
    return _register
