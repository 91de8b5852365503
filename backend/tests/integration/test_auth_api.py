from vms.models import AuditLog, User


def test_login_sets_cookie(client, seed):
    response = client.post("/auth/login", json={"email": "Alice@Example.com", "password": "password123"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["role"] == "resident"
    assert body["data"]["user"]["propertyId"] == seed.p1
    assert "auth-token" in response.cookies

    # Cookie alone authenticates follow-up requests
    response = client.get("/auth/verify")
    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "alice@example.com"


def test_login_failures_share_one_message(client, seed, db):
    db.query(User).filter(User.id == seed.bob_id).update({"is_active": False})
    db.commit()

    for email, password in (
        ("alice@example.com", "wrongpassword"),
        ("nobody@example.com", "password123"),
        ("bob@example.com", "password123"),
    ):
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid credentials"}


def test_login_is_audited(client, seed, db):
    client.post("/auth/login", json={"email": "gary@example.com", "password": "password123"})
    db.expire_all()
    log = db.query(AuditLog).filter(AuditLog.action == "LOGIN").one()
    assert log.user_id == seed.gary_id
    assert log.module == "auth"


def test_logout_clears_cookie(client, seed):
    client.post("/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert client.post("/auth/logout").status_code == 200
    client.cookies.clear()
    assert client.get("/auth/verify").status_code == 401


def test_missing_and_invalid_token(client, seed):
    response = client.get("/resident/visitors/pending")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Not authenticated"}

    response = client.get("/resident/visitors/pending", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


def test_role_gates(client, seed):
    assert client.get("/resident/visitors/pending", headers=seed.gary).status_code == 403
    assert client.get("/guard/visitors/approved", headers=seed.alice).status_code == 403
    assert client.get("/superadmin/users", headers=seed.alice).status_code == 403

    response = client.post("/guard/visitors/check-in", json={"visitorId": 1}, headers=seed.alice)
    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Insufficient permissions"}


def test_deactivated_user_token_is_refused(client, seed, db):
    db.query(User).filter(User.id == seed.alice_id).update({"is_active": False})
    db.commit()
    response = client.get("/resident/visitors/pending", headers=seed.alice)
    assert response.status_code == 403


def test_setup_superadmin(client, db):
    response = client.post("/setup/superadmin", json={
        "setupKey": "wrong", "email": "root@example.com", "password": "rootpassword",
    })
    assert response.status_code == 403

    response = client.post("/setup/superadmin", json={
        "setupKey": "setup-secret", "email": "root@example.com", "password": "rootpassword",
    })
    assert response.status_code == 201
    assert response.json()["data"]["user"]["role"] == "superadmin"

    response = client.post("/setup/superadmin", json={
        "setupKey": "setup-secret", "email": "other@example.com", "password": "rootpassword",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "Superadmin already exists"
