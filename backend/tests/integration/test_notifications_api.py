from datetime import datetime, timedelta

from vms.models import Notification


def _add(db, user_id, title, expires_in_days=30, is_read=False):
    now = datetime.utcnow()
    notification = Notification(
        user_id=user_id, type="system", title=title, message=title, priority="medium",
        is_read=is_read, created_at=now, expires_at=now + timedelta(days=expires_in_days),
    )
    db.add(notification)
    db.commit()
    return notification.id


def test_list_and_unread_count(client, db, seed):
    _add(db, seed.alice_id, "First")
    _add(db, seed.alice_id, "Seen", is_read=True)
    _add(db, seed.alice_id, "Expired", expires_in_days=-1)
    _add(db, seed.bob_id, "Not mine")

    data = client.get("/notifications", headers=seed.alice).json()["data"]
    assert [n["title"] for n in data["notifications"]] == ["Seen", "First"]
    assert data["unreadCount"] == 1

    data = client.get("/notifications?unreadOnly=true", headers=seed.alice).json()["data"]
    assert [n["title"] for n in data["notifications"]] == ["First"]

    assert client.get("/notifications/unread-count", headers=seed.alice).json()["data"]["count"] == 1


def test_poll_returns_newest_unread(client, db, seed):
    for i in range(12):
        _add(db, seed.gary_id, f"Alert {i}")
    data = client.get("/notifications/poll", headers=seed.gary).json()["data"]
    assert len(data["notifications"]) == 10
    assert data["notifications"][0]["title"] == "Alert 11"
    assert data["unreadCount"] == 12


def test_mark_read_is_recipient_scoped(client, db, seed):
    notification_id = _add(db, seed.alice_id, "Private")

    response = client.post("/notifications/mark-read", json={"notificationId": notification_id}, headers=seed.bob)
    assert response.status_code == 404

    response = client.post("/notifications/mark-read", json={"notificationId": notification_id}, headers=seed.alice)
    assert response.status_code == 200
    assert response.json()["data"]["notification"]["isRead"] is True
    assert client.get("/notifications/unread-count", headers=seed.alice).json()["data"]["count"] == 0


def test_transition_notifications_expire_after_retention(client, db, seed, register_visitor):
    register_visitor()
    db.expire_all()
    notification = db.query(Notification).filter(Notification.user_id == seed.alice_id).one()
    assert notification.priority == "high"
    assert notification.related_visitor_id is not None
    assert (notification.expires_at - notification.created_at).days == 30
