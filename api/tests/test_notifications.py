from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from conftest import auth_headers
from inkwell import models
from inkwell.services.notifications import NotificationService


def _targeted(db: Session, user: models.User, title: str = "Hello") -> models.Notification:
    notification = models.Notification(user_id=user.id, type="system", title=title)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def _broadcast(client, admin, title="Maintenance tonight") -> dict:
    response = client.post(
        "/notifications/broadcast",
        json={"title": title, "message": "Back soon"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_list_includes_targeted_and_broadcast(client, db, author, other_author, admin):
    _targeted(db, author, "For Alice")
    _targeted(db, other_author, "For Bob")
    _broadcast(client, admin)

    body = client.get("/notifications", headers=auth_headers(author)).json()
    titles = [n["title"] for n in body["items"]]
    assert sorted(titles) == ["For Alice", "Maintenance tonight"]
    assert body["unread_count"] == 2


def test_mark_targeted_read(client, db, author):
    notification = _targeted(db, author)
    headers = auth_headers(author)
    response = client.put(f"/notifications/{notification.id}/read", headers=headers)
    assert response.status_code == 200

    body = client.get("/notifications", headers=headers).json()
    assert body["items"][0]["is_read"] is True
    assert body["unread_count"] == 0


def test_broadcast_read_state_is_per_user(client, author, other_author, admin):
    broadcast = _broadcast(client, admin)
    assert broadcast["is_broadcast"] is True

    client.put(f"/notifications/{broadcast['id']}/read", headers=auth_headers(author))

    mine = client.get("/notifications", headers=auth_headers(author)).json()
    theirs = client.get("/notifications", headers=auth_headers(other_author)).json()
    assert mine["items"][0]["is_read"] is True
    assert mine["unread_count"] == 0
    assert theirs["items"][0]["is_read"] is False
    assert theirs["unread_count"] == 1


def test_mark_all_read(client, db, author, admin):
    _targeted(db, author, "One")
    _targeted(db, author, "Two")
    _broadcast(client, admin)
    headers = auth_headers(author)

    assert client.put("/notifications/read-all", headers=headers).status_code == 200
    body = client.get("/notifications", headers=headers).json()
    assert body["unread_count"] == 0
    assert all(n["is_read"] for n in body["items"])

    # A second call has nothing left to mark
    assert client.put("/notifications/read-all", headers=headers).status_code == 200


def test_cannot_touch_other_users_notification(client, db, author, other_author):
    notification = _targeted(db, other_author)
    headers = auth_headers(author)
    assert client.put(f"/notifications/{notification.id}/read", headers=headers).status_code == 404
    assert client.delete(f"/notifications/{notification.id}", headers=headers).status_code == 404


def test_delete_own_notification(client, db, author):
    notification = _targeted(db, author)
    response = client.delete(f"/notifications/{notification.id}", headers=auth_headers(author))
    assert response.status_code == 200
    assert client.get("/notifications", headers=auth_headers(author)).json()["items"] == []


def test_only_admin_deletes_broadcast(client, author, admin):
    broadcast = _broadcast(client, admin)
    assert client.delete(f"/notifications/{broadcast['id']}", headers=auth_headers(author)).status_code == 403
    assert client.delete(f"/notifications/{broadcast['id']}", headers=auth_headers(admin)).status_code == 200


def test_broadcast_requires_admin(client, editor):
    response = client.post(
        "/notifications/broadcast", json={"title": "Hi"}, headers=auth_headers(editor)
    )
    assert response.status_code == 403


def test_notify_skips_self(db, author):
    service = NotificationService()
    result = service.notify(
        db,
        user_id=author.id,
        notification_type="follow",
        title="Self",
        actor_id=author.id,
    )
    assert result is None
    assert db.query(models.Notification).count() == 0


def test_notify_failure_is_swallowed(db, author, monkeypatch):
    service = NotificationService()

    def broken_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db, "commit", broken_commit)
    result = service.notify(db, user_id=author.id, notification_type="comment", title="Boom")
    assert result is None
