"""Post workflow: submit, approve, reject, and the status audit trail."""

from __future__ import annotations

from sqlalchemy.orm import Session

from conftest import auth_headers
from inkwell import models


def _status_logs(db: Session, post_id: int) -> list[models.PostStatusLog]:
    return (
        db.query(models.PostStatusLog)
        .filter(models.PostStatusLog.post_id == post_id)
        .order_by(models.PostStatusLog.id)
        .all()
    )


def _notifications(db: Session, user: models.User, notification_type: str) -> list[models.Notification]:
    return (
        db.query(models.Notification)
        .filter(models.Notification.user_id == user.id, models.Notification.type == notification_type)
        .all()
    )


def test_submit_moves_draft_to_pending(client, db, create_post, author):
    post = create_post(author)
    response = client.put(f"/posts/{post['id']}/submit", headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["status"] == "pending"

    logs = _status_logs(db, post["id"])
    assert [(log.old_status, log.new_status) for log in logs] == [("draft", "pending")]


def test_submit_only_from_draft(client, create_post, author):
    post = create_post(author, status="pending")
    response = client.put(f"/posts/{post['id']}/submit", headers=auth_headers(author))
    assert response.status_code == 400


def test_submit_by_other_user_is_403(client, create_post, author, editor):
    post = create_post(author)
    response = client.put(f"/posts/{post['id']}/submit", headers=auth_headers(editor))
    assert response.status_code == 403


def test_approve_publishes_logs_and_notifies(client, db, create_post, author, editor):
    post = create_post(author, status="pending")
    response = client.put(f"/admin/posts/{post['id']}/approve", headers=auth_headers(editor))
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "published"
    assert body["published_at"] is not None
    assert body["rejection_note"] is None

    logs = _status_logs(db, post["id"])
    assert len(logs) == 1
    assert logs[0].new_status == "published"
    assert logs[0].changed_by == editor.id

    notifications = _notifications(db, author, "post_approved")
    assert len(notifications) == 1
    assert notifications[0].title == "Post Approved!"
    assert notifications[0].link == f"/post/{body['slug']}"


def test_approve_requires_editor(client, create_post, author):
    post = create_post(author, status="pending")
    response = client.put(f"/admin/posts/{post['id']}/approve", headers=auth_headers(author))
    assert response.status_code == 403


def test_approve_published_is_invalid(client, published_post, editor):
    response = client.put(f"/admin/posts/{published_post['id']}/approve", headers=auth_headers(editor))
    assert response.status_code == 400


def test_reject_sets_note_and_keeps_published_at(client, db, published_post, author, editor):
    response = client.put(
        f"/admin/posts/{published_post['id']}/reject",
        json={"note": "Needs sources"},
        headers=auth_headers(editor),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "rejected"
    assert body["rejection_note"] == "Needs sources"
    assert body["published_at"] == published_post["published_at"]

    notifications = _notifications(db, author, "post_rejected")
    assert len(notifications) == 1
    assert "Needs sources" in notifications[0].message

    assert _status_logs(db, published_post["id"])[-1].note == "Needs sources"


def test_reject_without_body_uses_empty_note(client, create_post, author, editor):
    post = create_post(author, status="pending")
    response = client.put(f"/admin/posts/{post['id']}/reject", headers=auth_headers(editor))
    assert response.status_code == 200
    assert response.json()["rejection_note"] == ""


def test_reject_twice_is_invalid(client, create_post, author, editor):
    post = create_post(author, status="pending")
    client.put(f"/admin/posts/{post['id']}/reject", headers=auth_headers(editor))
    response = client.put(f"/admin/posts/{post['id']}/reject", headers=auth_headers(editor))
    assert response.status_code == 400


def test_resubmit_after_rejection_clears_note(client, create_post, author, editor):
    post = create_post(author, status="pending")
    client.put(f"/admin/posts/{post['id']}/reject", json={"note": "Too short"}, headers=auth_headers(editor))

    response = client.put(
        f"/posts/{post['id']}", json={"status": "pending"}, headers=auth_headers(author)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert response.json()["rejection_note"] is None


def test_approve_rejected_post(client, create_post, author, editor):
    post = create_post(author, status="pending")
    client.put(f"/admin/posts/{post['id']}/reject", json={"note": "Fix it"}, headers=auth_headers(editor))
    response = client.put(f"/admin/posts/{post['id']}/approve", headers=auth_headers(editor))
    assert response.status_code == 200
    assert response.json()["status"] == "published"
    assert response.json()["rejection_note"] is None


def test_editor_approving_own_post_is_notified(client, db, create_post, editor):
    post = create_post(editor, status="pending")
    client.put(f"/admin/posts/{post['id']}/approve", headers=auth_headers(editor))
    assert len(_notifications(db, editor, "post_approved")) == 1


def test_status_log_survives_post_deletion(client, db, published_post, author):
    post_id = published_post["id"]
    client.delete(f"/posts/{post_id}", headers=auth_headers(author))
    logs = db.query(models.PostStatusLog).filter(models.PostStatusLog.new_status == "published").all()
    assert len(logs) == 1
    assert logs[0].post_id is None


def test_moderation_queue(client, create_post, author, editor):
    create_post(author, title="Waiting", status="pending")
    create_post(author, title="Drafty")

    response = client.get("/admin/posts", params={"status": "pending"}, headers=auth_headers(editor))
    assert response.status_code == 200
    assert [p["title"] for p in response.json()["items"]] == ["Waiting"]

    everything = client.get("/admin/posts", headers=auth_headers(editor))
    assert everything.json()["total"] == 2

    assert client.get("/admin/posts", headers=auth_headers(author)).status_code == 403
