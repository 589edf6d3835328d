from __future__ import annotations

from sqlalchemy.orm import Session

from conftest import auth_headers
from inkwell import models


def _notification_count(db: Session, user: models.User, notification_type: str) -> int:
    return (
        db.query(models.Notification)
        .filter(models.Notification.user_id == user.id, models.Notification.type == notification_type)
        .count()
    )


# ============================================================================
# FOLLOWS
# ============================================================================


def test_follow_and_unfollow(client, db, author, other_author):
    response = client.post(f"/users/{other_author.id}/follow", headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json() == {"following": True, "follower_count": 1}
    assert _notification_count(db, other_author, "follow") == 1

    profile = client.get(f"/users/{other_author.username}", headers=auth_headers(author)).json()
    assert profile["follower_count"] == 1
    assert profile["is_following"] is True

    response = client.delete(f"/users/{other_author.id}/follow", headers=auth_headers(author))
    assert response.json() == {"following": False, "follower_count": 0}


def test_follow_twice_is_conflict(client, author, other_author):
    client.post(f"/users/{other_author.id}/follow", headers=auth_headers(author))
    response = client.post(f"/users/{other_author.id}/follow", headers=auth_headers(author))
    assert response.status_code == 409


def test_unfollow_missing_edge_is_noop(client, author, other_author):
    response = client.delete(f"/users/{other_author.id}/follow", headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["follower_count"] == 0


def test_follow_self_rejected_for_every_role(client, make_user):
    for role in ("subscriber", "author", "editor", "admin"):
        user = make_user(role)
        response = client.post(f"/users/{user.id}/follow", headers=auth_headers(user))
        assert response.status_code == 400


def test_follow_unknown_user_is_404(client, author):
    response = client.post("/users/9999/follow", headers=auth_headers(author))
    assert response.status_code == 404


def test_followers_and_following_lists(client, author, other_author, editor):
    client.post(f"/users/{author.id}/follow", headers=auth_headers(other_author))
    client.post(f"/users/{author.id}/follow", headers=auth_headers(editor))

    followers = client.get(f"/users/{author.username}/followers").json()
    assert followers["total"] == 2
    assert {u["username"] for u in followers["items"]} == {other_author.username, editor.username}

    following = client.get(f"/users/{editor.id}/following").json()
    assert [u["username"] for u in following["items"]] == [author.username]


def test_public_profile_counters(client, published_post, author):
    client.get(f"/posts/{published_post['slug']}")
    profile = client.get(f"/users/{author.id}")
    assert profile.status_code == 200
    body = profile.json()
    assert body["username"] == author.username
    assert body["post_count"] == 1
    assert body["total_views"] == 1
    assert "email" not in body

    posts = client.get(f"/users/{author.username}/posts").json()
    assert [p["id"] for p in posts["items"]] == [published_post["id"]]


def test_unknown_profile_is_404(client):
    assert client.get("/users/nobody").status_code == 404


# ============================================================================
# LIKES
# ============================================================================


def test_like_toggles(client, published_post, other_author):
    url = f"/posts/{published_post['id']}/like"
    first = client.post(url, headers=auth_headers(other_author))
    assert first.json() == {"liked": True, "like_count": 1}

    second = client.post(url, headers=auth_headers(other_author))
    assert second.json() == {"liked": False, "like_count": 0}


def test_like_shows_up_in_listing(client, published_post, other_author):
    client.post(f"/posts/{published_post['id']}/like", headers=auth_headers(other_author))
    items = client.get("/posts", headers=auth_headers(other_author)).json()["items"]
    assert items[0]["like_count"] == 1
    assert items[0]["user_liked"] is True

    anonymous = client.get("/posts").json()["items"]
    assert anonymous[0]["user_liked"] is False


def test_like_hidden_post_is_404(client, create_post, author, other_author):
    post = create_post(author)
    response = client.post(f"/posts/{post['id']}/like", headers=auth_headers(other_author))
    assert response.status_code == 404


# ============================================================================
# BOOKMARKS
# ============================================================================


def test_bookmarks(client, published_post, other_author):
    headers = auth_headers(other_author)
    added = client.post("/bookmarks", json={"post_id": published_post["id"]}, headers=headers)
    assert added.status_code == 201

    duplicate = client.post("/bookmarks", json={"post_id": published_post["id"]}, headers=headers)
    assert duplicate.status_code == 409

    listed = client.get("/bookmarks", headers=headers).json()
    assert [p["id"] for p in listed["items"]] == [published_post["id"]]

    detail = client.get(f"/posts/{published_post['slug']}", headers=headers).json()
    assert detail["is_bookmarked"] is True

    removed = client.delete(f"/bookmarks/{published_post['id']}", headers=headers)
    assert removed.status_code == 200
    assert client.get("/bookmarks", headers=headers).json()["total"] == 0

    # Removing again is a no-op
    assert client.delete(f"/bookmarks/{published_post['id']}", headers=headers).status_code == 200


# ============================================================================
# COMMENTS
# ============================================================================


def test_comment_notifies_author(client, db, published_post, author, other_author):
    response = client.post(
        "/comments",
        json={"post_id": published_post["id"], "content": "  Great read  "},
        headers=auth_headers(other_author),
    )
    assert response.status_code == 201
    assert response.json()["content"] == "Great read"
    assert response.json()["author"]["username"] == other_author.username
    assert _notification_count(db, author, "comment") == 1


def test_own_comment_does_not_notify(client, db, published_post, author):
    client.post(
        "/comments",
        json={"post_id": published_post["id"], "content": "Author here"},
        headers=auth_headers(author),
    )
    assert _notification_count(db, author, "comment") == 0


def test_blank_comment_is_400(client, published_post, other_author):
    response = client.post(
        "/comments",
        json={"post_id": published_post["id"], "content": "   "},
        headers=auth_headers(other_author),
    )
    assert response.status_code == 400


def test_comment_on_unpublished_post_is_404(client, create_post, author, other_author):
    post = create_post(author)
    response = client.post(
        "/comments", json={"post_id": post["id"], "content": "Hi"}, headers=auth_headers(other_author)
    )
    assert response.status_code == 404


def test_reply_must_be_on_same_post(client, create_post, editor, other_author):
    first = create_post(editor, title="First", status="published")
    second = create_post(editor, title="Second", status="published")
    headers = auth_headers(other_author)
    parent = client.post("/comments", json={"post_id": first["id"], "content": "Root"}, headers=headers).json()

    ok = client.post(
        "/comments",
        json={"post_id": first["id"], "content": "Reply", "parent_id": parent["id"]},
        headers=headers,
    )
    assert ok.status_code == 201
    assert ok.json()["parent_id"] == parent["id"]

    bad = client.post(
        "/comments",
        json={"post_id": second["id"], "content": "Wrong", "parent_id": parent["id"]},
        headers=headers,
    )
    assert bad.status_code == 400


def test_list_comments_in_order(client, published_post, other_author, editor):
    for user, text in ((other_author, "first"), (editor, "second"), (other_author, "third")):
        client.post(
            "/comments",
            json={"post_id": published_post["id"], "content": text},
            headers=auth_headers(user),
        )
    response = client.get("/comments", params={"post_id": published_post["id"]})
    assert response.status_code == 200
    assert [c["content"] for c in response.json()["items"]] == ["first", "second", "third"]


def test_delete_comment_removes_replies(client, db, published_post, other_author, editor):
    headers = auth_headers(other_author)
    parent = client.post(
        "/comments", json={"post_id": published_post["id"], "content": "Root"}, headers=headers
    ).json()
    client.post(
        "/comments",
        json={"post_id": published_post["id"], "content": "Child", "parent_id": parent["id"]},
        headers=auth_headers(editor),
    )

    assert client.delete(f"/comments/{parent['id']}", headers=auth_headers(editor)).status_code == 200
    assert db.query(models.Comment).count() == 0


def test_delete_comment_by_stranger_is_403(client, published_post, other_author, subscriber):
    comment = client.post(
        "/comments",
        json={"post_id": published_post["id"], "content": "Mine"},
        headers=auth_headers(other_author),
    ).json()
    response = client.delete(f"/comments/{comment['id']}", headers=auth_headers(subscriber))
    assert response.status_code == 403
