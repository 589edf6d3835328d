"""Register, write, moderate and read a post through the public API only."""

from __future__ import annotations

from conftest import auth_headers


def test_author_to_published_post(client, editor):
    registered = client.post(
        "/auth/register",
        json={
            "username": "writer",
            "email": "writer@example.com",
            "password": "a-long-password",
            "display_name": "The Writer",
        },
    )
    assert registered.status_code == 201
    author_headers = {"Authorization": f"Bearer {registered.json()['token']}"}
    assert registered.json()["user"]["role"] == "author"

    created = client.post(
        "/posts",
        json={"title": "Café Culture", "content": "<p>Coffee and code</p>", "status": "published"},
        headers=author_headers,
    )
    assert created.status_code == 201
    post = created.json()
    assert post["status"] == "pending"
    assert post["slug"] == "cafe-culture"

    # Not public yet
    assert client.get(f"/posts/{post['slug']}").status_code == 404

    approved = client.put(f"/admin/posts/{post['id']}/approve", headers=auth_headers(editor))
    assert approved.status_code == 200
    assert approved.json()["status"] == "published"

    notifications = client.get("/notifications", headers=author_headers).json()
    assert notifications["unread_count"] == 1
    assert notifications["items"][0]["type"] == "post_approved"
    assert notifications["items"][0]["link"] == "/post/cafe-culture"

    first = client.get(f"/posts/{post['slug']}")
    assert first.status_code == 200
    assert first.json()["published_at"] is not None
    assert first.json()["views"] == 1

    second = client.get(f"/posts/{post['slug']}")
    assert second.json()["views"] == 2
    assert second.json()["published_at"] == first.json()["published_at"]

    listed = client.get("/posts").json()
    assert [p["slug"] for p in listed["items"]] == ["cafe-culture"]
    assert listed["items"][0]["author"]["display_name"] == "The Writer"
