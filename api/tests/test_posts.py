from __future__ import annotations

import warnings

from sqlalchemy.exc import SAWarning
from sqlalchemy.orm import Session

from conftest import auth_headers
from inkwell import models, schemas
from inkwell.container import build_services


def test_create_post_defaults_to_draft(create_post, author):
    post = create_post(author, title="My First Post", content="one two three")
    assert post["status"] == "draft"
    assert post["slug"] == "my-first-post"
    assert post["published_at"] is None
    assert post["read_time"] == 1
    assert post["author"]["username"] == author.username


def test_subscriber_can_create_post(create_post, subscriber):
    post = create_post(subscriber, title="From A Reader")
    assert post["status"] == "draft"


def test_create_requires_auth(client):
    response = client.post("/posts", json={"title": "Nope"})
    assert response.status_code == 401


def test_blank_title_is_400(client, author):
    response = client.post("/posts", json={"title": "   "}, headers=auth_headers(author))
    assert response.status_code == 400


def test_author_publish_is_downgraded_to_pending(create_post, author):
    post = create_post(author, status="published")
    assert post["status"] == "pending"
    assert post["published_at"] is None


def test_editor_can_publish_directly(create_post, editor):
    post = create_post(editor, status="published")
    assert post["status"] == "published"
    assert post["published_at"] is not None


def test_create_rejected_is_invalid(client, author):
    response = client.post(
        "/posts", json={"title": "Bad", "status": "rejected"}, headers=auth_headers(author)
    )
    assert response.status_code == 400


def test_author_cannot_feature(client, author):
    response = client.post(
        "/posts", json={"title": "Shiny", "is_featured": True}, headers=auth_headers(author)
    )
    assert response.status_code == 403


def test_categories_and_tags_linked(create_post, author, category):
    post = create_post(author, categories=[category.id], tags=["Python", "FastAPI", "python"])
    assert [c["slug"] for c in post["categories"]] == ["tech-news"]
    assert sorted(t["slug"] for t in post["tags"]) == ["fastapi", "python"]


def test_unknown_category_is_400(client, author):
    response = client.post(
        "/posts", json={"title": "Lost", "categories": [999]}, headers=auth_headers(author)
    )
    assert response.status_code == 400


def test_read_time_ignores_markup(create_post, author):
    content = "<p>" + " ".join(["word"] * 401) + "</p>"
    post = create_post(author, content=content)
    assert post["read_time"] == 3


def test_update_only_changes_given_fields(client, create_post, author, category):
    post = create_post(author, title="Original", excerpt="Keep me", categories=[category.id], tags=["a1"])
    response = client.put(
        f"/posts/{post['id']}", json={"content": "fresh content"}, headers=auth_headers(author)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Original"
    assert body["excerpt"] == "Keep me"
    assert body["content"] == "fresh content"
    assert [c["id"] for c in body["categories"]] == [category.id]
    assert [t["slug"] for t in body["tags"]] == ["a1"]


def test_update_with_empty_lists_clears_links(client, create_post, author, category):
    post = create_post(author, categories=[category.id], tags=["x1"])
    response = client.put(
        f"/posts/{post['id']}", json={"categories": [], "tags": []}, headers=auth_headers(author)
    )
    assert response.status_code == 200
    assert response.json()["categories"] == []
    assert response.json()["tags"] == []


def test_update_title_regenerates_slug(client, create_post, author):
    create_post(author, title="Taken Title")
    post = create_post(author, title="Something Else")
    response = client.put(
        f"/posts/{post['id']}", json={"title": "Taken Title"}, headers=auth_headers(author)
    )
    assert response.status_code == 200
    assert response.json()["slug"] == "taken-title-1"


def test_update_same_title_keeps_slug(client, create_post, author):
    post = create_post(author, title="Stable")
    response = client.put(
        f"/posts/{post['id']}", json={"title": "Stable"}, headers=auth_headers(author)
    )
    assert response.json()["slug"] == "stable"


def test_update_by_non_owner_is_403(client, create_post, author, other_author):
    post = create_post(author)
    response = client.put(
        f"/posts/{post['id']}", json={"title": "Hijack"}, headers=auth_headers(other_author)
    )
    assert response.status_code == 403


def test_editor_can_update_any_post(client, create_post, author, editor):
    post = create_post(author)
    response = client.put(
        f"/posts/{post['id']}", json={"is_featured": True}, headers=auth_headers(editor)
    )
    assert response.status_code == 200
    assert response.json()["is_featured"] is True


def test_update_to_rejected_is_invalid(client, create_post, author):
    post = create_post(author)
    response = client.put(
        f"/posts/{post['id']}", json={"status": "rejected"}, headers=auth_headers(author)
    )
    assert response.status_code == 400


def test_author_update_published_is_downgraded(client, create_post, author):
    post = create_post(author)
    response = client.put(
        f"/posts/{post['id']}", json={"status": "published"}, headers=auth_headers(author)
    )
    assert response.json()["status"] == "pending"


def test_published_at_is_kept_on_later_updates(client, published_post, author):
    first = published_post["published_at"]
    assert first is not None

    response = client.put(
        f"/posts/{published_post['id']}",
        json={"content": "edited after publishing"},
        headers=auth_headers(author),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "published"
    assert response.json()["published_at"] == first


def test_get_by_slug_counts_views(client, published_post):
    first = client.get(f"/posts/{published_post['slug']}")
    assert first.status_code == 200
    assert first.json()["views"] == 1

    second = client.get(f"/posts/{published_post['slug']}")
    assert second.json()["views"] == 2


def test_unpublished_post_visibility(client, create_post, author, other_author, editor):
    post = create_post(author, title="Secret Draft")
    slug = post["slug"]

    assert client.get(f"/posts/{slug}").status_code == 404
    assert client.get(f"/posts/{slug}", headers=auth_headers(other_author)).status_code == 404
    assert client.get(f"/posts/{slug}", headers=auth_headers(author)).status_code == 200
    assert client.get(f"/posts/{slug}", headers=auth_headers(editor)).status_code == 200


def test_unknown_slug_is_404(client):
    response = client.get("/posts/no-such-post")
    assert response.status_code == 404
    assert response.json() == {"error": "Post not found"}


def test_list_only_published(client, create_post, published_post, author):
    create_post(author, title="Still Drafting")
    response = client.get("/posts")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert [p["slug"] for p in body["items"]] == [published_post["slug"]]


def test_list_filters(client, create_post, editor, category):
    create_post(editor, title="Tagged One", status="published", tags=["rust"], categories=[category.id])
    create_post(editor, title="Plain Two", status="published", is_featured=True)

    by_tag = client.get("/posts", params={"tag": "rust"}).json()
    assert [p["title"] for p in by_tag["items"]] == ["Tagged One"]

    by_category = client.get("/posts", params={"category": "tech-news"}).json()
    assert [p["title"] for p in by_category["items"]] == ["Tagged One"]

    featured = client.get("/posts", params={"featured": "true"}).json()
    assert [p["title"] for p in featured["items"]] == ["Plain Two"]

    search = client.get("/posts", params={"search": "plain"}).json()
    assert [p["title"] for p in search["items"]] == ["Plain Two"]

    by_author = client.get("/posts", params={"author": editor.username}).json()
    assert by_author["total"] == 2


def test_search_is_parameterized(client, create_post, editor):
    create_post(editor, title="Quotes", status="published")
    response = client.get("/posts", params={"search": "'; DROP TABLE posts; --"})
    assert response.status_code == 200
    assert response.json()["total"] == 0
    assert client.get("/posts").json()["total"] == 1


def test_trending(client, create_post, editor):
    hot = create_post(editor, title="Hot", status="published")
    create_post(editor, title="Cold", status="published")
    for _ in range(3):
        client.get(f"/posts/{hot['slug']}")

    response = client.get("/posts/trending")
    assert response.status_code == 200
    assert response.json()[0]["slug"] == "hot"


def test_mine_lists_all_statuses(client, create_post, author, other_author):
    create_post(author, title="Draft")
    create_post(author, title="Pending", status="pending")
    create_post(other_author, title="Not Mine")

    response = client.get("/posts/mine", headers=auth_headers(author))
    assert response.json()["total"] == 2

    pending = client.get("/posts/mine", params={"status": "pending"}, headers=auth_headers(author))
    assert [p["title"] for p in pending.json()["items"]] == ["Pending"]


def test_delete_post_cascades(client, db: Session, published_post, author, other_author, category):
    post_id = published_post["id"]
    client.put(
        f"/posts/{post_id}",
        json={"categories": [category.id], "tags": ["gone"]},
        headers=auth_headers(author),
    )
    client.post(f"/posts/{post_id}/like", headers=auth_headers(other_author))
    client.post("/bookmarks", json={"post_id": post_id}, headers=auth_headers(other_author))
    client.post("/comments", json={"post_id": post_id, "content": "Nice"}, headers=auth_headers(other_author))

    response = client.delete(f"/posts/{post_id}", headers=auth_headers(author))
    assert response.status_code == 200

    assert db.query(models.Post).filter(models.Post.id == post_id).count() == 0
    assert db.query(models.PostLike).filter(models.PostLike.post_id == post_id).count() == 0
    assert db.query(models.Bookmark).filter(models.Bookmark.post_id == post_id).count() == 0
    assert db.query(models.Comment).filter(models.Comment.post_id == post_id).count() == 0
    assert db.execute(
        models.post_categories.select().where(models.post_categories.c.post_id == post_id)
    ).first() is None
    assert db.execute(
        models.post_tags.select().where(models.post_tags.c.post_id == post_id)
    ).first() is None


def test_delete_by_non_owner_is_403(client, create_post, author, other_author):
    post = create_post(author)
    response = client.delete(f"/posts/{post['id']}", headers=auth_headers(other_author))
    assert response.status_code == 403


def test_create_with_category_and_new_tag_is_clean(db, author, category):
    posts = build_services().posts
    payload = schemas.PostCreate(title="Linked", categories=[category.id], tags=["Brand New"])

    with warnings.catch_warnings():
        warnings.simplefilter("error", SAWarning)
        post = posts.create(db, author, payload)

    assert [c.slug for c in post.categories] == ["tech-news"]
    assert [t.slug for t in post.tags] == ["brand-new"]
    assert db.query(models.Tag).filter(models.Tag.slug == "brand-new").count() == 1
