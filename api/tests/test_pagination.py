from __future__ import annotations

from conftest import auth_headers
from inkwell.pagination import Pagination


def test_clamp_defaults():
    pagination = Pagination.clamp()
    assert (pagination.page, pagination.limit) == (1, 12)


def test_clamp_out_of_range():
    pagination = Pagination.clamp(page=0, limit=1000)
    assert (pagination.page, pagination.limit) == (1, 50)
    assert Pagination.clamp(page=-3, limit=0).limit == 1


def test_clamp_garbage_falls_back():
    pagination = Pagination.clamp(page="abc", limit="xyz")
    assert (pagination.page, pagination.limit) == (1, 12)


def test_offset_and_pages():
    pagination = Pagination.clamp(page=3, limit=10)
    assert pagination.offset == 20
    assert pagination.page_response([], 21)["pages"] == 3
    assert pagination.page_response([], 0)["pages"] == 0


def test_api_clamps_query_params(client, create_post, editor):
    for i in range(3):
        create_post(editor, title=f"Post {i}", status="published")

    response = client.get("/posts", params={"limit": 1000, "page": 0})
    assert response.status_code == 200
    body = response.json()
    assert body["limit"] == 50
    assert body["page"] == 1
    assert body["total"] == 3
    assert body["pages"] == 1


def test_api_pages_through_results(client, create_post, editor):
    for i in range(5):
        create_post(editor, title=f"Post {i}", status="published")

    first = client.get("/posts", params={"limit": 2, "page": 1}).json()
    third = client.get("/posts", params={"limit": 2, "page": 3}).json()
    assert len(first["items"]) == 2
    assert len(third["items"]) == 1
    assert first["pages"] == 3


def test_non_numeric_page_is_not_an_error(client, author):
    response = client.get("/posts/mine", params={"page": "two"}, headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["page"] == 1
