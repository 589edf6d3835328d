from __future__ import annotations

import pytest

from conftest import auth_headers
from inkwell.media_storage import MediaStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(client, user, name="pic.png", content=PNG_BYTES, mime="image/png"):
    return client.post(
        "/media/upload",
        files={"file": (name, content, mime)},
        headers=auth_headers(user),
    )


def test_upload_list_and_serve(client, author):
    response = _upload(client, author)
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["mime_type"] == "image/png"
    assert body["size"] == len(PNG_BYTES)
    assert body["original_name"] == "pic.png"
    assert body["url"].startswith(f"/uploads/{author.id}/")
    assert body["url"].endswith(".png")

    served = client.get(body["url"])
    assert served.status_code == 200
    assert served.content == PNG_BYTES

    mine = client.get("/media/mine", headers=auth_headers(author)).json()
    assert [m["id"] for m in mine] == [body["id"]]


def test_upload_rejects_disallowed_type(client, author):
    response = _upload(client, author, name="script.exe", content=b"MZ", mime="application/x-msdownload")
    assert response.status_code == 400


def test_upload_rejects_mismatched_extension(client, author):
    response = _upload(client, author, name="pic.html", mime="image/png")
    assert response.status_code == 400


def test_upload_rejects_empty_file(client, author):
    assert _upload(client, author, content=b"").status_code == 400


def test_upload_requires_auth(client):
    response = client.post("/media/upload", files={"file": ("pic.png", PNG_BYTES, "image/png")})
    assert response.status_code == 401


def test_delete_owner_or_admin(client, author, other_author, admin):
    first = _upload(client, author).json()
    second = _upload(client, author).json()

    assert client.delete(f"/media/{first['id']}", headers=auth_headers(other_author)).status_code == 403
    assert client.delete(f"/media/{first['id']}", headers=auth_headers(author)).status_code == 200
    assert client.get(first["url"]).status_code == 404

    assert client.delete(f"/media/{second['id']}", headers=auth_headers(admin)).status_code == 200
    assert client.get("/media/mine", headers=auth_headers(author)).json() == []


def test_delete_with_missing_file_still_removes_row(client, author):
    media = _upload(client, author).json()
    storage = client.app.state.services.media.storage
    assert storage.try_delete(author.id, media["filename"]) is True

    assert client.delete(f"/media/{media['id']}", headers=auth_headers(author)).status_code == 200
    assert client.get("/media/mine", headers=auth_headers(author)).json() == []


def test_storage_size_cap(tmp_path):
    storage = MediaStorage(root=tmp_path, max_bytes=10)
    with pytest.raises(ValueError):
        storage.validate("big.png", "image/png", 11)
    assert storage.validate("small.png", "image/png", 10) == ".png"
    assert storage.validate(None, "application/pdf", 5) == ".pdf"
