import json

import pytest

from invite_api.exceptions import StorageApiError
from invite_api.services.drive_service import DriveService, build_multipart_related

JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\r\n--not-a-boundary\r\n\x00\xff\xd9"


def test_multipart_related_layout():
    body, content_type = build_multipart_related(
        {"name": "toast.jpg", "parents": ["folder-1"]}, JPEG, "image/jpeg", boundary="b0undary",
    )

    assert content_type == "multipart/related; boundary=b0undary"
    parts = body.split(b"--b0undary")
    assert parts[0] == b""
    assert parts[-1] == b"--\r\n"

    meta_headers, meta_body = parts[1].split(b"\r\n\r\n", 1)
    assert b"Content-Type: application/json; charset=UTF-8" in meta_headers
    assert json.loads(meta_body.strip()) == {"name": "toast.jpg", "parents": ["folder-1"]}

    file_headers, file_body = parts[2].split(b"\r\n\r\n", 1)
    assert b"Content-Type: image/jpeg" in file_headers
    assert file_body == JPEG + b"\r\n"


def test_binary_part_is_not_reencoded():
    data = bytes(range(256)) * 4
    body, _ = build_multipart_related({"name": "raw.bin", "parents": ["f"]}, data, None, boundary="xyz")

    assert data in body
    assert b"Content-Type: application/octet-stream" in body


def test_random_boundary_per_request():
    _, first = build_multipart_related({}, b"a", "image/png")
    _, second = build_multipart_related({}, b"a", "image/png")

    assert first != second


async def test_upload_posts_multipart_with_bearer(test_settings, fake_google):
    drive = DriveService(test_settings, transport=fake_google.transport())

    stored = await drive.upload_file("tok", "folder-1", "toast.jpg", "image/jpeg", JPEG)

    assert stored.id == "drive-file-1"
    assert stored.view_url == "https://drive.google.com/uc?export=view&id=drive-file-1"
    request = fake_google.requests[0]
    assert request.url.params["uploadType"] == "multipart"
    assert request.headers["authorization"] == "Bearer tok"
    assert request.headers["content-type"].startswith("multipart/related; boundary=")
    assert JPEG in request.content


async def test_upload_error_carries_status_and_snippet(test_settings, fake_google):
    fake_google.upload = (403, "storageQuotaExceeded " + "x" * 3000)
    drive = DriveService(test_settings, transport=fake_google.transport())

    with pytest.raises(StorageApiError) as exc_info:
        await drive.upload_file("tok", "folder-1", "a.jpg", "image/jpeg", b"123")

    error = exc_info.value
    assert error.upstream_status == 403
    assert "(403)" in error.detail
    assert "storageQuotaExceeded" in error.detail
    assert len(error.detail) < 1300
    assert not error.retriable


async def test_make_public_failure_is_not_fatal(test_settings, fake_google):
    fake_google.permission = (403, {"error": {"message": "sharing disabled"}})
    drive = DriveService(test_settings, transport=fake_google.transport())

    assert await drive.make_public("tok", "drive-file-1") is False
    body = json.loads(fake_google.requests[0].content)
    assert body == {"role": "reader", "type": "anyone"}


async def test_list_images_queries_folder(test_settings, fake_google):
    drive = DriveService(test_settings, transport=fake_google.transport())

    files = await drive.list_images("tok", "gallery-1")

    assert [f["id"] for f in files] == ["img-1", "img-2"]
    query = fake_google.requests[0].url.params["q"]
    assert "'gallery-1' in parents" in query
    assert "trashed=false" in query
