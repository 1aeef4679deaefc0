"""Drive service — multipart/related uploads, public sharing and folder listing."""

import json
import logging
import secrets
from dataclasses import dataclass

import httpx

from invite_api.config import Settings
from invite_api.exceptions import StorageApiError

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"
ERROR_SNIPPET_CHARS = 1200


@dataclass(frozen=True)
class StorageObject:
    id: str
    name: str

    @property
    def view_url(self) -> str:
        return f"https://drive.google.com/uc?export=view&id={self.id}"

    @property
    def thumbnail_url(self) -> str:
        return f"https://drive.google.com/thumbnail?id={self.id}&sz=w800"


def build_multipart_related(
    metadata: dict,
    data: bytes,
    mime_type: str | None,
    boundary: str | None = None,
) -> tuple[bytes, str]:
    """
    Assemble a two-part multipart/related body: JSON metadata, then the file.

    The binary part is written byte-for-byte; nothing is re-encoded.

    Returns:
        (body, content_type) where content_type carries the boundary.
    """
    boundary = boundary or f"invite{secrets.token_hex(16)}"
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type or OCTET_STREAM}\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + data + tail, f"multipart/related; boundary={boundary}"


def _snippet(text: str) -> str:
    return text if len(text) <= ERROR_SNIPPET_CHARS else text[:ERROR_SNIPPET_CHARS] + "…"


class DriveService:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.STORAGE_TIMEOUT_SECONDS, transport=self._transport)

    async def upload_file(
        self,
        token: str,
        folder_id: str,
        filename: str,
        mime_type: str | None,
        data: bytes,
    ) -> StorageObject:
        """
        Create ``filename`` inside ``folder_id`` in a single request.

        Raises:
            StorageApiError: on a transport failure or any non-2xx response.
        """
        body, content_type = build_multipart_related(
            {"name": filename, "parents": [folder_id]}, data, mime_type,
        )
        logger.info("Uploading %s (%d bytes) to folder %s", filename, len(data), folder_id)

        try:
            async with self._client() as client:
                response = await client.post(
                    self.settings.DRIVE_UPLOAD_URL,
                    params={"uploadType": "multipart"},
                    content=body,
                    headers={"Authorization": f"Bearer {token}", "Content-Type": content_type},
                )
        except httpx.HTTPError as e:
            raise StorageApiError(f"Drive upload failed: {type(e).__name__}") from e

        if not response.is_success:
            text = response.text
            logger.error("Drive upload error (HTTP %d): %s", response.status_code, _snippet(text))
            raise StorageApiError(
                f"Drive upload failed ({response.status_code}): {_snippet(text)}",
                upstream_status=response.status_code,
                response_body=text,
            )

        try:
            result = response.json()
            file_id = result["id"]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageApiError(
                "Drive upload returned no file id",
                upstream_status=response.status_code,
                response_body=response.text,
            ) from e

        logger.info("File uploaded: %s", file_id)
        return StorageObject(id=file_id, name=result.get("name") or filename)

    async def make_public(self, token: str, file_id: str) -> bool:
        """Grant anyone-with-the-link read access. Failure is logged, never raised."""
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.settings.DRIVE_FILES_URL}/{file_id}/permissions",
                    json={"role": "reader", "type": "anyone"},
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.warning("Permission setting error for %s: %s", file_id, type(e).__name__)
            return False

        if not response.is_success:
            logger.warning("Could not set public permission on %s: %s", file_id, _snippet(response.text))
            return False
        return True

    async def list_images(self, token: str, folder_id: str) -> list[dict]:
        """Return the non-trashed images directly inside ``folder_id``."""
        query = f"'{folder_id}' in parents and mimeType contains 'image/' and trashed=false"
        fields = "files(id,name,mimeType,thumbnailLink,webViewLink,webContentLink)"
        try:
            async with self._client() as client:
                response = await client.get(
                    self.settings.DRIVE_FILES_URL,
                    params={"q": query, "fields": fields},
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            raise StorageApiError(f"Google Drive API error: {type(e).__name__}") from e

        if not response.is_success:
            logger.error("Google Drive API error (HTTP %d): %s", response.status_code, _snippet(response.text))
            raise StorageApiError(
                f"Google Drive API error: {response.status_code}",
                upstream_status=response.status_code,
                response_body=response.text,
            )

        files = response.json().get("files") or []
        logger.info("Found %d images in folder %s", len(files), folder_id)
        return files
