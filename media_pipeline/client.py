"""
HTTP client for the invitation-site functions (upload-photo, get-config).

This is the network boundary of the client: transport exceptions and raw
responses are converted into UploadResult / Failure values here and nowhere else.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from .config import Config
from .errors import TransportError
from .models import Payload
from .normalizer import UploadResult, normalize_upload_response

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/functions/v1/upload-photo"
CONFIG_PATH = "/functions/v1/get-config"


@dataclass(frozen=True)
class AppConfig:
    guest_sheet_id: str = ""
    upload_folder_id: str = ""
    gallery_folder_id: str = ""
    error: str | None = None


class FunctionsClient:
    """Thin async wrapper around the functions endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or Config.FUNCTIONS_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else Config.FUNCTIONS_API_KEY
        self._transport = transport
        self._folder_id: str | None = None

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=timeout,
            transport=self._transport,
        )

    async def _post_upload(self, payload: Payload, folder_id: str, timeout: float) -> httpx.Response:
        files = {"file": (payload.filename, payload.data, payload.mime_type or "application/octet-stream")}
        async with self._client(timeout) as client:
            return await client.post(UPLOAD_PATH, files=files, data={"folderId": folder_id})

    async def upload(
        self,
        payload: Payload,
        folder_id: str,
        timeout: float | None = None,
    ) -> UploadResult:
        """Send one payload to upload-photo. Never raises for network or server failures."""
        timeout = timeout if timeout is not None else Config.UPLOAD_TIMEOUT_SECONDS
        try:
            response = await asyncio.wait_for(self._post_upload(payload, folder_id, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            error = TransportError(
                f"Upload of {payload.filename} timed out after {timeout:.0f}s", code="timeout"
            )
            logger.warning("%s", error.message)
            return UploadResult.failed(error.failure())
        except (httpx.HTTPError, OSError) as e:
            error = TransportError(f"Network error while uploading {payload.filename}: {e}")
            logger.warning("%s", error.message)
            return UploadResult.failed(error.failure())

        # Body is read as text first; it may be empty or not JSON at all
        return normalize_upload_response(response.status_code, response.text)

    async def fetch_config(self) -> AppConfig:
        """Load folder and sheet ids. Failures yield an empty config with an error message."""
        try:
            async with self._client(Config.CONFIG_TIMEOUT_SECONDS) as client:
                response = await client.post(CONFIG_PATH, json={})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                message = "Configuration function not found. Deploy the get-config function."
            elif status in (401, 403):
                message = "Configuration access denied. Check the functions API key."
            else:
                message = f"Failed to load configuration (HTTP {status})."
            logger.error("%s", message)
            return AppConfig(error=message)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch config: %s", e)
            return AppConfig(error="Failed to load configuration. Some features may not work.")

        if not isinstance(data, dict):
            return AppConfig(error="Configuration response was not an object.")

        return AppConfig(
            guest_sheet_id=data.get("guestSheetId") or "",
            upload_folder_id=data.get("uploadFolderId") or "",
            gallery_folder_id=data.get("galleryFolderId") or "",
        )

    async def upload_folder_id(self) -> tuple[str | None, str | None]:
        """
        Destination folder for uploads, fetched once and remembered.

        Only a non-empty id is remembered, so a failed or incomplete config is
        asked for again on the next call.

        Returns:
            (folder_id, error) where folder_id is None until one is known.
        """
        if self._folder_id:
            return self._folder_id, None
        app_config = await self.fetch_config()
        if app_config.upload_folder_id:
            self._folder_id = app_config.upload_folder_id
            return self._folder_id, None
        return None, app_config.error or "The upload folder is not configured."
