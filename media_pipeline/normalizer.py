"""Turn upload-photo responses of any shape into an UploadResult."""

import json
import logging
from dataclasses import dataclass

from .errors import Failure, ServerResponseError

logger = logging.getLogger(__name__)

RETRIABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
MAX_RAW_ERROR_CHARS = 500


@dataclass(frozen=True)
class UploadResult:
    ok: bool
    remote_id: str | None = None
    remote_name: str | None = None
    failure: Failure | None = None

    @classmethod
    def success(cls, remote_id: str, remote_name: str | None) -> "UploadResult":
        return cls(ok=True, remote_id=remote_id, remote_name=remote_name)

    @classmethod
    def failed(cls, failure: Failure) -> "UploadResult":
        return cls(ok=False, failure=failure)


def _is_2xx(status_code: int) -> bool:
    return 200 <= status_code < 300


def _truncate(text: str) -> str:
    text = text.strip()
    return text if len(text) <= MAX_RAW_ERROR_CHARS else text[:MAX_RAW_ERROR_CHARS] + "…"


def parse_upload_body(status_code: int, text: str) -> tuple[str, str | None]:
    """
    Validate a response body and return (id, name).

    Raises:
        ServerResponseError: for any body that does not prove the upload succeeded.
    """
    retriable = status_code in RETRIABLE_STATUS_CODES

    try:
        data = json.loads(text) if text else None
    except ValueError:
        if not _is_2xx(status_code):
            raise ServerResponseError(
                _truncate(text) or f"Upload failed: HTTP {status_code}",
                status_code=status_code,
                retriable=retriable,
            )
        raise ServerResponseError(
            "Unexpected response from upload service",
            status_code=status_code,
            code="unexpected_response",
        )

    if not isinstance(data, dict):
        if not _is_2xx(status_code):
            raise ServerResponseError(
                f"Upload failed: HTTP {status_code}", status_code=status_code, retriable=retriable
            )
        raise ServerResponseError(
            "Unexpected response from upload service",
            status_code=status_code,
            code="unexpected_response",
        )

    remote_id = data.get("id")
    if _is_2xx(status_code) and data.get("success") and isinstance(remote_id, str) and remote_id:
        name = data.get("name")
        return remote_id, name if isinstance(name, str) else None

    server_error = data.get("error")
    if isinstance(server_error, str) and server_error.strip():
        message = server_error.strip()
    elif _is_2xx(status_code) and data.get("success"):
        message = "Upload service did not return a file id"
    else:
        message = f"Upload failed: HTTP {status_code}"

    code = data.get("code") if isinstance(data.get("code"), str) else None
    if code == "credential_error":
        message = f"Upload service is misconfigured: {message}"
    raise ServerResponseError(message, status_code=status_code, code=code, retriable=retriable)


def normalize_upload_response(status_code: int, text: str) -> UploadResult:
    try:
        remote_id, remote_name = parse_upload_body(status_code, text)
    except ServerResponseError as e:
        logger.debug("Upload rejected (HTTP %s): %s", status_code, e.message)
        return UploadResult.failed(e.failure())
    return UploadResult.success(remote_id, remote_name)
