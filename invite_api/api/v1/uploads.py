"""Upload API route — one photo or video into the event Drive folder."""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from invite_api.config import Settings
from invite_api.dependencies import get_broker, get_drive_service, get_settings, require_api_key
from invite_api.exceptions import BadRequestError, PayloadTooLargeError
from invite_api.schemas.upload import Base64UploadRequest, UploadResponse
from invite_api.services.credential_broker import DRIVE_SCOPE, CredentialBroker
from invite_api.services.drive_service import DriveService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"], dependencies=[Depends(require_api_key)])

MIB = 1024 * 1024


async def _read_multipart(request: Request) -> tuple[str, str | None, bytes, str | None]:
    form = await request.form()
    file = form.get("file")
    if not isinstance(file, UploadFile):
        raise BadRequestError("File is required (multipart)")
    folder_id = form.get("folderId")
    data = await file.read()
    return file.filename or "upload", file.content_type, data, folder_id if isinstance(folder_id, str) else None


async def _read_json(request: Request) -> tuple[str, str | None, bytes, str | None]:
    try:
        body = Base64UploadRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise BadRequestError("Expected JSON payload { fileName, base64, mimeType?, folderId? }") from e

    encoded = body.base64
    # Accept data URLs as produced by FileReader.readAsDataURL
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        data = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise BadRequestError("base64 payload could not be decoded") from e
    return body.file_name, body.mime_type, data, body.folder_id


def check_upload_size(size: int, mime_type: str | None, settings: Settings) -> None:
    is_video = (mime_type or "").startswith("video/")
    ceiling_mb = settings.MAX_VIDEO_MB if is_video else settings.MAX_IMAGE_MB
    if size > ceiling_mb * MIB:
        kind = "video" if is_video else "image"
        raise PayloadTooLargeError(f"File is too large ({size / MIB:.1f} MB). Max {kind} size is {ceiling_mb} MB.")


@router.post("/upload-photo", response_model=UploadResponse)
async def upload_photo(
    request: Request,
    settings: Settings = Depends(get_settings),
    broker: CredentialBroker = Depends(get_broker),
    drive: DriveService = Depends(get_drive_service),
):
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        filename, mime_type, data, folder_id = await _read_multipart(request)
    else:
        filename, mime_type, data, folder_id = await _read_json(request)

    folder_id = (folder_id or "").strip() or settings.UPLOAD_FOLDER_ID
    if not folder_id:
        raise BadRequestError("folderId is required")
    if not data:
        raise BadRequestError("File is empty")
    check_upload_size(len(data), mime_type, settings)

    logger.info("Uploading file: %s to folder: %s", filename, folder_id)
    token = await broker.get_access_token(DRIVE_SCOPE, allow_user_credentials=True)
    stored = await drive.upload_file(token.value, folder_id, filename, mime_type, data)

    if settings.MAKE_UPLOADS_PUBLIC:
        await drive.make_public(token.value, stored.id)

    return UploadResponse(id=stored.id, name=stored.name, url=stored.view_url)
