"""Gallery route — lists the images in the gallery folder."""

from fastapi import APIRouter, Depends

from invite_api.config import Settings
from invite_api.dependencies import get_broker, get_drive_service, get_settings, require_api_key
from invite_api.exceptions import BadRequestError
from invite_api.schemas.gallery import GalleryImage, GalleryRequest, GalleryResponse
from invite_api.services.credential_broker import DRIVE_READONLY_SCOPE, CredentialBroker
from invite_api.services.drive_service import DriveService, StorageObject

router = APIRouter(tags=["gallery"], dependencies=[Depends(require_api_key)])


@router.post("/get-gallery", response_model=GalleryResponse)
async def get_gallery(
    body: GalleryRequest | None = None,
    settings: Settings = Depends(get_settings),
    broker: CredentialBroker = Depends(get_broker),
    drive: DriveService = Depends(get_drive_service),
):
    folder_id = (body.folder_id if body else None) or settings.GALLERY_FOLDER_ID
    if not folder_id:
        raise BadRequestError("folderId is required")

    token = await broker.get_access_token(DRIVE_READONLY_SCOPE)
    files = await drive.list_images(token.value, folder_id)

    images = []
    for index, file in enumerate(files):
        obj = StorageObject(id=file["id"], name=file.get("name") or "")
        images.append(GalleryImage(
            id=obj.id,
            name=obj.name,
            url=obj.thumbnail_url,
            full_url=file.get("webContentLink") or obj.view_url,
            alt=obj.name or f"Gallery image {index + 1}",
        ))
    return GalleryResponse(images=images)
