"""Public configuration route — folder and sheet ids, never secrets."""

from fastapi import APIRouter, Depends

from invite_api.config import Settings
from invite_api.dependencies import get_settings, require_api_key
from invite_api.schemas.config import ConfigResponse

router = APIRouter(tags=["config"], dependencies=[Depends(require_api_key)])


@router.api_route("/get-config", methods=["GET", "POST"], response_model=ConfigResponse)
async def get_config(settings: Settings = Depends(get_settings)):
    return ConfigResponse(
        guest_sheet_id=settings.GUEST_SHEET_ID,
        upload_folder_id=settings.UPLOAD_FOLDER_ID,
        gallery_folder_id=settings.GALLERY_FOLDER_ID,
    )
