"""Health check endpoints."""

from fastapi import APIRouter, Depends

from invite_api.config import Settings
from invite_api.dependencies import get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "serviceAccountConfigured": settings.service_account_configured,
        "oauthUserConfigured": settings.oauth_user_configured,
        "uploadFolderConfigured": bool(settings.UPLOAD_FOLDER_ID),
    }
