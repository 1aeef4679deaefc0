"""
Diagnostic routes for the hosts.

preflight mints one service-account token and checks a sheet read, a sheet
write to a spare cell and a gallery listing. test-token checks the OAuth
refresh-token exchange. Neither returns any secret or token value.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from invite_api.config import Settings
from invite_api.dependencies import (
    get_broker,
    get_drive_service,
    get_settings,
    get_sheets_service,
    require_api_key,
)
from invite_api.exceptions import BadRequestError, CredentialError, StorageApiError
from invite_api.schemas.diagnostics import (
    CheckResult,
    PreflightRequest,
    PreflightResponse,
    SecretsStatus,
    TokenCheckResponse,
)
from invite_api.services.credential_broker import (
    DRIVE_READONLY_SCOPE,
    SHEETS_SCOPE,
    CredentialBroker,
    load_user_credential,
)
from invite_api.services.drive_service import DriveService
from invite_api.services.sheets_service import SheetsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diagnostics"], dependencies=[Depends(require_api_key)])

PREFLIGHT_READ_RANGE = "A1:D5"
PREFLIGHT_WRITE_CELL = "Z1"


def _failed(e: StorageApiError) -> CheckResult:
    return CheckResult(ok=False, upstream_status=e.upstream_status, detail=e.detail)


@router.post("/preflight", response_model=PreflightResponse)
async def preflight(
    body: PreflightRequest | None = None,
    settings: Settings = Depends(get_settings),
    broker: CredentialBroker = Depends(get_broker),
    sheets: SheetsService = Depends(get_sheets_service),
    drive: DriveService = Depends(get_drive_service),
):
    sheet_id = (body.sheet_id if body else None) or settings.GUEST_SHEET_ID
    folder_id = (body.gallery_folder_id if body else None) or settings.GALLERY_FOLDER_ID
    if not sheet_id or not folder_id:
        raise BadRequestError("sheetId and galleryFolderId are required")

    # CredentialError propagates: without a token none of the checks can run
    token = await broker.get_access_token(f"{SHEETS_SCOPE} {DRIVE_READONLY_SCOPE}")
    sheet_name = settings.RSVP_SHEET_NAME

    try:
        rows = await sheets.read_range(token.value, sheet_id, f"{sheet_name}!{PREFLIGHT_READ_RANGE}")
        sheet = CheckResult(ok=True, detail=f"{len(rows)} rows read")
    except StorageApiError as e:
        sheet = _failed(e)

    cell = f"{sheet_name}!{PREFLIGHT_WRITE_CELL}"
    stamp = datetime.now(timezone.utc).isoformat()
    try:
        await sheets.write_ranges(token.value, sheet_id, [{"range": cell, "values": [[f"preflight {stamp}"]]}])
        write_test = CheckResult(ok=True, detail=f"wrote {cell}")
    except StorageApiError as e:
        write_test = _failed(e)

    try:
        files = await drive.list_images(token.value, folder_id)
        drive_check = CheckResult(ok=True, detail=f"{len(files)} images listed")
    except StorageApiError as e:
        drive_check = _failed(e)

    logger.info(
        "Preflight finished: sheet=%s write=%s drive=%s",
        sheet.ok, write_test.ok, drive_check.ok,
    )
    return PreflightResponse(ok=True, sheet=sheet, write_test=write_test, drive=drive_check)


def _long_enough(value: str) -> bool:
    return len(value.strip()) > 10


@router.post("/test-token", response_model=TokenCheckResponse, response_model_exclude_none=True)
async def test_token(
    settings: Settings = Depends(get_settings),
    broker: CredentialBroker = Depends(get_broker),
):
    secrets_status = SecretsStatus(
        has_client_id=_long_enough(settings.GOOGLE_OAUTH_CLIENT_ID),
        has_client_secret=_long_enough(settings.GOOGLE_OAUTH_CLIENT_SECRET),
        has_refresh_token=_long_enough(settings.GOOGLE_OAUTH_REFRESH_TOKEN),
    )
    credential = load_user_credential(settings)
    if credential is None:
        return TokenCheckResponse(status="FAIL", reason="Missing OAuth credentials", secrets_status=secrets_status)

    try:
        token = await broker.refresh_user_token(credential, DRIVE_READONLY_SCOPE)
    except CredentialError as e:
        return TokenCheckResponse(
            status="FAIL",
            reason=f"Token refresh failed: {e.detail}",
            http_status=e.upstream_status,
            secrets_status=secrets_status,
        )

    return TokenCheckResponse(
        status="OK",
        message="OAuth token refresh successful",
        has_access_token=bool(token.value),
        token_type=token.token_type,
        expires_in=round(token.expires_at - time.time()),
        secrets_status=secrets_status,
    )
