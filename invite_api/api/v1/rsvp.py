"""RSVP route — records attendance for one or more guests in the sheet."""

import logging

from fastapi import APIRouter, Depends

from invite_api.config import Settings
from invite_api.dependencies import get_broker, get_settings, get_sheets_service, require_api_key
from invite_api.exceptions import BadRequestError
from invite_api.schemas.rsvp import RsvpRequest, RsvpResponse
from invite_api.services.credential_broker import SHEETS_SCOPE, CredentialBroker
from invite_api.services.sheets_service import SheetsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rsvp"], dependencies=[Depends(require_api_key)])


@router.post("/save-rsvp", response_model=RsvpResponse)
async def save_rsvp(
    body: RsvpRequest,
    settings: Settings = Depends(get_settings),
    broker: CredentialBroker = Depends(get_broker),
    sheets: SheetsService = Depends(get_sheets_service),
):
    if not settings.GUEST_SHEET_ID:
        raise BadRequestError("Guest sheet is not configured")

    logger.info("Saving RSVP for %d guest(s), attending=%s", len(body.guests), body.attending)
    token = await broker.get_access_token(SHEETS_SCOPE)
    saved_at = await sheets.save_rsvp(
        token.value,
        settings.GUEST_SHEET_ID,
        [guest.row_index for guest in body.guests],
        body.attending,
    )

    return RsvpResponse(
        message=f"RSVP saved successfully for {len(body.guests)} guest(s)!",
        guest_names=[guest.english_name for guest in body.guests],
        attending=body.attending,
        date=saved_at.strftime("%m/%d/%Y"),
        time=saved_at.strftime("%H:%M"),
    )
