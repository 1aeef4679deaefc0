"""Guest lookup route."""

import logging

from fastapi import APIRouter, Depends, Request

from invite_api.config import Settings
from invite_api.dependencies import get_guest_limiter, get_settings, get_sheets_service, require_api_key
from invite_api.exceptions import BadRequestError, RateLimitedError
from invite_api.schemas.guest import GuestSearchRequest, GuestSearchResponse, RateLimitInfo
from invite_api.services.sheets_service import SheetsService, filter_guests, search_language
from invite_api.utils.rate_limit import DailyRateLimiter, client_identifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["guests"], dependencies=[Depends(require_api_key)])


@router.post("/get-guests", response_model=GuestSearchResponse)
async def get_guests(
    request: Request,
    body: GuestSearchRequest | None = None,
    settings: Settings = Depends(get_settings),
    sheets: SheetsService = Depends(get_sheets_service),
    limiter: DailyRateLimiter = Depends(get_guest_limiter),
):
    body = body or GuestSearchRequest()
    identifier = client_identifier(request)
    allowed, remaining = limiter.hit(identifier)
    if not allowed:
        logger.info("Guest search rate limit exceeded for %s", identifier)
        raise RateLimitedError(
            f"You have reached the daily search limit of {limiter.limit} searches. Please try again tomorrow.",
            limit=limiter.limit,
        )

    if not settings.GUEST_SHEET_ID:
        raise BadRequestError("Guest sheet is not configured")

    guests = await sheets.fetch_guests(settings.GUEST_SHEET_ID)
    matched = filter_guests(guests, body.search_query)
    language = search_language(body.search_query)
    logger.info("Returning %d guests, searchLanguage: %s", len(matched), language)

    return GuestSearchResponse(
        guests=matched,
        search_language=language,
        rate_limit=RateLimitInfo(remaining=remaining, limit=limiter.limit),
    )
