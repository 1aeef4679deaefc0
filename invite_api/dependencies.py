"""FastAPI dependency injection — settings, API key check, Google services."""

import secrets
from functools import lru_cache

import httpx
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from invite_api.config import Settings, settings
from invite_api.exceptions import UnauthorizedError
from invite_api.services.credential_broker import CredentialBroker
from invite_api.services.drive_service import DriveService
from invite_api.services.sheets_service import SheetsService
from invite_api.utils.rate_limit import DailyRateLimiter

security_scheme = HTTPBearer(auto_error=False)


def get_settings() -> Settings:
    return settings


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Upstream transport; None means real network. Tests override this."""
    return None


async def require_api_key(
    apikey: str | None = Header(default=None),
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    settings: Settings = Depends(get_settings),
) -> str:
    """Every function call must carry the public API key in the ``apikey`` header."""
    if not apikey:
        raise UnauthorizedError("Missing apikey header")

    expected = settings.FUNCTIONS_API_KEY
    if expected and not secrets.compare_digest(apikey, expected):
        raise UnauthorizedError("Invalid API key")
    # A bearer header, when sent, must carry the same key
    if expected and credentials is not None and not secrets.compare_digest(credentials.credentials, expected):
        raise UnauthorizedError("Invalid authorization token")
    return apikey


def get_broker(
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> CredentialBroker:
    return CredentialBroker(settings, transport=transport)


def get_drive_service(
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> DriveService:
    return DriveService(settings, transport=transport)


def get_sheets_service(
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> SheetsService:
    return SheetsService(settings, transport=transport)


@lru_cache
def _guest_limiter(limit: int) -> DailyRateLimiter:
    return DailyRateLimiter(limit)


def get_guest_limiter(settings: Settings = Depends(get_settings)) -> DailyRateLimiter:
    return _guest_limiter(settings.GUEST_SEARCH_DAILY_LIMIT)
