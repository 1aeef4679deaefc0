"""
Application exceptions and their JSON rendering.

Every error a function returns has the same body shape
``{"success": false, "error": <message>, "code": <code>}`` so the client can
normalize responses without guessing.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from invite_api.schemas.common import ErrorResponse


class AppException(Exception):
    """Base application exception."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"
    retriable = False

    def __init__(self, detail: str, status_code: int | None = None, code: str | None = None):
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(detail)


class BadRequestError(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"


class UnauthorizedError(AppException):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class PayloadTooLargeError(AppException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    code = "too_large"


class RateLimitedError(AppException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"
    retriable = True

    def __init__(self, detail: str, limit: int):
        self.limit = limit
        super().__init__(detail)


class CredentialError(AppException):
    """
    Missing/malformed service credential or a token-endpoint rejection.

    ``response_body`` holds the raw token-endpoint body when there was one;
    ``detail`` never contains key material or the signed assertion.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "credential_error"

    def __init__(self, detail: str, response_body: str | None = None, upstream_status: int | None = None):
        self.response_body = response_body
        self.upstream_status = upstream_status
        super().__init__(detail)


class StorageApiError(AppException):
    """Non-success response from Drive or Sheets."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "storage_error"

    def __init__(self, detail: str, upstream_status: int | None = None, response_body: str = ""):
        self.upstream_status = upstream_status
        self.response_body = response_body
        self.retriable = upstream_status is None or upstream_status >= 500 or upstream_status == 429
        super().__init__(detail)


def error_body(message: str, code: str) -> dict:
    return ErrorResponse(error=message, code=code).model_dump()


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    body = error_body(exc.detail, exc.code)
    if isinstance(exc, RateLimitedError):
        body.update({"rateLimited": True, "message": exc.detail, "remaining": 0, "guests": []})
    return JSONResponse(status_code=exc.status_code, content=body)
