"""
FastAPI application factory — entry point for the invitation functions.
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from invite_api.api.v1.router import v1_router
from invite_api.config import settings
from invite_api.exceptions import AppException, error_body, handle_app_exception
from invite_api.middleware.error_handler import ErrorHandlerMiddleware, RequestIdMiddleware

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    return JSONResponse(status_code=400, content=error_body(message, "bad_request"))


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), "http_error"),
        headers=exc.headers,
    )


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Invitation Functions API",
        description="Media uploads, guest lookup, RSVP and gallery for the wedding invitation site.",
        version="1.0.0",
    )

    # ── Middleware (order matters — outermost first) ──────
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # ── Error rendering ──────────────────────────────────
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)

    # ── API Routes ───────────────────────────────────────
    app.include_router(v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "invite_api.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=True,
    )
