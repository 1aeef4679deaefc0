"""
Server configuration using Pydantic BaseSettings.
Loads from .env and provides typed access to every function secret and id.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Functions gateway ────────────────────────────────
    FUNCTIONS_API_KEY: str = ""
    CORS_ORIGINS: list[str] = ["*"]

    # ── Service account (Sheets / Drive) ─────────────────
    SERVICE_ACCOUNT_JSON: str = ""
    GOOGLE_SERVICE_ACCOUNT_JSON: str = ""
    SERVICE_ACCOUNT_JSON_B64: str = ""

    # ── OAuth refresh token (preferred for uploads: uses the owner's Drive quota)
    GOOGLE_OAUTH_CLIENT_ID: str = ""
    GOOGLE_OAUTH_CLIENT_SECRET: str = ""
    GOOGLE_OAUTH_REFRESH_TOKEN: str = ""

    # ── Google endpoints ─────────────────────────────────
    TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    DRIVE_UPLOAD_URL: str = "https://www.googleapis.com/upload/drive/v3/files"
    DRIVE_FILES_URL: str = "https://www.googleapis.com/drive/v3/files"
    SHEETS_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEETS_EXPORT_URL: str = "https://docs.google.com/spreadsheets/d"

    # ── Event resources ──────────────────────────────────
    GUEST_SHEET_ID: str = ""
    UPLOAD_FOLDER_ID: str = ""
    GALLERY_FOLDER_ID: str = ""

    # ── Tokens ───────────────────────────────────────────
    TOKEN_CACHE_ENABLED: bool = False
    TOKEN_CACHE_SKEW_SECONDS: int = 60
    TOKEN_EXCHANGE_TIMEOUT_SECONDS: float = 20.0

    # ── Uploads ──────────────────────────────────────────
    STORAGE_TIMEOUT_SECONDS: float = 300.0
    MAX_IMAGE_MB: int = 50
    MAX_VIDEO_MB: int = 500
    MAKE_UPLOADS_PUBLIC: bool = True

    # ── Guests / RSVP ────────────────────────────────────
    GUEST_SEARCH_DAILY_LIMIT: int = 5
    RSVP_SHEET_NAME: str = "Sheet1"

    # ── Server ───────────────────────────────────────────
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def service_account_configured(self) -> bool:
        return bool(self.SERVICE_ACCOUNT_JSON or self.GOOGLE_SERVICE_ACCOUNT_JSON or self.SERVICE_ACCOUNT_JSON_B64)

    @property
    def oauth_user_configured(self) -> bool:
        return bool(
            self.GOOGLE_OAUTH_CLIENT_ID and self.GOOGLE_OAUTH_CLIENT_SECRET and self.GOOGLE_OAUTH_REFRESH_TOKEN
        )


settings = Settings()
