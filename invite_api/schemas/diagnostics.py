"""Schemas for the preflight and token-check diagnostics."""

from pydantic import BaseModel, ConfigDict, Field


class PreflightRequest(BaseModel):
    sheet_id: str | None = Field(default=None, alias="sheetId")
    gallery_folder_id: str | None = Field(default=None, alias="galleryFolderId")


class CheckResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    upstream_status: int | None = Field(default=None, alias="upstreamStatus")
    detail: str | None = None


class PreflightResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    sheet: CheckResult
    write_test: CheckResult = Field(alias="writeTest")
    drive: CheckResult


class SecretsStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_client_id: bool = Field(alias="hasClientId")
    has_client_secret: bool = Field(alias="hasClientSecret")
    has_refresh_token: bool = Field(alias="hasRefreshToken")


class TokenCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    reason: str | None = None
    message: str | None = None
    http_status: int | None = Field(default=None, alias="httpStatus")
    has_access_token: bool | None = Field(default=None, alias="hasAccessToken")
    token_type: str | None = Field(default=None, alias="tokenType")
    expires_in: int | None = Field(default=None, alias="expiresIn")
    secrets_status: SecretsStatus = Field(alias="secretsStatus")
