"""Upload request/response schemas."""

from pydantic import BaseModel, Field


class Base64UploadRequest(BaseModel):
    file_name: str = Field(alias="fileName", min_length=1)
    base64: str = Field(min_length=1)
    mime_type: str | None = Field(default=None, alias="mimeType")
    folder_id: str | None = Field(default=None, alias="folderId")


class UploadResponse(BaseModel):
    success: bool = True
    id: str
    name: str
    url: str
