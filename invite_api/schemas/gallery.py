"""Gallery schemas."""

from pydantic import BaseModel, ConfigDict, Field


class GalleryRequest(BaseModel):
    folder_id: str | None = Field(default=None, alias="folderId")


class GalleryImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    url: str
    full_url: str = Field(alias="fullUrl")
    alt: str


class GalleryResponse(BaseModel):
    images: list[GalleryImage]
