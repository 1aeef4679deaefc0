"""Public configuration returned to the browser."""

from pydantic import BaseModel, ConfigDict, Field


class ConfigResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    guest_sheet_id: str = Field(alias="guestSheetId")
    upload_folder_id: str = Field(alias="uploadFolderId")
    gallery_folder_id: str = Field(alias="galleryFolderId")
