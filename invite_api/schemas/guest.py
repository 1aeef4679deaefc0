"""Guest lookup schemas."""

from pydantic import BaseModel, ConfigDict, Field


class GuestRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    english_name: str = Field(alias="englishName")
    arabic_name: str | None = Field(default=None, alias="arabicName")
    row_index: int = Field(alias="rowIndex", ge=0)
    family_group: str | None = Field(default=None, alias="familyGroup")
    table_number: str | None = Field(default=None, alias="tableNumber")


class GuestSearchRequest(BaseModel):
    search_query: str = Field(default="", alias="searchQuery")


class RateLimitInfo(BaseModel):
    remaining: int
    limit: int


class GuestSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    guests: list[GuestRecord]
    search_language: str = Field(alias="searchLanguage")
    rate_limit: RateLimitInfo = Field(alias="rateLimit")
