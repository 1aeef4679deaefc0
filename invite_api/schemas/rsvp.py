"""RSVP request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RsvpGuest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    english_name: str = Field(default="", alias="englishName")
    row_index: int = Field(alias="rowIndex", ge=0)


class RsvpRequest(BaseModel):
    guests: list[RsvpGuest] = []
    attending: bool
    # Single-guest form used by older pages
    guest_name: str | None = Field(default=None, alias="guestName")
    row_index: int | None = Field(default=None, alias="rowIndex", ge=0)

    @model_validator(mode="after")
    def fold_single_guest(self):
        if not self.guests and self.guest_name and self.row_index is not None:
            self.guests = [RsvpGuest(englishName=self.guest_name, rowIndex=self.row_index)]
        if not self.guests:
            raise ValueError("guests array or guestName is required")
        return self


class RsvpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    guest_names: list[str] = Field(alias="guestNames")
    attending: bool
    date: str
    time: str
