"""Data models for normalized events and the packets emitted per pull."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class NormalizedEvent(BaseModel):
    """Canonical event record produced by every format extractor."""

    title: str = ""
    description: str = ""

    # Dates are calendar dates (YYYY-MM-DD), times are wall-clock (HH:MM)
    start_date: str = Field(default="", alias="startDate")
    start_time: str = Field(default="", alias="startTime")
    end_date: str = Field(default="", alias="endDate")
    end_time: str = Field(default="", alias="endTime")
    doors_time: str = Field(default="", alias="doorsTime")

    # Venue
    venue_name: str = Field(default="", alias="venueName")
    venue_address: str = Field(default="", alias="venueAddress")
    venue_city: str = Field(default="", alias="venueCity")
    venue_state: str = Field(default="", alias="venueState")
    venue_zip: str = Field(default="", alias="venueZip")
    venue_country: str = Field(default="", alias="venueCountry")
    venue_timezone: str = Field(default="", alias="venueTimezone")  # IANA id
    venue_coordinates: str = Field(default="", alias="venueCoordinates")  # "lat,lng"
    venue_phone: str = Field(default="", alias="venuePhone")
    venue_website: str = Field(default="", alias="venueWebsite")

    # Tickets
    price: str = ""
    ticket_url: str = Field(default="", alias="ticketUrl")
    offer_availability: str = Field(default="", alias="offerAvailability")  # InStock, SoldOut
    age_restriction: str = Field(default="", alias="ageRestriction")

    # People and media
    image_url: str = Field(default="", alias="imageUrl")
    performer: str = ""
    organizer: str = ""
    organizer_url: str = Field(default="", alias="organizerUrl")
    event_type: str = Field(default="", alias="eventType")

    source_url: str = Field(default="", alias="sourceUrl")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_blank(cls, value: Any) -> Any:
        # Feeds hand us null, ints and floats for text fields
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    class Config:
        extra = "ignore"
        populate_by_name = True

    def to_record(self) -> dict:
        """Convert to the camelCase record consumed downstream, dropping blanks."""
        record = self.model_dump(by_alias=True)
        return {k: v for k, v in record.items() if v not in (None, "")}


class ExtractionResult(BaseModel):
    """Events produced by one extractor, with the extractor's method name."""

    method: str
    events: list[NormalizedEvent] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.events)


class EventPacket(BaseModel):
    """The single unit emitted by a successful pull."""

    title: str
    body: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    packet_type: str = "event_import"

    @property
    def event_identifier(self) -> Optional[str]:
        return self.metadata.get("event_identifier")

    @property
    def extraction_method(self) -> Optional[str]:
        return self.metadata.get("extraction_method")

    @property
    def event(self) -> Optional[NormalizedEvent]:
        """Rebuild the normalized event carried in the body, venue details included."""
        data = self.body.get("event")
        if not data:
            return None
        return NormalizedEvent.model_validate({**self.body.get("venue_metadata", {}), **data})

    @property
    def is_raw_html(self) -> bool:
        return "raw_html" in self.body


def import_timestamp() -> int:
    return int(datetime.now().timestamp())
