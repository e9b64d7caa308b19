"""
Listing Models.

Pydantic models for rows written to the shared ``listings`` table.
"""

from pydantic import BaseModel, Field

LISTING_STATUS_NEW = 1
LISTING_STATUS_RAISED = 2


class ListingData(BaseModel):
    """Normalized listing, keyed by (source_id, external_id)."""

    external_id: str
    source_id: int
    category_id: int
    location_id: int
    room_id: int | None = None
    listing_status_id: int = Field(
        default=LISTING_STATUS_NEW, description="1=new, 2=raised/promoted"
    )

    title: str
    address: str | None = None
    city: str | None = None
    street: str | None = None
    house: str | None = None

    price: float | None = None
    square_meters: float | None = None
    floor: int | None = None
    floors_total: int | None = None

    phone: str | None = None
    url: str | None = None

    lat: float | None = None
    lng: float | None = None

    def has_coordinates(self) -> bool:
        """Whether both coordinates are present."""
        return self.lat is not None and self.lng is not None


class PricePoint(BaseModel):
    """One entry of the stored price history (newest first)."""

    date: int = Field(description="Unix timestamp")
    price: int
    diff: int = Field(default=0, description="Change against the next-older entry")
