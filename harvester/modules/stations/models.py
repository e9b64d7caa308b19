"""
Station Models.
"""

from pydantic import BaseModel, Field


class Station(BaseModel):
    """Known transit station of a location."""

    id: int
    name: str
    lat: float
    lng: float
    location_id: int | None = None


class TransitEstimate(BaseModel):
    """Travel estimate from a listing to its station, as reported upstream."""

    travel_time_min: int | None = None
    travel_type: str | None = Field(default=None, description="walk | public_transport")
    distance: str | None = Field(default=None, description='e.g. "650 m", "2.7 km"')
