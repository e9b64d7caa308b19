"""
Raw data type definitions for the realty mobile API.

These TypedDicts describe the parts of the upstream payload the harvester reads.
Values are kept as-is from the JSON; nothing is transformed at this stage.
"""

from typing import TypedDict


class ValueRaw(TypedDict, total=False):
    """Wrapped scalar, e.g. ``{"value": 54.0}``."""

    value: float | int | str


class MetroRaw(TypedDict, total=False):
    """
    Station reported near an offer.

    Attributes:
        name: Station name
        latitude: Station latitude
        longitude: Station longitude
        timeToMetro: Travel time in minutes
        metroTransport: ON_FOOT or ON_TRANSPORT
    """

    name: str
    latitude: float
    longitude: float
    timeToMetro: int
    metroTransport: str


class AddressComponentRaw(TypedDict, total=False):
    """Component of ``location.structuredAddress`` (CITY, STREET, HOUSE, ...)."""

    value: str
    regionType: str


class StructuredAddressRaw(TypedDict, total=False):
    component: list[AddressComponentRaw]


class LocationRaw(TypedDict, total=False):
    latitude: float
    longitude: float
    geocoderAddress: str
    structuredAddress: StructuredAddressRaw
    metro: MetroRaw
    metroList: list[MetroRaw]


class CommercialRaw(TypedDict, total=False):
    commercialTypes: list[str]


class AuthorRaw(TypedDict, total=False):
    phones: list[str]


class OfferRaw(TypedDict, total=False):
    """
    One offer from ``response.offers.items``.

    Attributes:
        offerId: Upstream offer ID
        price: Price wrapper
        area: Area wrapper (square meters)
        floorsOffered: Floors of the offer (first is used)
        floorsTotal: Floors in the building
        roomsTotal: "STUDIO", "PLUS_4" or a number
        commercial: Commercial types
        location: Coordinates, address and nearby stations
        author: Contact phones
        raised: Boosted by the seller
        promoted: Promoted by the seller
        creationDate: UTC ISO-8601 creation time
        shareUrl: Public URL
    """

    offerId: str
    price: ValueRaw
    area: ValueRaw
    floorsOffered: list[int]
    floorsTotal: int
    roomsTotal: str | int
    commercial: CommercialRaw
    location: LocationRaw
    author: AuthorRaw
    raised: bool
    promoted: bool
    creationDate: str
    shareUrl: str


class PriceEntryRaw(TypedDict, total=False):
    """Entry of ``response.history.prices`` (oldest first)."""

    date: str
    value: int | float
    price: ValueRaw
